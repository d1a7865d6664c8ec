#!/usr/bin/python

import io
import logging
import string
import unittest

from context import config
from rdemangle.exceptions import RecursionLimitReached, UnableTov0Demangle
from rdemangle.nodes import BackRef, CrateRoot, Identifier, NestedPath, V0Symbol
from rdemangle.printer import Printer, RenderStyle
from rdemangle.rust import RustDemangler
from rdemangle.rust_v0 import Budget, Parser, V0Demangler

LOG = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, format="%(asctime)-15s %(message)s")
logging.disable(logging.CRITICAL)

BASE_62_DIGITS = string.digits + string.ascii_lowercase + string.ascii_uppercase


def encode_integer_62(value):
    if value == 0:
        return "_"
    value -= 1
    digits = ""
    while True:
        digits = BASE_62_DIGITS[value % 62] + digits
        value //= 62
        if not value:
            break
    return digits + "_"


class V0DemanglerTestSuite(unittest.TestCase):
    """Symbols in the "_R" scheme"""

    @classmethod
    def setUpClass(cls):
        super(V0DemanglerTestSuite, cls).setUpClass()
        cls.demangler = RustDemangler(config)

    def assertDemangles(self, mangled, expected, style=RenderStyle.NO_HASH):
        self.assertEqual(self.demangler.demangle(mangled, style), expected)

    def assertDemanglesType(self, mangled_type, expected_type, style=RenderStyle.NO_HASH):
        # an inherent impl on the type, printed as "<type>"
        self.assertDemangles("_RMC0" + mangled_type, "<" + expected_type + ">", style)

    def assertPassthrough(self, mangled):
        self.assertEqual(self.demangler.demangle(mangled), mangled)
        self.assertFalse(self.demangler.is_mangled(mangled))

    def _createParser(self, inn):
        return Parser(inn, 0, Budget(config.MAX_DEPTH, config.MAX_WORK, inn))

    def testInteger62(self):
        self.assertEqual(self._createParser("_").integer_62(), 0)
        self.assertEqual(self._createParser("0_").integer_62(), 1)
        self.assertEqual(self._createParser("Z_").integer_62(), 62)
        self.assertEqual(self._createParser("10_").integer_62(), 63)
        for value in [0, 1, 61, 62, 63, 1000, 2**32]:
            self.assertEqual(self._createParser(encode_integer_62(value)).integer_62(), value)
        with self.assertRaises(UnableTov0Demangle):
            self._createParser("ZZZZZZZZZZZZ_").integer_62()
        with self.assertRaises(UnableTov0Demangle):
            self._createParser("12").integer_62()
        with self.assertRaises(UnableTov0Demangle):
            self._createParser("1!_").integer_62()

    def testDisambiguator(self):
        self.assertEqual(self._createParser("C").disambiguator(), 0)
        self.assertEqual(self._createParser("s_").disambiguator(), 1)
        self.assertEqual(self._createParser("s0_").disambiguator(), 2)

    def testIdent(self):
        parser = self._createParser("3foo6_123bar")
        self.assertEqual(parser.ident(), Identifier("foo", "", "foo"))
        self.assertEqual(parser.ident(), Identifier("123bar", "", "123bar"))
        ident = self._createParser("u10mnchen_3ya").ident()
        self.assertTrue(ident.is_punycode)
        self.assertEqual(ident.text, "münchen")
        with self.assertRaises(UnableTov0Demangle):
            self._createParser("9foo").ident()

    def testIdentifierDefaultsToAscii(self):
        self.assertEqual(Identifier("foo"), Identifier("foo", "", "foo"))
        self.assertEqual(Identifier("", "3ya").text, "")
        output = io.StringIO()
        printer = Printer(output, RenderStyle.NO_HASH, Budget(config.MAX_DEPTH, config.MAX_WORK))
        printer.print_symbol(V0Symbol(NestedPath("v", CrateRoot(0, Identifier("foo")), 0, Identifier("bar"))))
        self.assertEqual(output.getvalue(), "foo::bar")

    def testUnprintableIdentifiersAreEscaped(self):
        output = io.StringIO()
        printer = Printer(output, RenderStyle.NO_HASH, Budget(config.MAX_DEPTH, config.MAX_WORK))
        name = Identifier("", "x", "a\u202eb\u2028")
        printer.print_symbol(V0Symbol(NestedPath("v", CrateRoot(0, Identifier("foo")), 0, name)))
        self.assertEqual(output.getvalue(), "foo::a\\u{202e}b\\u{2028}")
        # the same name reached through punycode
        basic, _, deltas = "a\u202eb".encode("punycode").decode("ascii").rpartition("-")
        ident = basic + "_" + deltas
        self.assertDemangles("_RNvC3foou{}{}".format(len(ident), ident), "foo::a\\u{202e}b")

    def testBackrefMustPointBackwards(self):
        parser = self._createParser("NvB0_3foo")
        parser.next_val = 3
        self.assertEqual(parser.backref("path"), BackRef(1, "path"))
        parser = self._createParser("B_")
        parser.next_val = 1
        with self.assertRaises(UnableTov0Demangle):
            parser.backref("path")
        self.assertPassthrough("_RB_")
        self.assertPassthrough("_RNvB2_3foo")

    def testParse(self):
        symbol = V0Demangler(config).parse("NvC3foo3bar")
        crate = CrateRoot(0, Identifier("foo", "", "foo"))
        self.assertEqual(symbol, V0Symbol(NestedPath("v", crate, 0, Identifier("bar", "", "bar"))))
        # the instantiating crate is kept apart
        symbol = V0Demangler(config).parse("NvC3foo3barC3baz")
        self.assertEqual(symbol.instantiating_crate, CrateRoot(0, Identifier("baz", "", "baz")))
        self.assertEqual(symbol.suffix, "")
        with self.assertRaises(UnableTov0Demangle):
            V0Demangler(config).parse("nvC3foo3bar")

    def testBudget(self):
        budget = Budget(2, 10)
        budget.enter()
        budget.enter()
        with self.assertRaises(RecursionLimitReached):
            budget.enter()
        budget.leave()
        budget.leave()
        self.assertEqual(budget.depth, 0)

    def testDemangleCrateWithLeadingDigit(self):
        self.assertDemangles("_RNvC6_123foo3bar", "123foo::bar")
        self.assertDemangles("_RNvC6_123foo3bar", "123foo[0]::bar", RenderStyle.VERBOSE)

    def testDemangleCrateDisambiguator(self):
        self.assertDemangles("_RNvCs_3foo3bar", "foo[1]::bar", RenderStyle.VERBOSE)
        self.assertDemangles("_RNvCs1234_7mycrate3foo", "mycrate[3c1c0]::foo", RenderStyle.VERBOSE)
        self.assertDemangles("_RNvCs1234_7mycrate3foo", "mycrate::foo")

    def testDemangleUtf8Idents(self):
        self.assertDemangles(
            "_RNqCs4fqI2P2rA04_11utf8_identsu30____7hkackfecea1cbdathfdh9hlq6y",
            "utf8_idents::საჭმელად_გემრიელი_სადილი",
        )

    def testDemangleClosure(self):
        self.assertDemangles("_RNCNCNgCs6DXkGYLi8lr_2cc5spawn00B5_", "cc::spawn::{closure#0}::{closure#0}")
        self.assertDemangles(
            "_RNCINkXs25_NgCsbmNqQUJIY6D_4core5sliceINyB9_4IterhENuNgNoBb_4iter8iterator8Iterator9rpositionNCNgNpB9_6memchr7memrchrs_0E0Bb_",
            "<core::slice::Iter<u8> as core::iter::iterator::Iterator>::rposition::<core::slice::memchr::memrchr::{closure#1}>::{closure#0}",
        )

    def testDemangleSpecialNamespaces(self):
        self.assertDemangles("_RNSC3foo0", "foo::{shim#0}")
        self.assertDemangles("_RNCC3foo4name", "foo::{closure:name#0}")
        self.assertDemangles("_RNXC3foos_0", "foo::{X#1}")

    def testDemangleDynTrait(self):
        self.assertDemangles(
            "_RINbNbCskIICzLVDPPb_5alloc5alloc8box_freeDINbNiB4_5boxed5FnBoxuEp6OutputuEL_ECs1iopQbuBiw2_3std",
            "alloc::alloc::box_free::<dyn alloc::boxed::FnBox<(), Output = ()>>",
        )
        self.assertDemanglesType("DNtC3foo3BarEL_", "dyn foo::Bar")
        self.assertDemanglesType("DNtC3foo3BarNtC3foo3BazEL_", "dyn foo::Bar + foo::Baz")
        self.assertDemanglesType("DNtC3foo3Barp4ItemhEL_", "dyn foo::Bar<Item = u8>")
        self.assertDemanglesType("DNtC3foo3Barp4ItemhEL_", "dyn foo::Bar", RenderStyle.COMPACT)

    def testDemangleGenerics(self):
        self.assertDemangles("_RINvC3foo3barhE", "foo::bar::<u8>")
        self.assertDemangles("_RINvC3foo3barhE", "foo::bar", RenderStyle.COMPACT)
        self.assertDemanglesType("INtC3foo3BarhtE", "foo::Bar<u8, u16>")
        self.assertDemanglesType("INtC3foo3BarhtE", "foo::Bar", RenderStyle.COMPACT)

    def testDemangleImpls(self):
        self.assertDemangles("_RNvXC0NtC3foo3BarNtC3foo3Baz3fun", "<foo::Bar as foo::Baz>::fun")
        self.assertDemangles("_RNvYpNtC3foo3Baz3fun", "<_ as foo::Baz>::fun")
        self.assertDemangles("_RNvMC0NtC3foo3Bar3new", "<foo::Bar>::new")

    def testDemangleTypes(self):
        self.assertDemanglesType("Rp", "&_")
        self.assertDemanglesType("RL_p", "&_")
        self.assertDemanglesType("Qh", "&mut u8")
        self.assertDemanglesType("Ph", "*const u8")
        self.assertDemanglesType("Oh", "*mut u8")
        self.assertDemanglesType("Sh", "[u8]")
        self.assertDemanglesType("Ahj4_", "[u8; 4]")
        self.assertDemanglesType("TE", "()")
        self.assertDemanglesType("ThE", "(u8,)")
        self.assertDemanglesType("ThlE", "(u8, i32)")
        self.assertDemanglesType("z", "!")
        self.assertDemanglesType("e", "str")

    def testDemangleFnSignatures(self):
        self.assertDemanglesType("FEu", "fn()")
        self.assertDemanglesType("FhEt", "fn(u8) -> u16")
        self.assertDemanglesType("FUKCEu", 'unsafe extern "C" fn()')
        self.assertDemanglesType("FK8C_unwindEu", 'extern "C-unwind" fn()')
        self.assertDemanglesType("FG_RL0_hEu", "for<'a> fn(&'a u8)")
        self.assertDemanglesType("FG0_RL1_hRL0_tEu", "for<'a, 'b> fn(&'a u8, &'b u16)")

    def testDemangleConstGenerics(self):
        self.assertDemanglesType("INtC8arrayvec8ArrayVechKj7b_E", "arrayvec::ArrayVec<u8, 123>")
        self.assertDemanglesType(
            "INtC8arrayvec8ArrayVechKj7b_E", "arrayvec[0]::ArrayVec<u8, 123: usize>", RenderStyle.VERBOSE
        )
        self.assertDemangles("_RMCs4fqI2P2rA04_13const_genericINtB0_8UnsignedKhb_E", "<const_generic::Unsigned<11>>")
        self.assertDemangles("_RMCs4fqI2P2rA04_13const_genericINtB0_6SignedKs98_E", "<const_generic::Signed<152>>")
        self.assertDemangles("_RMCs4fqI2P2rA04_13const_genericINtB0_6SignedKanb_E", "<const_generic::Signed<-11>>")
        self.assertDemangles("_RMCs4fqI2P2rA04_13const_genericINtB0_4BoolKb0_E", "<const_generic::Bool<false>>")
        self.assertDemangles("_RMCs4fqI2P2rA04_13const_genericINtB0_4BoolKb1_E", "<const_generic::Bool<true>>")
        self.assertDemangles("_RMCs4fqI2P2rA04_13const_genericINtB0_4CharKc76_E", "<const_generic::Char<'v'>>")
        self.assertDemangles("_RMCs4fqI2P2rA04_13const_genericINtB0_4CharKca_E", "<const_generic::Char<'\\n'>>")
        self.assertDemangles("_RMCs4fqI2P2rA04_13const_genericINtB0_4CharKc2202_E", "<const_generic::Char<'∂'>>")
        self.assertDemangles("_RNvNvMCs4fqI2P2rA04_13const_genericINtB4_3FooKpE3foo3FOO", "<const_generic::Foo<_>>::foo::FOO")

    def testDemangleConstValues(self):
        self.assertDemanglesType("INtC3foo3BarKanb_E", "foo[0]::Bar<-11: i8>", RenderStyle.VERBOSE)
        self.assertDemanglesType("INtC3foo3BarKo1ffffffffffffffff_E", "foo::Bar<0x1ffffffffffffffff>")
        self.assertDemanglesType("INtC3foo3BarKj_E", "foo::Bar<0>")
        self.assertDemanglesType("INtC3foo3BarKc27_E", "foo::Bar<'\\''>")
        self.assertDemanglesType("INtC3foo3BarKc22_E", "foo::Bar<'\"'>")
        self.assertDemanglesType("INtC3foo3BarKe616263_E", 'foo::Bar<*"abc">')
        self.assertDemanglesType("INtC3foo3BarKRe616263_E", 'foo::Bar<"abc">')
        self.assertDemanglesType("INtC3foo3BarKe22_E", 'foo::Bar<*"\\"">')
        self.assertDemanglesType("INtC3foo3BarKRb1_E", "foo::Bar<&true>")
        self.assertDemanglesType("INtC3foo3BarKQb1_E", "foo::Bar<&mut true>")

    def testDemangleInvalidConsts(self):
        # surrogates are not chars
        self.assertPassthrough("_RMC0INtC3foo3BarKcd800_E")
        # bools are 0 or 1
        self.assertPassthrough("_RMC0INtC3foo3BarKb2_E")
        # strings are valid UTF-8
        self.assertPassthrough("_RMC0INtC3foo3BarKeff_E")
        # hex nibbles are lowercase
        self.assertPassthrough("_RMC0INtC3foo3BarKjA_E")

    def testDemangleExponentialExplosion(self):
        # 6 backrefs result in 2^6 = 64 copies of "_"
        expected = "_"
        for _ in range(6):
            expected = "({}, {})".format(expected, expected)
        self.assertDemanglesType("TTTTTTpB8_EB7_EB6_EB5_EB4_EB3_E", expected)

    def testDemangleThinLto(self):
        self.assertDemangles("_RC3foo.llvm.9D1C9369", "foo")
        self.assertDemangles("_RC3foo.llvm.9D1C9369@@16", "foo")
        self.assertDemangles("_RNvC9backtrace3foo.llvm.A5310EB9", "backtrace::foo")

    def testDemangleExtraSuffix(self):
        self.assertDemangles(
            "_RNvNtNtNtNtCs92dm3009vxr_4rand4rngs7adapter9reseeding4fork23FORK_HANDLER_REGISTERED.0.0",
            "rand::rngs::adapter::reseeding::fork::FORK_HANDLER_REGISTERED.0.0",
        )
        self.assertDemangles("_RNvC3foo3bar@plt", "foo::bar@plt")
        self.assertPassthrough("_RNvC3foo3barxyz")

    def testDemanglePrefixVariants(self):
        self.assertDemangles("RNvC3foo3bar", "foo::bar")
        self.assertDemangles("__RNvC3foo3bar", "foo::bar")
        self.assertPassthrough("Rust")

    def testRecursionLimitLeaks(self):
        for sym_leaf, expected_leaf in [("p", "_"), ("Rp", "&_"), ("C1x", "x")]:
            sym = "_RIC0p"
            expected = "::<_"
            for _ in range(config.MAX_DEPTH * 2):
                sym += sym_leaf
                expected += ", " + expected_leaf
            sym += "E"
            expected += ">"
            self.assertDemangles(sym, expected)

    def testRecursionLimit(self):
        self.assertPassthrough("_RMC0" + "R" * (config.MAX_DEPTH + 10) + "p")
        self.assertPassthrough(
            "RIC20tRYIMYNRYFG05_EB5_B_B6_RRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRR"
            "RRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRRB_E"
        )

    def _buildBackrefChain(self, links):
        # every generic argument extends the previous one through a back-reference
        inner = "IC1a"
        previous = len(inner)
        inner += "NvC1x1y"
        for _ in range(links):
            offset = len(inner)
            inner += "NvB" + encode_integer_62(previous) + "1y"
            previous = offset
        return "_R" + inner + "E"

    def testBackrefChain(self):
        for links in [0, 10, 100]:
            expected = ", ".join("x::y" + "::y" * i for i in range(links + 1))
            self.assertDemangles(self._buildBackrefChain(links), "a::<" + expected + ">")

    def testBackrefChainLimit(self):
        for links in [config.MAX_DEPTH, config.MAX_DEPTH * 2]:
            mangled = self._buildBackrefChain(links)
            self.assertPassthrough(mangled)
            with self.assertRaises(RecursionLimitReached):
                self.demangler.try_demangle(mangled)

    def testRecursionLimitBackrefFreeBypass(self):
        # the deep nesting hides in an identifier, reached only through a backref
        depth = 100000
        sym = "_RIC{}".format(depth)
        backref_start = len(sym) - 2
        sym += "R" * depth
        sym += "B" + encode_integer_62(backref_start) + "E"
        self.assertPassthrough(sym)
        with self.assertRaises(RecursionLimitReached):
            self.demangler.try_demangle(sym)


if __name__ == "__main__":
    unittest.main()
