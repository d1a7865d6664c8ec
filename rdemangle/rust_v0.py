import logging
import string
from typing import List, Optional

from . import punycode
from .DemanglerConfig import DemanglerConfig
from .exceptions import RecursionLimitReached, UnableTov0Demangle, WorkLimitReached
from .nodes import (
    BASIC_TYPES,
    SIGNED_CONST_TAGS,
    UNSIGNED_CONST_TAGS,
    ArrayType,
    BackRef,
    BoolConst,
    CharConst,
    CrateRoot,
    DynTrait,
    DynTraitType,
    FnSigType,
    GenericInstantiation,
    Identifier,
    InherentImpl,
    IntConst,
    Lifetime,
    NestedPath,
    PlaceholderConst,
    PrimitiveType,
    RawPointerType,
    ReferenceType,
    RefConst,
    SliceType,
    StrConst,
    TraitDefinition,
    TraitImpl,
    TupleType,
    V0Symbol,
)

LOGGER = logging.getLogger(__name__)

MAX_INTEGER_62 = 0xFFFFFFFFFFFFFFFF
HEX_NIBBLES = "0123456789abcdef"


class Budget:
    """Depth and work counters shared by everything decoding or printing one symbol."""

    def __init__(self, max_depth, max_work, given_str=""):
        self.max_depth = max_depth
        self.max_work = max_work
        self.given_str = given_str
        self.depth = 0
        self.work = 0

    def tick(self):
        self.work += 1
        if self.work > self.max_work:
            raise WorkLimitReached(self.given_str)

    def enter(self):
        """Must be paired with leave()."""
        self.tick()
        if self.depth >= self.max_depth:
            raise RecursionLimitReached(self.given_str)
        self.depth += 1

    def leave(self):
        self.depth -= 1


class Parser:
    def __init__(self, inn: str, next_val: int, budget: Budget) -> None:
        self.inn = inn
        self.next_val = next_val
        self.budget = budget

    def invalid(self, message=None):
        raise UnableTov0Demangle(self.inn, message)

    def peek(self) -> Optional[str]:
        if self.next_val >= len(self.inn):
            return None
        return self.inn[self.next_val]

    def eat(self, b: str) -> bool:
        if self.peek() == b:
            self.next_val += 1
            return True
        return False

    def next_char(self) -> str:
        if self.next_val >= len(self.inn):
            self.invalid("Unexpected end of symbol")
        b = self.inn[self.next_val]
        self.next_val += 1
        return b

    def hex_nibbles(self) -> str:
        start = self.next_val
        while True:
            n = self.next_char()
            if n in HEX_NIBBLES:
                continue
            elif n == "_":
                break
            else:
                self.invalid(f"Invalid hex nibble: {n!r}")
        return self.inn[start : self.next_val - 1]

    def digit_10(self) -> Optional[int]:
        d = self.peek()
        if d is None or d not in string.digits:
            return None
        self.next_val += 1
        return ord(d) - ord("0")

    def digit_62(self) -> int:
        d = self.peek()
        if d is None:
            self.invalid("Unterminated base-62 number")
        if d in string.digits:
            value = ord(d) - ord("0")
        elif d in string.ascii_lowercase:
            value = 10 + (ord(d) - ord("a"))
        elif d in string.ascii_uppercase:
            value = 10 + 26 + (ord(d) - ord("A"))
        else:
            self.invalid(f"Invalid base-62 digit: {d!r}")
        self.next_val += 1
        return value

    def integer_62(self) -> int:
        if self.eat("_"):
            return 0
        x = 0
        while not self.eat("_"):
            x = x * 62 + self.digit_62()
            if x > MAX_INTEGER_62:
                self.invalid("Base-62 number overflow")
        if x + 1 > MAX_INTEGER_62:
            self.invalid("Base-62 number overflow")
        return x + 1

    def opt_integer_62(self, tag: str) -> int:
        if not self.eat(tag):
            return 0
        value = self.integer_62() + 1
        if value > MAX_INTEGER_62:
            self.invalid("Base-62 number overflow")
        return value

    def disambiguator(self) -> int:
        return self.opt_integer_62("s")

    def namespace(self) -> str:
        n = self.next_char()
        if n in string.ascii_letters:
            return n
        self.invalid(f"Invalid namespace: {n!r}")

    def backref(self, kind: str) -> BackRef:
        s_start = self.next_val - 1
        i = self.integer_62()
        if i >= s_start:
            self.invalid("Back-reference does not point backwards")
        return BackRef(i, kind)

    def ident(self) -> Identifier:
        is_punycode = self.eat("u")
        length = self.digit_10()
        if length is None:
            self.invalid("Missing identifier length")
        if length != 0:
            while True:
                d = self.digit_10()
                if d is None:
                    break
                length = length * 10 + d

        # skip past the optional separator
        self.eat("_")

        start = self.next_val
        self.next_val += length
        if self.next_val > len(self.inn):
            self.invalid("Identifier exceeds symbol")

        ident = self.inn[start : self.next_val]
        if not is_punycode:
            return Identifier(ident)
        if "_" in ident:
            i = ident.rindex("_")
            idt = Identifier(ident[:i], ident[i + 1 :])
        else:
            idt = Identifier("", ident)
        if not idt.punycode:
            self.invalid("Empty punycode identifier")
        idt.text = "".join(punycode.decode_parts(idt.ascii, idt.punycode))
        return idt

    def parse_path(self):
        self.budget.enter()
        try:
            tag = self.next_char()
            if tag == "C":
                dis = self.disambiguator()
                return CrateRoot(dis, self.ident())
            elif tag == "N":
                ns = self.namespace()
                parent = self.parse_path()
                dis = self.disambiguator()
                return NestedPath(ns, parent, dis, self.ident())
            elif tag == "M":
                dis = self.disambiguator()
                impl_path = self.parse_path()
                return InherentImpl(dis, impl_path, self.parse_type())
            elif tag == "X":
                dis = self.disambiguator()
                impl_path = self.parse_path()
                self_type = self.parse_type()
                return TraitImpl(dis, impl_path, self_type, self.parse_path())
            elif tag == "Y":
                self_type = self.parse_type()
                return TraitDefinition(self_type, self.parse_path())
            elif tag == "I":
                parent = self.parse_path()
                return GenericInstantiation(parent, self.parse_generic_args())
            elif tag == "B":
                return self.backref("path")
            self.invalid(f"Invalid path tag: {tag!r}")
        finally:
            self.budget.leave()

    def parse_generic_args(self) -> List:
        self.budget.enter()
        try:
            args = []
            while not self.eat("E"):
                args.append(self.parse_generic_arg())
            return args
        finally:
            self.budget.leave()

    def parse_generic_arg(self):
        if self.eat("L"):
            self.budget.tick()
            return Lifetime(self.integer_62())
        elif self.eat("K"):
            return self.parse_const()
        return self.parse_type()

    def parse_type(self):
        tag = self.next_char()
        if tag in BASIC_TYPES:
            self.budget.tick()
            return PrimitiveType(tag)

        self.budget.enter()
        try:
            if tag == "R" or tag == "Q":
                lifetime = self.integer_62() if self.eat("L") else 0
                return ReferenceType(tag == "Q", lifetime, self.parse_type())
            elif tag == "P" or tag == "O":
                return RawPointerType(tag == "O", self.parse_type())
            elif tag == "A":
                inner = self.parse_type()
                return ArrayType(inner, self.parse_const())
            elif tag == "S":
                return SliceType(self.parse_type())
            elif tag == "T":
                elements = []
                while not self.eat("E"):
                    elements.append(self.parse_type())
                return TupleType(elements)
            elif tag == "F":
                return self.parse_fn_sig()
            elif tag == "D":
                binder = self.opt_integer_62("G")
                bounds = []
                while not self.eat("E"):
                    bounds.append(self.parse_dyn_trait())
                if not self.eat("L"):
                    self.invalid("Missing trait object lifetime")
                return DynTraitType(binder, bounds, self.integer_62())
            elif tag == "B":
                return self.backref("type")
            # go back to the tag, so parse_path also sees it
            self.next_val -= 1
            return self.parse_path()
        finally:
            self.budget.leave()

    def parse_fn_sig(self) -> FnSigType:
        binder = self.opt_integer_62("G")
        is_unsafe = self.eat("U")
        abi = None
        if self.eat("K"):
            if self.eat("C"):
                abi = "C"
            else:
                abi_ident = self.ident()
                if not abi_ident.ascii or abi_ident.punycode:
                    self.invalid("Invalid ABI identifier")
                # dashes in the ABI name were replaced with underscores
                abi = "-".join(abi_ident.ascii.split("_"))
        params = []
        while not self.eat("E"):
            params.append(self.parse_type())
        return_type = None if self.eat("u") else self.parse_type()
        return FnSigType(binder, is_unsafe, abi, params, return_type)

    def parse_dyn_trait(self) -> DynTrait:
        self.budget.enter()
        try:
            dyn_trait = DynTrait(self.parse_path())
            while self.eat("p"):
                name = self.ident()
                dyn_trait.projections.append((name, self.parse_type()))
            return dyn_trait
        finally:
            self.budget.leave()

    def parse_const(self):
        self.budget.enter()
        try:
            if self.eat("B"):
                return self.backref("const")

            ty_tag = self.next_char()
            if ty_tag == "p":
                return PlaceholderConst()
            elif ty_tag in UNSIGNED_CONST_TAGS:
                return IntConst(ty_tag, False, self.hex_nibbles())
            elif ty_tag in SIGNED_CONST_TAGS:
                negative = self.eat("n")
                return IntConst(ty_tag, negative, self.hex_nibbles())
            elif ty_tag == "b":
                hex_val = self.hex_nibbles()
                if hex_val == "0":
                    return BoolConst(False)
                elif hex_val == "1":
                    return BoolConst(True)
                self.invalid(f"Invalid bool constant: {hex_val!r}")
            elif ty_tag == "c":
                return CharConst(self.const_char())
            elif ty_tag == "e":
                return StrConst(self.const_str())
            elif ty_tag == "R" or ty_tag == "Q":
                if ty_tag == "R" and self.eat("e"):
                    return StrConst(self.const_str(), referenced=True)
                return RefConst(ty_tag == "Q", self.parse_const())
            self.invalid(f"Invalid constant type: {ty_tag!r}")
        finally:
            self.budget.leave()

    def const_char(self) -> str:
        hex_val = self.hex_nibbles()
        # valid chars fit in 32 bit
        if len(hex_val) > 8:
            self.invalid("Char constant too large")
        code_point = int(hex_val, 16) if hex_val else 0
        if code_point > 0x10FFFF or 0xD800 <= code_point <= 0xDFFF:
            self.invalid(f"Invalid char constant: 0x{code_point:x}")
        return chr(code_point)

    def const_str(self) -> str:
        hex_val = self.hex_nibbles()
        if len(hex_val) % 2:
            self.invalid("Odd number of nibbles in string constant")
        try:
            return bytes.fromhex(hex_val).decode("utf-8")
        except UnicodeDecodeError:
            self.invalid("String constant is not valid UTF-8")


class V0Demangler:
    def __init__(self, config=None):
        self.config = config if config is not None else DemanglerConfig()

    def create_budget(self, given_str="") -> Budget:
        return Budget(self.config.MAX_DEPTH, self.config.MAX_WORK, given_str)

    def parse(self, inpstr: str, budget: Optional[Budget] = None) -> V0Symbol:
        """Decode the grammar following the "_R" prefix.

        Back-references are recorded but not followed, the Printer resolves them.
        Text after the path(s) is returned as suffix, for the caller to validate.
        """
        self.sanity_check(inpstr)
        if budget is None:
            budget = self.create_budget(inpstr)
        parser = Parser(inpstr, 0, budget)
        path = parser.parse_path()

        # instantiating crate, paths always start with uppercase characters
        instantiating_crate = None
        next_char = parser.peek()
        if next_char is not None and next_char in string.ascii_uppercase:
            instantiating_crate = parser.parse_path()
        return V0Symbol(path, instantiating_crate, inpstr[parser.next_val :])

    def resolve(self, inpstr: str, backref: BackRef, budget: Budget):
        """Re-enter the grammar at the target of a back-reference, under the given budget.

        The caller has already entered a level for the back-reference node.
        """
        budget.tick()
        parser = Parser(inpstr, backref.offset, budget)
        if backref.kind == "path":
            return parser.parse_path()
        elif backref.kind == "type":
            return parser.parse_type()
        elif backref.kind == "const":
            return parser.parse_const()
        raise UnableTov0Demangle(inpstr, f"Unknown back-reference kind: {backref.kind}")

    def sanity_check(self, inpstr: str):
        if not inpstr or inpstr[0] not in string.ascii_uppercase:
            raise UnableTov0Demangle(inpstr)

        for i in inpstr:
            if ord(i) & 0x80 != 0:
                raise UnableTov0Demangle(inpstr)
