import logging
from enum import Enum

from .escapes import escape_identifier, quote_escaped, unescape_legacy
from .exceptions import OutputLimitExceeded, UnableTov0Demangle
from .nodes import (
    BASIC_TYPES,
    CONST_NODES,
    PATH_NODES,
    ArrayType,
    BackRef,
    BoolConst,
    CharConst,
    CrateRoot,
    DynTraitType,
    FnSigType,
    GenericInstantiation,
    InherentImpl,
    IntConst,
    LegacySymbol,
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
from .rust_legacy import is_rust_hash

LOGGER = logging.getLogger(__name__)


class RenderStyle(Enum):
    # hashes, crate disambiguators, const types and generic arguments
    VERBOSE = "verbose"
    # no hashes, disambiguators or const types
    NO_HASH = "nohash"
    # like NO_HASH and without generic argument lists
    COMPACT = "compact"

    @property
    def show_hashes(self) -> bool:
        return self is RenderStyle.VERBOSE

    @property
    def show_generics(self) -> bool:
        return self is not RenderStyle.COMPACT


class CountingSink:
    """Discards everything written to it, only counting the UTF-8 encoded length."""

    def __init__(self, limit=None, given_str=""):
        self.limit = limit
        self.given_str = given_str
        self.length = 0

    def write(self, text):
        self.length += len(text.encode("utf-8", "surrogateescape"))
        if self.limit is not None and self.length > self.limit:
            raise OutputLimitExceeded(self.given_str)
        return len(text)


class Printer:
    """Streams the human readable form of a decoded symbol into a sink.

    The sink can be anything providing write(str), nothing is buffered here.
    Back-references are resolved lazily through resolver(backref, budget), re-entering
    the decoder under the same budget that limits the printer's own recursion.
    """

    def __init__(self, sink, style, budget, resolver=None):
        self.sink = sink
        self.style = style
        self.budget = budget
        self.resolver = resolver
        self.bound_lifetime_depth = 0

    def print(self, text):
        self.sink.write(text)

    def invalid(self, message=None):
        raise UnableTov0Demangle(self.budget.given_str, message)

    def print_symbol(self, symbol):
        if isinstance(symbol, LegacySymbol):
            self.print_legacy(symbol)
        elif isinstance(symbol, V0Symbol):
            # the instantiating crate is never shown
            self.print_path(symbol.path, True)
        else:
            self.invalid(f"Unknown symbol type: {type(symbol).__name__}")

    def print_legacy(self, symbol):
        elements = symbol.elements
        for index, rest in enumerate(elements):
            if not self.style.show_hashes and index + 1 == len(elements) and is_rust_hash(rest):
                break
            if index != 0:
                self.print("::")
            self.print_legacy_element(rest)

    def print_legacy_element(self, rest):
        if rest.startswith("_$"):
            rest = rest[1:]

        while rest:
            if rest.startswith("."):
                if rest[1:].startswith("."):
                    self.print("::")
                    rest = rest[2:]
                else:
                    self.print(".")
                    rest = rest[1:]

            elif rest.startswith("$"):
                end = rest.find("$", 1)
                if end == -1:
                    break
                unescaped = unescape_legacy(rest[1:end])
                if unescaped is None:
                    break
                self.print(unescaped)
                rest = rest[end + 1 :]

            else:
                dollar = rest.find("$")
                dot = rest.find(".")
                idx = min(i for i in (dollar, dot, len(rest)) if i != -1)
                self.print(escape_identifier(rest[:idx]))
                rest = rest[idx:]
        # whatever could not be unescaped is shown verbatim
        self.print(escape_identifier(rest))

    def print_ident(self, ident):
        self.print(escape_identifier(ident.text))

    def resolve(self, backref):
        if self.resolver is None:
            self.invalid("Back-reference without a decoder")
        return self.resolver(backref, self.budget)

    def print_lifetime_from_index(self, lt):
        self.print("'")
        if lt == 0:
            self.print("_")
            return
        depth = self.bound_lifetime_depth - lt
        if depth < 0:
            self.invalid(f"Unbound lifetime: {lt}")

        # alphabetic first, then '_26 and onwards
        if depth < 26:
            self.print(chr(ord("a") + depth))
        else:
            self.print(f"_{depth}")

    def print_binder(self, bound_lifetimes):
        if bound_lifetimes > 0:
            self.print("for<")
            for i in range(bound_lifetimes):
                if i > 0:
                    self.print(", ")
                self.bound_lifetime_depth += 1
                self.print_lifetime_from_index(1)
            self.print("> ")

    def print_path(self, node, in_value):
        self.budget.enter()
        try:
            if isinstance(node, CrateRoot):
                self.print_ident(node.name)
                if self.style.show_hashes:
                    self.print(f"[{node.disambiguator:x}]")

            elif isinstance(node, NestedPath):
                self.print_path(node.parent, in_value)
                name = node.name
                if node.namespace.isupper():
                    self.print("::{")
                    if node.namespace == "C":
                        self.print("closure")
                    elif node.namespace == "S":
                        self.print("shim")
                    else:
                        self.print(node.namespace)
                    if not name.is_empty():
                        self.print(":")
                        self.print_ident(name)
                    self.print(f"#{node.disambiguator}")
                    self.print("}")
                elif not name.is_empty():
                    self.print("::")
                    self.print_ident(name)

            elif isinstance(node, (InherentImpl, TraitImpl, TraitDefinition)):
                # the impl's own path is not shown
                self.print("<")
                self.print_type(node.self_type)
                if not isinstance(node, InherentImpl):
                    self.print(" as ")
                    self.print_path(node.trait, False)
                self.print(">")

            elif isinstance(node, GenericInstantiation):
                self.print_path(node.parent, in_value)
                if self.style.show_generics:
                    if in_value:
                        self.print("::")
                    self.print("<")
                    self.print_generic_args(node.args)
                    self.print(">")

            elif isinstance(node, BackRef):
                self.print_path(self.resolve(node), in_value)

            else:
                self.invalid(f"Not a path: {type(node).__name__}")
        finally:
            self.budget.leave()

    def print_generic_args(self, args):
        self.budget.enter()
        try:
            for index, arg in enumerate(args):
                if index > 0:
                    self.print(", ")
                if isinstance(arg, Lifetime):
                    self.print_lifetime_from_index(arg.index)
                elif isinstance(arg, CONST_NODES):
                    self.print_const(arg)
                elif isinstance(arg, BackRef) and arg.kind == "const":
                    self.print_const(arg)
                else:
                    self.print_type(arg)
        finally:
            self.budget.leave()

    def print_type(self, node):
        if isinstance(node, PrimitiveType):
            self.budget.tick()
            self.print(node.name)
            return

        self.budget.enter()
        try:
            if isinstance(node, ReferenceType):
                self.print("&")
                if node.lifetime != 0:
                    self.print_lifetime_from_index(node.lifetime)
                    self.print(" ")
                if node.mutable:
                    self.print("mut ")
                self.print_type(node.inner)

            elif isinstance(node, RawPointerType):
                self.print("*mut " if node.mutable else "*const ")
                self.print_type(node.inner)

            elif isinstance(node, ArrayType):
                self.print("[")
                self.print_type(node.inner)
                self.print("; ")
                self.print_const(node.length)
                self.print("]")

            elif isinstance(node, SliceType):
                self.print("[")
                self.print_type(node.inner)
                self.print("]")

            elif isinstance(node, TupleType):
                self.print("(")
                for index, element in enumerate(node.elements):
                    if index > 0:
                        self.print(", ")
                    self.print_type(element)
                if len(node.elements) == 1:
                    self.print(",")
                self.print(")")

            elif isinstance(node, FnSigType):
                self.print_fn_sig(node)

            elif isinstance(node, DynTraitType):
                self.print("dyn ")
                self.print_binder(node.binder)
                for index, bound in enumerate(node.bounds):
                    if index > 0:
                        self.print(" + ")
                    self.print_dyn_trait(bound)
                self.bound_lifetime_depth -= node.binder
                if node.lifetime != 0:
                    self.print(" + ")
                    self.print_lifetime_from_index(node.lifetime)

            elif isinstance(node, BackRef):
                self.print_type(self.resolve(node))

            elif isinstance(node, PATH_NODES):
                self.print_path(node, False)

            else:
                self.invalid(f"Not a type: {type(node).__name__}")
        finally:
            self.budget.leave()

    def print_fn_sig(self, node):
        self.print_binder(node.binder)
        if node.is_unsafe:
            self.print("unsafe ")
        if node.abi is not None:
            self.print(f'extern "{node.abi}" ')

        self.print("fn(")
        for index, param in enumerate(node.params):
            if index > 0:
                self.print(", ")
            self.print_type(param)
        self.print(")")

        if node.return_type is not None:
            self.print(" -> ")
            self.print_type(node.return_type)
        self.bound_lifetime_depth -= node.binder

    def print_path_maybe_open_generics(self, node):
        """Print a trait path, leaving its generic argument list open for projections.

        Returns whether a "<" was left open.
        """
        if isinstance(node, BackRef):
            self.budget.enter()
            try:
                return self.print_path_maybe_open_generics(self.resolve(node))
            finally:
                self.budget.leave()
        elif isinstance(node, GenericInstantiation) and self.style.show_generics:
            self.print_path(node.parent, False)
            self.print("<")
            self.print_generic_args(node.args)
            return True
        self.print_path(node, False)
        return False

    def print_dyn_trait(self, dyn_trait):
        self.budget.enter()
        try:
            is_open = self.print_path_maybe_open_generics(dyn_trait.path)
            if self.style.show_generics:
                for name, ty in dyn_trait.projections:
                    if not is_open:
                        self.print("<")
                        is_open = True
                    else:
                        self.print(", ")
                    self.print_ident(name)
                    self.print(" = ")
                    self.print_type(ty)
            if is_open:
                self.print(">")
        finally:
            self.budget.leave()

    def print_const(self, node):
        self.budget.enter()
        try:
            if isinstance(node, BackRef):
                self.print_const(self.resolve(node))
                return
            elif isinstance(node, PlaceholderConst):
                self.print("_")
                return
            elif isinstance(node, IntConst):
                if node.negative:
                    self.print("-")
                # anything that doesn't fit in 64 bit is shown verbatim
                if len(node.nibbles) > 16:
                    self.print("0x")
                    self.print(node.nibbles)
                else:
                    self.print(str(abs(node.value)))
            elif isinstance(node, BoolConst):
                self.print("true" if node.value else "false")
            elif isinstance(node, CharConst):
                self.print(quote_escaped(node.value, "'"))
            elif isinstance(node, StrConst):
                if not node.referenced:
                    # a string literal has type &str, deref to get back to str
                    self.print("*")
                self.print(quote_escaped(node.value, '"'))
                return
            elif isinstance(node, RefConst):
                self.print("&mut " if node.mutable else "&")
                self.print_const(node.inner)
                return
            else:
                self.invalid(f"Not a constant: {type(node).__name__}")

            if self.style.show_hashes:
                self.print(": ")
                self.print(BASIC_TYPES[node.tag])
        finally:
            self.budget.leave()
