import io
import logging
from enum import Enum
from typing import Tuple

from .DemanglerConfig import DemanglerConfig
from .escapes import is_symbol_like
from .exceptions import DemangleError, RecursionLimitReached, TypeNotFoundError
from .printer import CountingSink, Printer, RenderStyle
from .rust_legacy import LegacyDemangler
from .rust_v0 import V0Demangler

LOGGER = logging.getLogger(__name__)

LEGACY_PREFIXES = (
    "_ZN",
    # dbghelp on Windows strips leading underscores
    "ZN",
    # symbols on macOS carry an extra underscore
    "__ZN",
)
V0_PREFIXES = ("_R", "R", "__R")
LLVM_SUFFIX = ".llvm."
LLVM_SUFFIX_CHARS = "0123456789ABCDEF@"
SUFFIX_SEPARATORS = (".", "@")
BYTES_TYPES = (bytes, bytearray, memoryview)


def to_text(inpstr):
    """Decode bytes-like input, undecodable bytes survive as lone surrogates."""
    if isinstance(inpstr, BYTES_TYPES):
        return bytes(inpstr).decode("utf-8", "surrogateescape")
    return inpstr


class ManglingType(Enum):
    LEGACY = 0
    V0 = 1


class DemangledSymbol:
    """A successfully decoded symbol, ready to be printed in any RenderStyle."""

    def __init__(self, original, mangling_type, symbol, inner):
        self.original = original
        self.mangling_type = mangling_type
        self.symbol = symbol
        self.inner = inner

    @property
    def suffix(self):
        return self.symbol.suffix


class RustDemangler:
    def __init__(self, config=None):
        self.config = config if config is not None else DemanglerConfig()
        self.legacy = LegacyDemangler()
        self.v0 = V0Demangler(self.config)

    def demangle(self, inpstr, style=RenderStyle.VERBOSE):
        """Demangle the given string, returning it unchanged if it can't be demangled.

        Args:
            inpstr (str|bytes): String to be demangled, bytes are answered with bytes
            style (RenderStyle): level of detail of the output
        """
        output = io.StringIO()
        demangled = self.write(inpstr, output, style)
        if isinstance(inpstr, BYTES_TYPES):
            if not demangled:
                return bytes(inpstr)
            return output.getvalue().encode("utf-8", "surrogateescape")
        return output.getvalue()

    def try_demangle(self, inpstr, style=RenderStyle.VERBOSE):
        """Demangle the given string

        Raises:
            DemangleError: If the string is not a mangled Rust symbol or can't be decoded
        """
        demangled = self.parse(to_text(inpstr))
        self.validate(demangled)
        output = io.StringIO()
        self.render(demangled, output, style)
        if isinstance(inpstr, BYTES_TYPES):
            return output.getvalue().encode("utf-8", "surrogateescape")
        return output.getvalue()

    def is_mangled(self, inpstr) -> bool:
        inpstr = to_text(inpstr)
        try:
            self.validate(self.parse(inpstr))
        except DemangleError as exc:
            LOGGER.debug("Not a mangled Rust symbol %s: %s", inpstr, exc)
            return False
        return True

    def write(self, inpstr, sink, style=RenderStyle.VERBOSE) -> bool:
        """Stream the demangled form of the given string into sink.

        Nothing reaches the sink before the whole symbol decoded and rendered successfully,
        otherwise the original string is written instead. Bytes are written as decoded text.

        Returns:
            bool: whether the string was demangled
        """
        inpstr = to_text(inpstr)
        try:
            demangled = self.parse(inpstr)
            self.validate(demangled)
        except DemangleError as exc:
            LOGGER.debug("Failed to demangle Rust symbol %s: %s", inpstr, exc)
            sink.write(inpstr)
            return False
        self.render(demangled, sink, style)
        return True

    def parse(self, inpstr: str) -> DemangledSymbol:
        """Classify and decode the given string, without following back-references.

        Raises:
            DemangleError: If the string is not a mangled Rust symbol or its grammar is violated
        """
        stripped = self.strip_llvm_suffix(inpstr)
        curr_type, inner = self.determine_type(stripped)
        try:
            if curr_type == ManglingType.LEGACY:
                symbol = self.legacy.parse(inner)
            else:
                symbol = self.v0.parse(inner, self.v0.create_budget(inpstr))
        except RecursionError as exc:
            raise RecursionLimitReached(inpstr) from exc

        if symbol.suffix:
            if not (symbol.suffix.startswith(SUFFIX_SEPARATORS) and is_symbol_like(symbol.suffix)):
                raise DemangleError(inpstr, f"Unexpected trailing data: {symbol.suffix!r}")
        return DemangledSymbol(inpstr, curr_type, symbol, inner)

    def validate(self, demangled: DemangledSymbol):
        """Render into a counting sink, following every back-reference the most verbose style reaches."""
        self.render(demangled, CountingSink(self.config.MAX_OUTPUT_SIZE, demangled.original), RenderStyle.VERBOSE)

    def render(self, demangled: DemangledSymbol, sink, style=RenderStyle.VERBOSE):
        budget = self.v0.create_budget(demangled.original)

        def resolver(backref, budget):
            return self.v0.resolve(demangled.inner, backref, budget)

        printer = Printer(sink, style, budget, resolver)
        try:
            printer.print_symbol(demangled.symbol)
        except RecursionError as exc:
            raise RecursionLimitReached(demangled.original) from exc
        sink.write(demangled.suffix)

    def determine_type(self, inpstr: str) -> Tuple[ManglingType, str]:
        """Determine the type of the given string

        Args:
            inpstr (str): Input String

        Raises:
            TypeNotFoundError: If the string can't be determined

        Returns:
            ManglingType, str: type of the string and the string without its prefix
        """
        for prefix in LEGACY_PREFIXES:
            if inpstr.startswith(prefix):
                return ManglingType.LEGACY, inpstr[len(prefix) :]
        for prefix in V0_PREFIXES:
            if inpstr.startswith(prefix):
                return ManglingType.V0, inpstr[len(prefix) :]
        raise TypeNotFoundError(inpstr)

    def strip_llvm_suffix(self, inpstr: str) -> str:
        # ThinLTO may import and rename internal symbols, appending ".llvm.<hash>"
        index = inpstr.find(LLVM_SUFFIX)
        if index == -1:
            return inpstr
        candidate = inpstr[index + len(LLVM_SUFFIX) :]
        if all(c in LLVM_SUFFIX_CHARS for c in candidate):
            return inpstr[:index]
        return inpstr
