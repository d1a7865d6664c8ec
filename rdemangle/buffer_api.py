"""Fixed-capacity interface, filling a caller-supplied buffer instead of returning a new string.

Usage:
    buffer = bytearray(256)
    status, length = display_demangle(b"_ZN3foo3barE", buffer)
    if status == DEMANGLE_OVERFLOW:
        buffer = bytearray(length)
        status, length = display_demangle(b"_ZN3foo3barE", buffer)
    name = bytes(buffer[:length])
"""
import logging

from .printer import RenderStyle
from .rust import RustDemangler

LOGGER = logging.getLogger(__name__)

DEMANGLE_OK = 0
DEMANGLE_OVERFLOW = 1


def display_demangle(symbol, buffer, style=RenderStyle.VERBOSE, demangler=None):
    """Write the UTF-8 encoded demangled form of symbol into buffer.

    Symbols that can't be demangled are copied unchanged, like demangle() does.

    Args:
        symbol (str|bytes): the candidate symbol, may be empty or not valid UTF-8
        buffer (bytearray|memoryview): writable output buffer, its length is the capacity
        style (RenderStyle): level of detail of the output
        demangler (RustDemangler): optional, to use a non-default configuration

    Returns:
        (DEMANGLE_OK, bytes written) or (DEMANGLE_OVERFLOW, bytes required), nothing is written on overflow
    """
    if demangler is None:
        demangler = RustDemangler()
    if isinstance(symbol, str):
        symbol = symbol.encode("utf-8", "surrogatepass")
    output = demangler.demangle(bytes(symbol), style)
    if len(output) > len(buffer):
        LOGGER.debug("Buffer of %d bytes too small, %d required", len(buffer), len(output))
        return DEMANGLE_OVERFLOW, len(output)
    buffer[: len(output)] = output
    return DEMANGLE_OK, len(output)
