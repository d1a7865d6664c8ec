import logging
import re

from .printer import RenderStyle
from .rust import RustDemangler

LOGGER = logging.getLogger(__name__)

# a symbol runs as far as the characters a mangled name can contain
SYMBOL_PATTERN = re.compile(r"_?_(?:ZN|R)[\w$.]*", re.ASCII)


def demangle_line(line: str, style=RenderStyle.VERBOSE, demangler=None) -> str:
    """Replace every mangled Rust symbol found in line by its demangled form.

    Candidates that don't demangle are left untouched.
    """
    if demangler is None:
        demangler = RustDemangler()
    return SYMBOL_PATTERN.sub(lambda match: demangler.demangle(match.group(0), style), line)


def demangle_stream(instream, outstream, style=RenderStyle.VERBOSE, demangler=None):
    """Filter instream line by line into outstream, returns the number of lines processed."""
    if demangler is None:
        demangler = RustDemangler()
    num_lines = 0
    for line in instream:
        outstream.write(demangle_line(line, style, demangler))
        num_lines += 1
    LOGGER.debug("Filtered %d lines", num_lines)
    return num_lines
