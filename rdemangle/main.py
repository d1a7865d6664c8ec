from .printer import RenderStyle
from .rust import RustDemangler

DEFAULT_DEMANGLER = RustDemangler()


def demangle(inp_str, style=RenderStyle.VERBOSE):
    """Demangle a Rust mangled symbol name.

    Args:
        inp_str: The mangled symbol name to demangle, as str or bytes.
        style: The RenderStyle to use.

    Returns:
        The demangled symbol name, or inp_str unchanged if it is not a valid Rust symbol.
    """
    return DEFAULT_DEMANGLER.demangle(inp_str, style)


def try_demangle(inp_str, style=RenderStyle.VERBOSE):
    """Demangle a Rust mangled symbol name.

    Raises:
        TypeNotFoundError: If the symbol doesn't match known Rust mangling schemes.
        UnableTov0Demangle: If v0 demangling fails.
        UnableToLegacyDemangle: If legacy demangling fails.
    """
    return DEFAULT_DEMANGLER.try_demangle(inp_str, style)


def is_mangled(inp_str) -> bool:
    return DEFAULT_DEMANGLER.is_mangled(inp_str)


def write_demangled(inp_str, sink, style=RenderStyle.VERBOSE) -> bool:
    """Write the demangled name (or inp_str unchanged) to sink, returns whether it was demangled."""
    return DEFAULT_DEMANGLER.write(inp_str, sink, style)
