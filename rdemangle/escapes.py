import string
import unicodedata
from typing import Optional

# legacy symbols escape characters outside of [A-Za-z0-9_.$] with these tokens
LEGACY_UNESCAPED = {"SP": "@", "BP": "*", "RF": "&", "LT": "<", "GT": ">", "LP": "(", "RP": ")", "C": ","}
LEGACY_ESCAPED = {char: token for token, char in LEGACY_UNESCAPED.items()}

DEBUG_ESCAPES = {"\0": "\\0", "\t": "\\t", "\r": "\\r", "\n": "\\n", "\\": "\\\\", "'": "\\'", '"': '\\"'}

# space is the only separator that is printed literally
NON_PRINTABLE_CATEGORIES = ("Cc", "Cf", "Cs", "Co", "Cn", "Zl", "Zp", "Zs")
GRAPHEME_EXTEND_CATEGORIES = ("Mn", "Me")


def unescape_legacy(escape: str) -> Optional[str]:
    """Resolve the token between two '$' of a legacy identifier.

    Returns None for unknown tokens, in which case the rest of the identifier is printed verbatim.
    """
    if escape in LEGACY_UNESCAPED:
        return LEGACY_UNESCAPED[escape]
    if escape.startswith("u"):
        digits = escape[1:]
        if not digits or not all(c in "0123456789abcdef" for c in digits):
            return None
        code_point = int(digits, 16)
        if not is_scalar_value(code_point):
            return None
        c = chr(code_point)
        if not is_printable(c):
            return None
        return c
    return None


def escape_legacy(c: str) -> str:
    """The "$...$" token a legacy identifier uses for c, or c itself if it needs none."""
    if c in LEGACY_ESCAPED:
        return f"${LEGACY_ESCAPED[c]}$"
    if c in string.ascii_letters or c in string.digits or c in "_.":
        return c
    return f"$u{ord(c):x}$"


def is_scalar_value(code_point: int) -> bool:
    return 0 <= code_point <= 0x10FFFF and not 0xD800 <= code_point <= 0xDFFF


def is_printable(c: str) -> bool:
    if c == " ":
        return True
    return unicodedata.category(c) not in NON_PRINTABLE_CATEGORIES


def is_grapheme_extend(c: str) -> bool:
    return unicodedata.category(c) in GRAPHEME_EXTEND_CATEGORIES


def escape_debug(c: str) -> str:
    if c in DEBUG_ESCAPES:
        return DEBUG_ESCAPES[c]
    if is_printable(c) and not is_grapheme_extend(c):
        return c
    return "\\u{%x}" % ord(c)


def escape_identifier(text: str) -> str:
    """Identifiers keep combining marks, only characters that are not printable are escaped."""
    return "".join(c if is_printable(c) else "\\u{%x}" % ord(c) for c in text)


def quote_escaped(text: str, quote: str) -> str:
    """Render text as a Rust char or string literal delimited by quote."""
    parts = [quote]
    for c in text:
        # the opposite kind of quote needs no escaping
        if (quote, c) in (('"', "'"), ("'", '"')):
            parts.append(c)
        else:
            parts.append(escape_debug(c))
    parts.append(quote)
    return "".join(parts)


def is_symbol_like(text: str) -> bool:
    return all(c in string.ascii_letters or c in string.digits or c in string.punctuation for c in text)
