"""Punycode decoding as used for internationalized identifiers.

The v0 mangling separates the basic code points from the encoded insertions with "_"
instead of the "-" of RFC 3492, which is why the separator can be chosen.
"""
import string
from typing import List

from .escapes import is_scalar_value
from .exceptions import InvalidPunycode

BASE = 36
T_MIN = 1
T_MAX = 26
SKEW = 38
INITIAL_DAMP = 700
INITIAL_BIAS = 72
INITIAL_N = 0x80
# intermediate values are limited to 64 bit, like the native implementations
MAX_VALUE = 0xFFFFFFFFFFFFFFFF


def decode_digit(c: str, encoded: str) -> int:
    if c in string.ascii_lowercase:
        return ord(c) - ord("a")
    elif c in string.digits:
        return 26 + (ord(c) - ord("0"))
    raise InvalidPunycode(encoded, f"Invalid punycode digit: {c!r}")


def adapt(delta: int, num_points: int, damp: int) -> int:
    delta = delta // damp
    delta += delta // num_points
    k = 0
    while delta > ((BASE - T_MIN) * T_MAX) // 2:
        delta = delta // (BASE - T_MIN)
        k += BASE
    return k + ((BASE - T_MIN + 1) * delta) // (delta + SKEW)


def _checked(value: int, encoded: str) -> int:
    if value > MAX_VALUE:
        raise InvalidPunycode(encoded, "Punycode arithmetic overflow")
    return value


def decode_parts(basic: str, deltas: str) -> List[str]:
    """Decode punycode given as its basic code points and its encoded insertions.

    Args:
        basic: The code points copied verbatim, everything before the last separator.
        deltas: The generalized variable-length integers describing the insertions.

    Raises:
        InvalidPunycode: On invalid digits, overflow or invalid scalar values.

    Returns:
        The decoded code points, in order.
    """
    if not deltas:
        raise InvalidPunycode(basic, "Missing punycode insertions")
    encoded = f"{basic}-{deltas}" if basic else deltas
    output = list(basic)
    damp = INITIAL_DAMP
    bias = INITIAL_BIAS
    i = 0
    n = INITIAL_N
    count = 0
    while count < len(deltas):
        # read one delta value
        delta = 0
        w = 1
        k = 0
        while True:
            k += BASE
            t = min(max(k - bias, T_MIN), T_MAX)
            if count >= len(deltas):
                raise InvalidPunycode(encoded, "Truncated punycode delta")
            d = decode_digit(deltas[count], encoded)
            count += 1
            delta = _checked(delta + d * w, encoded)
            if d < t:
                break
            w = _checked(w * (BASE - t), encoded)

        length = len(output) + 1
        i = _checked(i + delta, encoded)
        n = _checked(n + i // length, encoded)
        i %= length
        if not is_scalar_value(n):
            raise InvalidPunycode(encoded, f"Invalid code point: 0x{n:x}")
        output.insert(i, chr(n))
        i += 1

        bias = adapt(delta, length, damp)
        damp = 2
    return output


def decode(encoded: str, delimiter: str = "-") -> str:
    """Decode a complete punycode string, e.g. "mnchen-3ya" to "münchen"."""
    index = encoded.rfind(delimiter)
    if index == -1:
        return "".join(decode_parts("", encoded))
    return "".join(decode_parts(encoded[:index], encoded[index + 1 :]))
