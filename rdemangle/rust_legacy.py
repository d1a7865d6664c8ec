import string

from .exceptions import UnableToLegacyDemangle
from .nodes import LegacySymbol


class LegacyDemangler:
    """Decoder for the length-prefixed "_ZN...E" scheme.

    Escapes within the path elements are kept as they are, the Printer resolves them.
    """

    def parse(self, inpstr: str) -> LegacySymbol:
        """Split the path following the "_ZN" prefix into its elements.

        Args:
            inpstr (str): Symbol without its prefix, e.g. "3foo3barE"

        Raises:
            UnableToLegacyDemangle: If lengths are missing or malformed or the terminating "E" is absent.

        Returns:
            LegacySymbol: the path elements and anything trailing the "E"
        """
        self.sanity_check(inpstr)

        elements = []
        c = 0
        while c < len(inpstr) and inpstr[c] != "E":
            if inpstr[c] not in string.digits:
                raise UnableToLegacyDemangle(inpstr)

            length = 0
            while c < len(inpstr) and inpstr[c] in string.digits:
                length = length * 10 + int(inpstr[c])
                c += 1

            if c + length > len(inpstr):
                raise UnableToLegacyDemangle(inpstr)

            elements.append(inpstr[c : c + length])
            c += length

        if c >= len(inpstr) or not elements:
            raise UnableToLegacyDemangle(inpstr)
        return LegacySymbol(elements, inpstr[c + 1 :])

    def sanity_check(self, inpstr: str):
        # only work with ascii text
        for i in inpstr:
            if ord(i) & 0x80 != 0:
                raise UnableToLegacyDemangle(inpstr)


def is_rust_hash(s: str) -> bool:
    # Rust hashes are hex digits with an 'h' prepended, usually emitted as '17h' + 16 hex digits
    return s.startswith("h") and all(i in string.hexdigits for i in s[1:])
