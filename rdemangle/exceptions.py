class DemangleError(Exception):
    default_message = "Not able to demangle the given string"

    def __init__(self, given_str, message=None):
        self.message = message if message is not None else self.default_message
        self.given_str = given_str
        super().__init__(self.message)

    def __str__(self):
        return f"[{self.given_str}] {self.message}"


class TypeNotFoundError(DemangleError):
    default_message = "Not able to detect the Type for the given string"


class UnableToLegacyDemangle(DemangleError):
    default_message = "Not able to demangle the given string using LegacyDemangler"


class UnableTov0Demangle(DemangleError):
    default_message = "Not able to demangle the given string using v0Demangler"


class RecursionLimitReached(UnableTov0Demangle):
    default_message = "Recursion limit exceeded"


class WorkLimitReached(UnableTov0Demangle):
    default_message = "Work limit exceeded"


class InvalidPunycode(DemangleError):
    default_message = "Not able to decode the given punycode"


class OutputLimitExceeded(DemangleError):
    default_message = "Output size limit exceeded"
