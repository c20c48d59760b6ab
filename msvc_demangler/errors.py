"""
Errors raised while demangling.

Every error is a `ValueError`, so callers that only want to know whether a symbol
could be demangled can catch that.
"""


class DemangleError(ValueError):
    """
    Base class for all demangling failures.
    """


class BadNumber(DemangleError):
    """A mangled number was not terminated by `@`."""


class UnterminatedString(DemangleError):
    """A name segment was not terminated by `@`."""


class DanglingReference(DemangleError):
    """A back-reference digit points past the end of the back-reference table."""


class UnknownFunctionClass(DemangleError):
    pass


class UnknownCallingConvention(DemangleError):
    pass


class UnknownPrimitiveType(DemangleError):
    pass


class InvalidArrayDimension(DemangleError):
    pass


class UnknownStorageClass(DemangleError):
    """Unknown storage class after an array's `$$C` marker."""


class UnterminatedParameterList(DemangleError):
    """The input ended inside a function parameter or template argument list."""


class NestingTooDeep(DemangleError):
    """Types are nested deeper than the demangler is willing to follow."""
