"""
Exception types raised by sddtensor.

Both errors derive from ValueError so callers that already guard numerical
entry points with ``except ValueError`` keep working.
"""


class MissingInputError(ValueError):
    """Raised when the tensor to decompose is not supplied."""


class InvalidArgumentError(ValueError):
    """Raised when a parameter, tensor shape or mode vector is malformed."""
