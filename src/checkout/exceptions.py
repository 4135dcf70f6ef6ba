"""Exceptions raised by the checkout core.

Input validation failures use ``protean.exceptions.ValidationError`` like the
rest of the domain model. The classes here cover the two failure modes that
are not about malformed input.
"""


class CheckoutError(Exception):
    """Base exception for checkout errors that are not validation failures."""

    pass


class RemoteUnavailable(CheckoutError):
    """A remote collaborator (cart persistence, order submission) failed or timed out."""

    def __init__(self, collaborator: str, reason: str | None = None):
        self.collaborator = collaborator
        self.reason = reason
        msg = f"{collaborator} is unavailable"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ComputationInvariantViolation(CheckoutError, AssertionError):
    """A cart computation produced a negative or non-finite amount.

    Never expected with validated inputs; signals a programming defect.
    """

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"Computed {field} is invalid: {value!r}")
