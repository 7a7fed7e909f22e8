"""Custom exceptions for gradvol."""


class GradVolError(Exception):
    """Base exception for all gradvol errors."""


class ShapeMismatchError(GradVolError, ValueError, AssertionError):
    """
    The observed price, spot, maturity and strike arrays differ in shape.

    Also an AssertionError: callers written against the assert-style
    contract keep working.
    """


class LockAcquisitionError(GradVolError, RuntimeError):
    """The shared volatility array could not be locked within the timeout."""
