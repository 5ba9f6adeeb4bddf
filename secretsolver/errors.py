class SecretSolverError(Exception):
    """Base class for every error raised while recovering a secret"""


class InvalidInput(SecretSolverError, ValueError):
    """Malformed threshold, too few shares, duplicate x or bad bounds"""


class DivisionByZero(SecretSolverError, ZeroDivisionError):
    """A denominator or an inverse target is zero"""


class NonIntegerResult(SecretSolverError, ArithmeticError):
    """Exact interpolation produced a value that is not an integer"""

    def __init__(self, message, value=None):
        self.value = value
        super().__init__(message)


class InsufficientConsistentShares(SecretSolverError):
    """No reconstructed value is backed by at least k consistent shares"""
