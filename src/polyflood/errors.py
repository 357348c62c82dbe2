class PolyfloodError(Exception):
    """Base class for all polyflood-related errors."""

    pass


class ValidationError(PolyfloodError, ValueError):
    """Raised when input data or configuration fails validation checks."""

    pass


class SolverError(PolyfloodError):
    """Raised when a transport solve cannot produce a solution."""

    pass


class BracketingError(SolverError):
    """Raised when a root-finder is given an interval without a sign change."""

    pass


class ConvergenceError(SolverError):
    """Raised when an iterative solve exhausts its iteration cap."""

    pass


class ComputationError(PolyfloodError):
    """Raised when a numerical invariant is violated during computations."""

    pass
