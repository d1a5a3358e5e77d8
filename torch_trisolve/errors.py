"""
Exceptions raised by torch-trisolve.

Every error is raised where it is detected and propagates to the caller;
nothing in the library catches or recovers from them.
"""


class TriSolveError(Exception):
    """Base class of all torch-trisolve errors"""


class DimensionMismatchError(TriSolveError, ValueError):
    def __init__(self, name, shape, expected_shape):
        self.name = name
        self.shape = shape
        self.expected_shape = expected_shape
        super().__init__(f"{name} has shape {shape} expected {expected_shape}")


class MissingDiagonalError(TriSolveError):
    def __init__(self, row: int):
        self.row = row
        super().__init__(f"No diagonal entry stored in row {row}")


class ZeroDiagonalError(TriSolveError, ZeroDivisionError):
    def __init__(self, row: int):
        self.row = row
        super().__init__(f"Zero in diagonal encountered at row {row} while setting up Jacobi preconditioner")


class UnsupportedBackendError(TriSolveError, NotImplementedError):
    def __init__(self, op: str, location: str):
        self.op = op
        self.location = location
        super().__init__(f"{op}: no backend registered for memory location '{location}'")


class FactorizationBreakdownError(TriSolveError, ArithmeticError):
    def __init__(self, step: int):
        self.step = step
        super().__init__(f"Zero pivot encountered at step {step} of unpivoted LU factorization")
