"""
Triangular solves and unpivoted LU.

The system matrix decides everything: its type selects the dense or the CSR
kernels, its memory location selects the backend. Right-hand sides are
overwritten in place by ``inplace_solve`` and ``lu_substitute``; ``solve``
works on a copy.

Supported operands
------------------
============================  ======================================
system matrix                 right-hand side
============================  ======================================
dense [n, n] / trans(dense)   [n] vector, [n, k] matrix, trans([k, n])
CSRMatrix / trans(CSRMatrix)  [n] vector
============================  ======================================

LU factorization performs no row or column interchange. It is meant for
matrices that are safe to eliminate in natural order (e.g. diagonally
dominant ones); a zero pivot raises ``FactorizationBreakdownError``.
"""

import warnings
import torch
from typing import Tuple, Union

from .backends import select_backend
from .check import check_floating, check_rhs, check_square
from .csr import CSRMatrix, Transposed
from .errors import DimensionMismatchError
from .tags import TriangularTag, check_tag

SystemMatrix = Union[torch.Tensor, CSRMatrix, Transposed]
RightHandSide = Union[torch.Tensor, Transposed]


def _unwrap(A: SystemMatrix) -> Tuple[Union[torch.Tensor, CSRMatrix], bool]:
    if isinstance(A, Transposed):
        return A.operand, True
    return A, False


def _check_operands(A, b: torch.Tensor, name: str):
    check_floating(name, b)
    if A.dtype != b.dtype:
        raise TypeError(f"A and {name} must have same dtype, got {A.dtype} and {b.dtype}")
    if A.device != b.device:
        raise ValueError(f"A and {name} must be on the same device, got {A.device} and {b.device}")
    if b.dtype in (torch.float16, torch.bfloat16):
        warnings.warn("Solving in half precision, use float32 or float64 to maintain precision")


def _dense_inplace_solve(A: torch.Tensor, transposed: bool, B: RightHandSide, tag: str):
    if A.ndim != 2:
        raise DimensionMismatchError("A", tuple(A.shape), "(n,n)")
    system = A.mT if transposed else A
    check_square("A", tuple(system.shape))
    check_floating("A", system)

    if isinstance(B, Transposed):
        if not isinstance(B.operand, torch.Tensor):
            raise TypeError(f"Right-hand side must be dense, got {type(B.operand).__name__}")
        rhs = B.operand.mT
    elif isinstance(B, torch.Tensor):
        rhs = B.unsqueeze(-1) if B.ndim == 1 else B
    else:
        raise TypeError(f"Right-hand side must be a tensor, got {type(B).__name__}")

    check_rhs("B", system.shape[1], tuple(B.shape))
    _check_operands(system, rhs, "B")

    ops = select_backend(system, "inplace_solve")
    ops.dense_inplace_solve(system, rhs, tag)


def _csr_inplace_solve(A: CSRMatrix, transposed: bool, x: RightHandSide, tag: str):
    if not (isinstance(x, torch.Tensor) and x.ndim == 1):
        raise TypeError("Sparse triangular solves take a single vector right-hand side")
    check_square("A", A.shape)
    check_rhs("x", A.shape[1], tuple(x.shape))
    _check_operands(A, x, "x")

    ops = select_backend(A, "inplace_solve")
    ops.csr_inplace_solve(A.rowptr, A.col, A.val, x, tag, transposed)


def inplace_solve(A: SystemMatrix, B: RightHandSide, tag: TriangularTag) -> None:
    """
    Solve a triangular system in place.

    Each column of B (or the vector B) is overwritten with the solution of
    ``op(A) x = b`` where ``op(A)`` is A or, for ``trans(A)``, its transpose.

    Parameters
    ----------
    A : torch.Tensor, CSRMatrix or Transposed
        [n, n] system matrix. Only the triangle selected by ``tag`` is read.
    B : torch.Tensor or Transposed
        [n] vector, [n, k] matrix or trans([k, n] matrix). Sparse system
        matrices only take a vector.
    tag : str
        {'lower', 'unit_lower', 'upper', 'unit_upper'}. Unit tags never read
        the diagonal. Lower tags sweep rows top to bottom, upper tags bottom
        to top.

    Raises
    ------
    DimensionMismatchError
        A is not square or B does not conform.
    MissingDiagonalError
        Non-unit sparse solve with a row lacking its diagonal entry; B is
        left unmodified.
    UnsupportedBackendError
        No backend for the memory location of A.
    """
    check_tag(tag)
    operand, transposed = _unwrap(A)

    if isinstance(operand, CSRMatrix):
        _csr_inplace_solve(operand, transposed, B, tag)
    elif isinstance(operand, torch.Tensor):
        _dense_inplace_solve(operand, transposed, B, tag)
    else:
        raise TypeError(f"Unsupported system matrix type: {type(operand).__name__}")


def solve(A: SystemMatrix, B: RightHandSide, tag: TriangularTag) -> torch.Tensor:
    """
    Solve a triangular system without modifying B.

    Copies B into a freshly allocated tensor (``trans(B)`` is materialized
    with the transposed shape) and forwards to :func:`inplace_solve`.

    Returns
    -------
    torch.Tensor
        Solution with the shape of B (of B^T for a transposed B).
    """
    if isinstance(B, Transposed) and isinstance(B.operand, torch.Tensor):
        result = B.materialize()
    elif isinstance(B, torch.Tensor):
        result = B.clone(memory_format=torch.contiguous_format)
    else:
        raise TypeError(f"Right-hand side must be dense, got {type(B).__name__}")

    inplace_solve(A, result, tag)
    return result


def lu_factorize(A: torch.Tensor) -> None:
    """
    LU factorization of a dense matrix, in place and without pivoting.

    On return the entries strictly below the diagonal hold L (its unit
    diagonal is implied and not written), the rest holds U.

    Raises
    ------
    FactorizationBreakdownError
        A pivot is exactly zero. A is left partially factored.
    """
    if not isinstance(A, torch.Tensor):
        raise TypeError(f"lu_factorize expects a dense tensor, got {type(A).__name__}")
    if A.ndim != 2:
        raise DimensionMismatchError("A", tuple(A.shape), "(n,n)")
    check_square("A", tuple(A.shape))
    check_floating("A", A)

    ops = select_backend(A, "lu_factorize")
    ops.lu_factorize(A)


def lu_substitute(A: torch.Tensor, B: RightHandSide) -> None:
    """
    Solve LU x = b in place for a matrix factored by :func:`lu_factorize`.

    Runs the unit lower solve followed by the upper solve on B.
    """
    if not isinstance(A, torch.Tensor):
        raise TypeError(f"lu_substitute expects a dense tensor, got {type(A).__name__}")
    check_square("A", tuple(A.shape))

    inplace_solve(A, B, "unit_lower")
    inplace_solve(A, B, "upper")
