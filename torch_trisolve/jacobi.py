"""
Jacobi (diagonal) preconditioner: M^{-1} = diag(A)^{-1}.

The diagonal is extracted once at construction and every failure (missing
or zero diagonal entry) is reported there, not at first use. Applying the
preconditioner is an element-wise division that does not depend on the
backend of the vector.

Examples
--------
>>> P = build_jacobi(A)
>>> apply(P, r)   # r /= diag(A), in place
>>> z = P(r)      # same, on a copy of r
"""

import torch
from torch import Tensor
from typing import Union

from .check import check_rhs, check_square
from .convert import expand_rowptr
from .csr import CSRMatrix, Transposed
from .errors import DimensionMismatchError, MissingDiagonalError, ZeroDiagonalError
from .sparse_ops import row_info

MatrixLike = Union[Tensor, CSRMatrix, Transposed]


def _torch_sparse_to_csr(A: Tensor) -> CSRMatrix:
    if A.layout == torch.sparse_coo:
        A = A.coalesce()
    A = A.to_sparse_csr()
    return CSRMatrix(A.crow_indices(), A.col_indices(), A.values(), tuple(A.shape))


def _structural_check(A: CSRMatrix):
    """Raise MissingDiagonalError for the first row without a stored diagonal entry"""
    rows = expand_rowptr(A.rowptr)
    present = torch.zeros(A.shape[0], dtype=torch.bool, device=A.device)
    present[rows[rows == A.col]] = True
    if not bool(present.all()):
        raise MissingDiagonalError(int(torch.nonzero(~present)[0].item()))


def extract_diagonal(A: MatrixLike) -> Tensor:
    """
    Diagonal of a square matrix as a new vector.

    - CSRMatrix: ``row_info(A, 'diagonal')``, absent entries read as 0
    - strided tensor: ``A.diagonal()``
    - torch sparse COO/CSR tensor: every row must store its diagonal entry,
      else ``MissingDiagonalError``
    """
    if isinstance(A, Transposed):
        A = A.operand

    if isinstance(A, CSRMatrix):
        check_square("A", A.shape)
        return row_info(A, 'diagonal')

    if not isinstance(A, Tensor):
        raise TypeError(f"Cannot build a Jacobi preconditioner from {type(A).__name__}")
    if A.ndim != 2:
        raise DimensionMismatchError("A", tuple(A.shape), "(n,n)")
    check_square("A", tuple(A.shape))

    if A.layout == torch.strided:
        return A.detach().diagonal().clone()

    csr = _torch_sparse_to_csr(A.detach())
    _structural_check(csr)
    return row_info(csr, 'diagonal')


class JacobiPreconditioner:
    """
    Jacobi preconditioner, can be supplied to iterative solvers as ``M(r)``.

    Parameters
    ----------
    A : torch.Tensor, CSRMatrix or Transposed
        Square system matrix (dense, CSRMatrix or torch sparse tensor).

    Raises
    ------
    DimensionMismatchError
        A is not square.
    MissingDiagonalError
        A torch sparse tensor lacks a stored diagonal entry.
    ZeroDiagonalError
        A diagonal value is exactly zero (for CSRMatrix this includes a
        diagonal entry that is not stored at all).

    Notes
    -----
    The stored diagonal is a snapshot. Call :meth:`init` after the source
    matrix changed.
    """

    def __init__(self, A: MatrixLike):
        self._diag = None
        self.init(A)

    def init(self, A: MatrixLike):
        """(Re)build the diagonal from A; on failure the previous state is kept."""
        diag = extract_diagonal(A)
        zero = diag == 0
        if bool(zero.any()):
            raise ZeroDiagonalError(int(torch.nonzero(zero)[0].item()))
        self._diag = diag

    @property
    def diagonal(self) -> Tensor:
        return self._diag

    @property
    def size(self) -> int:
        return self._diag.shape[0]

    def apply(self, vec: Tensor) -> Tensor:
        """
        Divide vec by the diagonal, in place.

        Works wherever vec lives; the diagonal is moved to its device.

        Returns
        -------
        torch.Tensor
            vec itself
        """
        if vec.ndim != 1:
            raise DimensionMismatchError("vec", tuple(vec.shape), f"[{self.size}]")
        check_rhs("vec", self.size, tuple(vec.shape))
        vec.div_(self._diag.to(device=vec.device, dtype=vec.dtype))
        return vec

    def __call__(self, r: Tensor) -> Tensor:
        """z = M^{-1} r on a copy of r"""
        return self.apply(r.clone())

    def __repr__(self) -> str:
        return f"JacobiPreconditioner(size={self.size}, dtype={self._diag.dtype}, device={self._diag.device.type})"


def build_jacobi(A: MatrixLike) -> JacobiPreconditioner:
    """Build a Jacobi preconditioner for A, see :class:`JacobiPreconditioner`."""
    return JacobiPreconditioner(A)


def apply(precond: JacobiPreconditioner, vec: Tensor) -> Tensor:
    """Apply a preconditioner to vec in place and return vec."""
    return precond.apply(vec)
