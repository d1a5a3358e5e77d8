import torch
from typing import Optional, Union

from .backends import select_backend
from .check import check_rhs
from .csr import CSRMatrix, Transposed
from .errors import DimensionMismatchError
from .tags import RowInfoMode, check_mode


def row_info(A: CSRMatrix,
             mode: RowInfoMode = 'diagonal',
             out: Optional[torch.Tensor] = None) -> torch.Tensor:
    """
    One statistic per row of a CSR matrix, in a single pass over the rows.

    Parameters
    ----------
    A : CSRMatrix
        [m, n] matrix
    mode : str, optional
        {'norm_inf', 'norm_1', 'norm_2', 'diagonal'}, by default 'diagonal'.
        In 'diagonal' mode a row without a stored diagonal entry yields 0.
    out : torch.Tensor, optional
        [m] destination, allocated when omitted

    Returns
    -------
    torch.Tensor
        [m]
    """
    check_mode(mode)
    if not isinstance(A, CSRMatrix):
        raise TypeError(f"row_info expects a CSRMatrix, got {type(A).__name__}")

    m = A.shape[0]
    if out is None:
        out = torch.empty(m, dtype=A.dtype, device=A.device)
    else:
        if out.ndim != 1:
            raise DimensionMismatchError("out", tuple(out.shape), f"[{m}]")
        check_rhs("out", m, tuple(out.shape))
        if out.dtype != A.dtype or out.device != A.device:
            raise TypeError(f"out must be {A.dtype} on {A.device}, got {out.dtype} on {out.device}")

    ops = select_backend(A, "row_info")
    ops.csr_row_info(A.rowptr, A.col, A.val, out, mode)
    return out


def prod(A: Union[CSRMatrix, Transposed], x: torch.Tensor) -> torch.Tensor:
    """
    Sparse matrix-vector product

    .. math::
        y = A x \\quad \\text{or} \\quad y = A^T x

    Parameters
    ----------
    A : CSRMatrix or Transposed
        [m, n] matrix or trans of one
    x : torch.Tensor
        [n] (or [m] for a transposed A)

    Returns
    -------
    torch.Tensor
        [m] (or [n] for a transposed A)
    """
    transposed = isinstance(A, Transposed)
    csr = A.operand if transposed else A
    if not isinstance(csr, CSRMatrix):
        raise TypeError(f"prod expects a CSRMatrix, got {type(csr).__name__}")
    if x.ndim != 1:
        raise DimensionMismatchError("x", tuple(x.shape), f"[{A.shape[1]}]")
    check_rhs("x", A.shape[1], tuple(x.shape))
    if x.dtype != csr.dtype or x.device != csr.device:
        raise TypeError(f"x must be {csr.dtype} on {csr.device}, got {x.dtype} on {x.device}")

    out = torch.empty(A.shape[0], dtype=csr.dtype, device=csr.device)
    ops = select_backend(csr, "prod")
    ops.csr_prod(csr.rowptr, csr.col, csr.val, x, out, transposed)
    return out
