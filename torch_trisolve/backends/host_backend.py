"""
Sequential host backend.

All kernels run single-threaded on NumPy views of the operands' CPU storage
(``tensor.detach().numpy()`` shares memory, so writes land in the tensors).
Rows are visited strictly in substitution order, and within a sparse row the
entries are accumulated in stored order, which makes every result
deterministic.

NumPy has no bfloat16, so bfloat16 operands are solved on float32 working
copies that are written back with ``copy_``.

Kernels:
- dense_inplace_solve: row sweep, forward for lower tags, backward for upper tags
- lu_factorize: right-looking Doolittle elimination without pivoting
- csr_inplace_solve: gather (direct) or scatter (transposed) substitution
- csr_row_info: per-row inf/1/2-norm or diagonal
- csr_prod: sparse matrix-vector product
"""

import numpy as np
import torch

from ..errors import FactorizationBreakdownError, MissingDiagonalError
from ..tags import is_lower, is_unit


def _borrow(x: torch.Tensor) -> np.ndarray:
    """NumPy view of a CPU tensor's storage, valid for the duration of a call"""
    return x.detach().numpy()


def _upcast(x: torch.Tensor) -> bool:
    return x.dtype == torch.bfloat16


def dense_inplace_solve(A: torch.Tensor, B: torch.Tensor, tag: str) -> None:
    """
    Overwrite B with the solution of the triangular system A X = B.

    Parameters
    ----------
    A : torch.Tensor
        [n, n] system matrix, possibly a strided (transposed) view
    B : torch.Tensor
        [n, k] right-hand sides, possibly a strided view
    tag : str
        Triangular shape tag
    """
    if _upcast(B):
        work = B.float()
        dense_inplace_solve(A.float(), work, tag)
        B.copy_(work)
        return

    a = _borrow(A)
    b = _borrow(B)
    n = a.shape[0]
    unit = is_unit(tag)

    if is_lower(tag):
        for i in range(n):
            if i > 0:
                b[i] -= a[i, :i] @ b[:i]
            if not unit:
                b[i] /= a[i, i]
    else:
        for i in range(n - 1, -1, -1):
            if i < n - 1:
                b[i] -= a[i, i + 1:] @ b[i + 1:]
            if not unit:
                b[i] /= a[i, i]


def lu_factorize(A: torch.Tensor) -> None:
    """
    In-place LU factorization without pivoting.

    On return the strictly lower part of A holds L (unit diagonal implied) and
    the upper part holds U.
    """
    if _upcast(A):
        work = A.float()
        try:
            lu_factorize(work)
        finally:
            A.copy_(work)
        return

    a = _borrow(A)
    n = a.shape[0]

    for k in range(n):
        pivot = a[k, k]
        if pivot == 0:
            raise FactorizationBreakdownError(k)
        if k + 1 < n:
            a[k + 1:, k] /= pivot
            a[k + 1:, k + 1:] -= np.outer(a[k + 1:, k], a[k, k + 1:])


def _find_diagonal(rowptr: np.ndarray, col: np.ndarray, val: np.ndarray, n: int,
                   required: bool) -> np.ndarray:
    """First stored diagonal entry per row; absent entries are 0 or an error"""
    diag = np.zeros(n, dtype=val.dtype)
    for row in range(n):
        start, end = rowptr[row], rowptr[row + 1]
        hits = np.flatnonzero(col[start:end] == row)
        if hits.size > 0:
            diag[row] = val[start + hits[0]]
        elif required:
            raise MissingDiagonalError(row)
    return diag


def csr_inplace_solve(rowptr: torch.Tensor, col: torch.Tensor, val: torch.Tensor,
                      x: torch.Tensor, tag: str, transposed: bool = False) -> None:
    """
    Sparse triangular substitution, overwriting x.

    Direct solves gather the already-solved entries of each row before
    finalizing it. Transposed solves finalize a row first and then scatter its
    contribution to the rows that depend on it.

    Parameters
    ----------
    rowptr, col, val : torch.Tensor
        CSR arrays of the stored (non-transposed) matrix
    x : torch.Tensor
        [n] right-hand side, overwritten with the solution
    tag : str
        Triangular shape of the operator (of A^T when ``transposed``)
    transposed : bool
        Solve A^T x = b instead of A x = b
    """
    if _upcast(x):
        work = x.float()
        try:
            csr_inplace_solve(rowptr, col, val.float(), work, tag, transposed)
        finally:
            x.copy_(work)
        return

    rp = _borrow(rowptr)
    ci = _borrow(col)
    v = _borrow(val)
    b = _borrow(x)
    n = b.shape[0]
    lower = is_lower(tag)
    unit = is_unit(tag)

    # Checked up front so a missing diagonal leaves x untouched
    diag = None if unit else _find_diagonal(rp, ci, v, n, required=True)

    rows = range(n) if lower else range(n - 1, -1, -1)
    for row in rows:
        start, end = rp[row], rp[row + 1]
        cols = ci[start:end]
        vals = v[start:end]

        if not transposed:
            mask = cols < row if lower else cols > row
            entry = b[row]
            for c, value in zip(cols[mask], vals[mask]):
                entry -= value * b[c]
            b[row] = entry if unit else entry / diag[row]
        else:
            if not unit:
                b[row] = b[row] / diag[row]
            mask = cols > row if lower else cols < row
            np.subtract.at(b, cols[mask], b[row] * vals[mask])


def csr_row_info(rowptr: torch.Tensor, col: torch.Tensor, val: torch.Tensor,
                 out: torch.Tensor, mode: str) -> None:
    """Write one statistic per row of the CSR matrix into out"""
    if _upcast(out):
        work = out.float()
        csr_row_info(rowptr, col, val.float(), work, mode)
        out.copy_(work)
        return

    rp = _borrow(rowptr)
    ci = _borrow(col)
    v = _borrow(val)
    o = _borrow(out)
    m = o.shape[0]

    if mode == 'diagonal':
        o[:] = _find_diagonal(rp, ci, v, m, required=False)
        return

    for row in range(m):
        vals = v[rp[row]:rp[row + 1]]
        if mode == 'norm_inf':
            o[row] = np.abs(vals).max(initial=0)
        elif mode == 'norm_1':
            o[row] = np.abs(vals).sum()
        elif mode == 'norm_2':
            o[row] = np.sqrt(np.dot(vals, vals))
        else:
            raise ValueError(f"Unknown row info mode: {mode}")


def csr_prod(rowptr: torch.Tensor, col: torch.Tensor, val: torch.Tensor,
             x: torch.Tensor, out: torch.Tensor, transposed: bool = False) -> None:
    """out = A @ x, or A^T @ x when ``transposed``"""
    if _upcast(out):
        work = out.float()
        csr_prod(rowptr, col, val.float(), x.float(), work, transposed)
        out.copy_(work)
        return

    rp = _borrow(rowptr)
    ci = _borrow(col)
    v = _borrow(val)
    xb = _borrow(x)
    o = _borrow(out)
    m = rp.shape[0] - 1

    if not transposed:
        for row in range(m):
            start, end = rp[row], rp[row + 1]
            o[row] = np.dot(v[start:end], xb[ci[start:end]])
    else:
        o[:] = 0
        for row in range(m):
            start, end = rp[row], rp[row + 1]
            np.add.at(o, ci[start:end], v[start:end] * xb[row])
