"""
PyTorch-native backend for device (CUDA) execution.

The numeric work only uses PyTorch tensor operations, so it works on every
device PyTorch supports; the dispatcher registers it for 'cuda'. Building the
level schedule of a sparse solve is a single host pass over the indices.

Kernels:
- dense_inplace_solve: ``torch.linalg.solve_triangular`` (cuBLAS trsm on CUDA)
- lu_factorize: right-looking elimination, one vectorized rank-1 update per pivot
- csr_inplace_solve: level-scheduled substitution
- csr_row_info: segmented reductions with scatter_reduce / index_add
- csr_prod: sparse matrix-vector product with index_add

Level scheduling
----------------
Row r of a triangular solve can only be finalized after every row it reads
from. Rows are grouped into levels by dependency depth:

    level[r] = 1 + max(level[s] for every s that r depends on)   (0 if none)

Every s precedes r in solve order, so visiting rows in that order computes
each level exactly once.

All rows of one level are independent, so each level is solved with a single
gather + index_add. The result equals the sequential row sweep up to the
order of floating-point accumulation.
"""

import numpy as np
import torch
from torch import Tensor
from typing import List, Tuple

from ..convert import expand_rowptr
from ..errors import FactorizationBreakdownError, MissingDiagonalError
from ..tags import is_lower, is_unit


def dense_inplace_solve(A: Tensor, B: Tensor, tag: str) -> None:
    """
    Overwrite B with the solution of the triangular system A X = B.

    Only the triangle selected by ``tag`` is read; for unit tags the
    diagonal is not read either.
    """
    X = torch.linalg.solve_triangular(
        A, B,
        upper=not is_lower(tag),
        unitriangular=is_unit(tag),
    )
    B.copy_(X)


def lu_factorize(A: Tensor) -> None:
    """
    In-place LU factorization without pivoting.

    Pivot steps are sequential, the trailing update of each step is one
    rank-1 ``addr_`` over the whole sub-matrix.
    """
    n = A.shape[0]

    for k in range(n):
        pivot = A[k, k].item()
        if pivot == 0:
            raise FactorizationBreakdownError(k)
        if k + 1 < n:
            A[k + 1:, k].div_(pivot)
            A[k + 1:, k + 1:].addr_(A[k + 1:, k], A[k, k + 1:], alpha=-1)


def _first_diagonal(rowptr: Tensor, col: Tensor, val: Tensor, n: int) -> Tuple[Tensor, Tensor]:
    """
    First stored diagonal entry of each row.

    Returns
    -------
    diag : Tensor
        [n] diagonal values, 0 where absent
    present : Tensor
        [n] bool, whether the row stores a diagonal entry
    """
    nnz = val.shape[0]
    rows = expand_rowptr(rowptr)
    is_diag = rows == col
    entry = torch.nonzero(is_diag).squeeze(1)

    pos = torch.full((n,), nnz, dtype=torch.long, device=val.device)
    pos.scatter_reduce_(0, rows[is_diag], entry, reduce='amin', include_self=True)
    present = pos < nnz

    diag = torch.zeros(n, dtype=val.dtype, device=val.device)
    diag[present] = val[pos[present]]
    return diag, present


def _levels(dst: Tensor, src: Tensor, n: int, lower: bool) -> Tensor:
    """
    Dependency depth of every row, where row dst[i] depends on row src[i].

    Dependencies point in the solve direction only, so a single host pass in
    solve order finalizes every level: O(n + nnz).
    """
    if dst.numel() == 0:
        return torch.zeros(n, dtype=torch.long, device=dst.device)

    d = dst.cpu().numpy()
    s = src.cpu().numpy()
    order = np.argsort(d, kind='stable')
    d, s = d[order], s[order]
    bounds = np.searchsorted(d, np.arange(n + 1))

    level = np.zeros(n, dtype=np.int64)
    for r in (range(n) if lower else range(n - 1, -1, -1)):
        deps = s[bounds[r]:bounds[r + 1]]
        if deps.size > 0:
            level[r] = level[deps].max() + 1
    return torch.from_numpy(level).to(dst.device)


def _schedule(level: Tensor, dst: Tensor) -> Tuple[List[Tensor], List[Tensor]]:
    """Split rows and dependency entries into per-level groups"""
    num_levels = int(level.max().item()) + 1 if level.numel() > 0 else 0

    row_order = torch.argsort(level, stable=True)
    row_counts = torch.bincount(level, minlength=num_levels).tolist()

    entry_level = level[dst]
    entry_order = torch.argsort(entry_level, stable=True)
    entry_counts = torch.bincount(entry_level, minlength=num_levels).tolist()

    return (
        list(torch.split(row_order, row_counts)),
        list(torch.split(entry_order, entry_counts)),
    )


def csr_inplace_solve(rowptr: Tensor, col: Tensor, val: Tensor,
                      x: Tensor, tag: str, transposed: bool = False) -> None:
    """
    Level-scheduled sparse triangular substitution, overwriting x.

    A transposed solve reinterprets every stored entry (r, c) as (c, r), so
    the same gather schedule covers both operators without building A^T.

    Parameters
    ----------
    rowptr, col, val : Tensor
        CSR arrays of the stored (non-transposed) matrix
    x : Tensor
        [n] right-hand side, overwritten with the solution
    tag : str
        Triangular shape of the operator (of A^T when ``transposed``)
    transposed : bool
        Solve A^T x = b instead of A x = b
    """
    n = x.shape[0]
    lower = is_lower(tag)
    unit = is_unit(tag)

    if not unit:
        diag, present = _first_diagonal(rowptr, col, val, n)
        if not bool(present.all()):
            raise MissingDiagonalError(int(torch.nonzero(~present)[0].item()))

    rows = expand_rowptr(rowptr)
    # Operator entry (dst, src): x[dst] needs the final x[src]
    dst, src = (col, rows) if transposed else (rows, col)
    strict = src < dst if lower else src > dst
    dst, src, coef = dst[strict], src[strict], val[strict]

    level = _levels(dst, src, n, lower)
    level_rows, level_entries = _schedule(level, dst)

    acc = torch.zeros_like(x)
    for lrows, lentries in zip(level_rows, level_entries):
        if lentries.numel() > 0:
            e_dst = dst[lentries]
            acc.index_add_(0, e_dst, coef[lentries] * x[src[lentries]])
        update = x[lrows] - acc[lrows]
        if not unit:
            update = update / diag[lrows]
        x[lrows] = update


def csr_row_info(rowptr: Tensor, col: Tensor, val: Tensor,
                 out: Tensor, mode: str) -> None:
    """Write one statistic per row of the CSR matrix into out"""
    m = out.shape[0]
    rows = expand_rowptr(rowptr)
    result = torch.zeros(m, dtype=val.dtype, device=val.device)

    if mode == 'norm_inf':
        result.scatter_reduce_(0, rows, val.abs(), reduce='amax', include_self=True)
    elif mode == 'norm_1':
        result.index_add_(0, rows, val.abs())
    elif mode == 'norm_2':
        result.index_add_(0, rows, val * val)
        result.sqrt_()
    elif mode == 'diagonal':
        result, _ = _first_diagonal(rowptr, col, val, m)
    else:
        raise ValueError(f"Unknown row info mode: {mode}")

    out.copy_(result)


def csr_prod(rowptr: Tensor, col: Tensor, val: Tensor,
             x: Tensor, out: Tensor, transposed: bool = False) -> None:
    """out = A @ x, or A^T @ x when ``transposed``"""
    rows = expand_rowptr(rowptr)
    dst, src = (col, rows) if transposed else (rows, col)

    result = torch.zeros(out.shape[0], dtype=val.dtype, device=val.device)
    result.index_add_(0, dst, val * x[src])
    out.copy_(result)
