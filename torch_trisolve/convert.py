import torch
from typing import Tuple
from .check import check_coo, check_csr
from .sort import lexsort


def coo2csr(val:torch.Tensor,
            row:torch.Tensor,
            col:torch.Tensor,
            shape:tuple
            )->Tuple[torch.Tensor,
                     torch.Tensor,
                     torch.Tensor,
                     Tuple[int, int]]:
    """
    Convert COO format to CSR format

    Entries are ordered by row, then by column. Duplicates are kept as
    separate stored entries.

    Parameters
    ----------
        val: torch.Tensor
            [nnz] values of the sparse matrix
        row: torch.Tensor
            [nnz] row indices of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        shape: tuple
            (m,n) shape of the sparse matrix
    Returns
    -------
        val: torch.Tensor
            [nnz] values of the sparse matrix
        rowptr: torch.Tensor
            [m+1] rowptr of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        shape: tuple
            (m,n) shape of the sparse matrix
    """
    check_coo(val, row, col, shape)

    m, n   = shape
    row    = row.long()
    col    = col.long()

    arg    = lexsort([col, row])
    row    = row[arg]
    col    = col[arg]
    val    = val[arg]
    rowptr = torch.zeros(m + 1, dtype=torch.long, device=val.device)
    rowcount   = torch.bincount(row, minlength=m)
    rowptr[1:] = torch.cumsum(rowcount, 0)

    return val, rowptr, col, (m, n)

def csr2coo(val:torch.Tensor,
            rowptr:torch.Tensor,
            col:torch.Tensor,
            shape:tuple
            )->Tuple[torch.Tensor,
                     torch.Tensor,
                     torch.Tensor,
                     Tuple[int, int]]:
    """
    Convert CSR format to COO format

    Parameters
    ----------
        val: torch.Tensor
            [nnz] values of the sparse matrix
        rowptr: torch.Tensor
            [m+1] rowptr of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        shape: tuple
            (m,n) shape of the sparse matrix

    Returns
    -------
        val: torch.Tensor
            [nnz] values of the sparse matrix
        row: torch.Tensor
            [nnz] row indices of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        shape: tuple
            (m,n) shape of the sparse matrix
    """

    check_csr(val, rowptr, col, shape)

    m, n = shape
    row  = expand_rowptr(rowptr)
    return val, row, col, shape


def expand_rowptr(rowptr:torch.Tensor)->torch.Tensor:
    """Row index of every stored entry, [nnz]"""
    m = rowptr.shape[0] - 1
    return torch.repeat_interleave(
        torch.arange(m, dtype=rowptr.dtype, device=rowptr.device),
        rowptr[1:] - rowptr[:-1]
    )
