import torch

from .errors import DimensionMismatchError


def check_coo(val:torch.Tensor,
              row:torch.Tensor,
              col:torch.Tensor,
              shape:tuple
              ):
    """
    Check the COO format

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

    """
    if not row.ndim == 1:
        raise DimensionMismatchError("row", tuple(row.shape), "[nnz]")
    if not col.ndim == 1:
        raise DimensionMismatchError("col", tuple(col.shape), "[nnz]")
    if not (val.ndim == 1 and val.shape[0] == row.shape[0]):
        raise DimensionMismatchError("val", tuple(val.shape), f"[{row.shape[0]}]")
    if not val.shape[0] == col.shape[0]:
        raise DimensionMismatchError("val", tuple(val.shape), f"[{col.shape[0]}]")
    if not (len(shape) == 2 and shape[0] >= 0 and shape[1] >= 0):
        raise DimensionMismatchError("shape", tuple(shape), "(m,n)")


def check_csr(val:torch.Tensor,
              rowptr:torch.Tensor,
              col:torch.Tensor,
              shape:tuple):
    """
    Check the CSR format

    Besides the array sizes this checks the structural invariants of the
    row pointer (starts at 0, non-decreasing, ends at nnz) and the column
    index range.

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
    """
    if not (len(shape) == 2 and shape[0] >= 0 and shape[1] >= 0):
        raise DimensionMismatchError("shape", tuple(shape), "(m,n)")
    m, n = shape
    if not (rowptr.ndim == 1 and rowptr.shape[0] == m+1):
        raise DimensionMismatchError("rowptr", tuple(rowptr.shape), f"[{m+1}]")
    if not col.ndim == 1:
        raise DimensionMismatchError("col", tuple(col.shape), "[nnz]")
    if not (val.ndim == 1 and val.shape[0] == col.shape[0]):
        raise DimensionMismatchError("val", tuple(val.shape), f"[{col.shape[0]}]")
    if int(rowptr[0]) != 0 or int(rowptr[-1]) != val.shape[0]:
        raise DimensionMismatchError("rowptr", (int(rowptr[0]), int(rowptr[-1])), f"(0, {val.shape[0]})")
    if m > 0 and bool((rowptr[1:] < rowptr[:-1]).any()):
        raise DimensionMismatchError("rowptr", tuple(rowptr.shape), "non-decreasing offsets")
    if col.numel() > 0 and (int(col.min()) < 0 or int(col.max()) >= n):
        raise DimensionMismatchError("col", (int(col.min()), int(col.max())), f"indices in [0, {n})")


def check_square(name:str, shape:tuple):
    if not (len(shape) == 2 and shape[0] == shape[1]):
        raise DimensionMismatchError(name, tuple(shape), "(n,n)")


def check_rhs(name:str, n:int, rhs_shape:tuple):
    """
    Check a right-hand side against a system of size n

    A vector must have length n, a matrix must have n rows.
    """
    if len(rhs_shape) == 1:
        if rhs_shape[0] != n:
            raise DimensionMismatchError(name, tuple(rhs_shape), f"[{n}]")
    elif len(rhs_shape) == 2:
        if rhs_shape[0] != n:
            raise DimensionMismatchError(name, tuple(rhs_shape), f"[{n}, k]")
    else:
        raise DimensionMismatchError(name, tuple(rhs_shape), f"[{n}] or [{n}, k]")


def check_floating(name:str, x:torch.Tensor):
    if not torch.is_floating_point(x):
        raise TypeError(f"{name} must be a floating point tensor, got {x.dtype}")
