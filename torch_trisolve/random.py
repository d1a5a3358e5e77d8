import torch
from typing import Optional

from .csr import CSRMatrix
from .tags import TriangularTag, is_lower, is_unit


def triangular(n:int,
               tag:TriangularTag="lower",
               density:float=0.3,
               dtype=torch.float64,
               device=torch.device('cpu'),
               shuffle:bool=True,
               generator:Optional[torch.Generator]=None
               )->CSRMatrix:
    """
    random triangular CSR matrix generator

    Off-diagonal entries are drawn from U(-1, 1) / n, so the matrix is well
    conditioned. Non-unit tags get a stored diagonal in [1, 2); unit tags
    store no diagonal at all.

    Parameters
    ----------
    n : int
        size of the (n,n) matrix
    tag : str, optional
        triangular shape, by default "lower"
    density : float, optional
        probability of a strictly triangular entry being stored, by default 0.3
    dtype : torch.dtype, optional
        Data type of the matrix, by default torch.float64
    device : torch.device, optional
        Device of the matrix, by default torch.device('cpu')
    shuffle : bool, optional
        scramble the column order inside every row, by default True
    generator : torch.Generator, optional
        source of randomness

    Returns
    -------
    CSRMatrix
    """
    assert 0 <= density <= 1, "density must be in [0, 1]"

    row, col = torch.meshgrid(torch.arange(n), torch.arange(n), indexing="ij")
    strict = col < row if is_lower(tag) else col > row
    keep = strict & (torch.rand(n, n, generator=generator) < density)
    row, col = row[keep], col[keep]
    val = (2 * torch.rand(row.shape[0], generator=generator, dtype=dtype) - 1) / max(n, 1)

    if not is_unit(tag):
        diag = torch.arange(n)
        row = torch.cat([row, diag])
        col = torch.cat([col, diag])
        val = torch.cat([val, 1 + torch.rand(n, generator=generator, dtype=dtype)])

    A = CSRMatrix.from_coo(val, row, col, (n, n))

    if shuffle and A.nnz > 0:
        # random key inside each row, rows stay contiguous
        key = torch.rand(A.nnz, generator=generator)
        rows = torch.repeat_interleave(torch.arange(n), A.rowptr[1:] - A.rowptr[:-1])
        perm = torch.argsort(rows.double() + key.double(), stable=True)
        A = CSRMatrix(A.rowptr, A.col[perm], A.val[perm], (n, n))

    return A.to(device=device)


def diagonally_dominant(n:int,
                        dtype=torch.float64,
                        device=torch.device('cpu'),
                        generator:Optional[torch.Generator]=None
                        )->torch.Tensor:
    """
    random dense strictly diagonally dominant matrix

    Such a matrix has non-zero pivots at every step of an unpivoted LU
    factorization.

    Returns
    -------
    torch.Tensor
        [n, n]
    """
    A = 2 * torch.rand(n, n, generator=generator, dtype=dtype) - 1
    A.diagonal().copy_(A.abs().sum(dim=1) + 1)
    return A.to(device=device)
