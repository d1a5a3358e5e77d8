"""
torch-trisolve: triangular solvers for PyTorch

Dense and sparse (CSR) triangular solves, unpivoted LU and a Jacobi
preconditioner. Every operation runs on the backend matching the memory
location of its system matrix.

Backends
--------
- CPU:  sequential host kernels (NumPy views of the tensor storage)
- CUDA: PyTorch kernels, level-scheduled sparse substitution

Usage
-----
>>> import torch
>>> from torch_trisolve import CSRMatrix, inplace_solve, solve, trans
>>>
>>> # Dense upper triangular system
>>> A = torch.tensor([[2., 1., 1.], [0., 3., 1.], [0., 0., 4.]], dtype=torch.float64)
>>> b = torch.tensor([4., 4., 4.], dtype=torch.float64)
>>> inplace_solve(A, b, 'upper')   # b is now [1, 1, 1]
>>>
>>> # Transposed operator without copying A
>>> x = solve(trans(A), torch.ones(3, dtype=torch.float64), 'lower')
>>>
>>> # Sparse unit lower triangular system
>>> L = CSRMatrix(torch.tensor([0, 0, 1, 3]), torch.tensor([0, 1, 0]),
...               torch.tensor([2., 3., 1.], dtype=torch.float64), (3, 3))
>>> x = torch.tensor([1., 1., 1.], dtype=torch.float64)
>>> inplace_solve(L, x, 'unit_lower')   # x is now [1, -1, 3]
>>>
>>> # LU without pivoting
>>> from torch_trisolve import lu_factorize, lu_substitute
>>> M = A.T @ A
>>> lu_factorize(M)
>>> lu_substitute(M, b)
"""

from .tags import (
    TriangularTag,
    RowInfoMode,
    TRIANGULAR_TAGS,
    ROW_INFO_MODES,
    location_of,
)

from .errors import (
    TriSolveError,
    DimensionMismatchError,
    MissingDiagonalError,
    ZeroDiagonalError,
    UnsupportedBackendError,
    FactorizationBreakdownError,
)

from .csr import (
    CSRMatrix,
    Transposed,
    trans,
)

from .direct_solve import (
    inplace_solve,
    solve,
    lu_factorize,
    lu_substitute,
)

from .sparse_ops import (
    row_info,
    prod,
)

from .jacobi import (
    JacobiPreconditioner,
    build_jacobi,
    apply,
)

from .backends import (
    BackendOps,
    BACKENDS,
    get_available_backends,
    get_backend,
    select_backend,
    is_cuda_available,
    is_scipy_available,
)

from .convert import coo2csr, csr2coo
from .sort import lexsort
from . import random

__version__ = "0.1.0"

__all__ = [
    # Tags
    "TriangularTag",
    "RowInfoMode",
    "TRIANGULAR_TAGS",
    "ROW_INFO_MODES",
    "location_of",
    # Errors
    "TriSolveError",
    "DimensionMismatchError",
    "MissingDiagonalError",
    "ZeroDiagonalError",
    "UnsupportedBackendError",
    "FactorizationBreakdownError",
    # Containers
    "CSRMatrix",
    "Transposed",
    "trans",
    # Direct solvers
    "inplace_solve",
    "solve",
    "lu_factorize",
    "lu_substitute",
    # Sparse operations
    "row_info",
    "prod",
    # Preconditioner
    "JacobiPreconditioner",
    "build_jacobi",
    "apply",
    # Backends
    "BackendOps",
    "BACKENDS",
    "get_available_backends",
    "get_backend",
    "select_backend",
    "is_cuda_available",
    "is_scipy_available",
    # Utilities
    "coo2csr",
    "csr2coo",
    "lexsort",
    "random",
]
