"""
Backend management for torch-trisolve

Every operation is routed to the backend registered for the memory location
of its system matrix (the ``torch.device.type`` of its storage):

Backends:
- 'host':  sequential NumPy kernels over borrowed CPU buffers (location 'cpu')
- 'torch': data-parallel PyTorch kernels (location 'cuda')
  Sparse substitutions use level scheduling, dense triangular solves use
  ``torch.linalg.solve_triangular``.

There is no selection heuristic: a location maps to exactly one backend, and
a location without a registered backend raises ``UnsupportedBackendError``.

Both backends implement the same capabilities:
- dense_inplace_solve(A, B, tag)
- lu_factorize(A)
- csr_inplace_solve(rowptr, col, val, x, tag, transposed)
- csr_row_info(rowptr, col, val, out, mode)
- csr_prod(rowptr, col, val, x, out, transposed)

Usage:
    ops = select_backend(A, 'inplace_solve')
    ops.dense_inplace_solve(A, B, 'lower')
"""

from typing import Callable, Dict, List, Literal, NamedTuple, Optional

import torch

from ..errors import UnsupportedBackendError
from ..tags import location_of
from . import host_backend, torch_backend

# Type aliases
BackendType = Literal['host', 'torch']
LocationType = Literal['cpu', 'cuda']


class BackendOps(NamedTuple):
    """Capabilities of one backend."""
    name: str
    dense_inplace_solve: Callable
    lu_factorize: Callable
    csr_inplace_solve: Callable
    csr_row_info: Callable
    csr_prod: Callable


HOST_BACKEND = BackendOps(
    name='host',
    dense_inplace_solve=host_backend.dense_inplace_solve,
    lu_factorize=host_backend.lu_factorize,
    csr_inplace_solve=host_backend.csr_inplace_solve,
    csr_row_info=host_backend.csr_row_info,
    csr_prod=host_backend.csr_prod,
)

TORCH_BACKEND = BackendOps(
    name='torch',
    dense_inplace_solve=torch_backend.dense_inplace_solve,
    lu_factorize=torch_backend.lu_factorize,
    csr_inplace_solve=torch_backend.csr_inplace_solve,
    csr_row_info=torch_backend.csr_row_info,
    csr_prod=torch_backend.csr_prod,
)

# Memory location -> backend mapping
BACKENDS: Dict[str, BackendOps] = {
    'cpu': HOST_BACKEND,
    'cuda': TORCH_BACKEND,
}

# Backend availability flags
_scipy_available: Optional[bool] = None


def is_cuda_available() -> bool:
    """Check if CUDA is available"""
    return torch.cuda.is_available()


def is_scipy_available() -> bool:
    """Check if SciPy is available (only needed for CSRMatrix.to_scipy/from_scipy)"""
    global _scipy_available
    if _scipy_available is None:
        try:
            import scipy.sparse
            _scipy_available = True
        except ImportError:
            _scipy_available = False
    return _scipy_available


def get_available_backends() -> List[str]:
    """Get list of memory locations with a usable backend on this machine"""
    locations = ['cpu']

    if is_cuda_available():
        locations.append('cuda')

    return locations


def get_backend(location: str, op: str) -> BackendOps:
    """
    Look up the backend registered for a memory location.

    Parameters
    ----------
    location : str
        Memory location tag ('cpu', 'cuda', ...)
    op : str
        Name of the requested operation, reported in the error

    Returns
    -------
    BackendOps

    Raises
    ------
    UnsupportedBackendError
        If no backend is registered for ``location``.
    """
    ops = BACKENDS.get(location)
    if ops is None:
        raise UnsupportedBackendError(op, location)
    return ops


def select_backend(system_matrix, op: str) -> BackendOps:
    """Backend for the memory location of ``system_matrix``"""
    return get_backend(location_of(system_matrix), op)
