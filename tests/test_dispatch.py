"""
Tests for backend dispatch by memory location.
"""

import pytest
import torch
import sys

sys.path.insert(0, "..")
from torch_trisolve import (
    CSRMatrix,
    inplace_solve,
    lu_factorize,
    trans,
    location_of,
    get_available_backends,
    get_backend,
    select_backend,
    BACKENDS,
    UnsupportedBackendError,
    TriSolveError,
)
from torch_trisolve.backends import HOST_BACKEND, TORCH_BACKEND


def test_registry():
    assert BACKENDS['cpu'] is HOST_BACKEND
    assert BACKENDS['cuda'] is TORCH_BACKEND
    assert get_backend('cpu', 'inplace_solve').name == 'host'
    assert get_backend('cuda', 'inplace_solve').name == 'torch'
    assert 'cpu' in get_available_backends()


def test_unknown_location():
    with pytest.raises(UnsupportedBackendError) as info:
        get_backend('xla', 'row_info')
    assert info.value.op == 'row_info'
    assert info.value.location == 'xla'
    assert 'row_info' in str(info.value)
    assert isinstance(info.value, NotImplementedError)
    assert isinstance(info.value, TriSolveError)


def test_location_of():
    A = torch.eye(3)
    C = CSRMatrix.from_dense(A)
    assert location_of(A) == 'cpu'
    assert location_of(C) == 'cpu'
    assert location_of(trans(C)) == 'cpu'
    assert location_of(trans(A)) == 'cpu'
    assert select_backend(trans(C), 'prod') is HOST_BACKEND
    with pytest.raises(TypeError):
        location_of([1.0])


def test_meta_tensor_solve():
    A = torch.empty(3, 3, device='meta')
    b = torch.empty(3, device='meta')
    with pytest.raises(UnsupportedBackendError) as info:
        inplace_solve(A, b, 'lower')
    assert info.value.op == 'inplace_solve'
    assert info.value.location == 'meta'


def test_meta_tensor_lu():
    with pytest.raises(UnsupportedBackendError, match="lu_factorize"):
        lu_factorize(torch.empty(4, 4, device='meta'))


@pytest.mark.skipif(not torch.cuda.is_available(), reason="CUDA not available")
def test_cuda_dispatch():
    A = torch.eye(3, device='cuda')
    assert location_of(A) == 'cuda'
    assert select_backend(A, 'inplace_solve') is TORCH_BACKEND
    assert 'cuda' in get_available_backends()


@pytest.mark.skipif(not torch.cuda.is_available(), reason="CUDA not available")
def test_mixed_devices_rejected():
    A = torch.eye(3, dtype=torch.float64, device='cuda')
    b = torch.ones(3, dtype=torch.float64)
    with pytest.raises(ValueError):
        inplace_solve(A, b, 'lower')
