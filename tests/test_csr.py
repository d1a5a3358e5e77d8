"""
Tests for the CSR container and transposed views.

Tests cover:
- Construction from COO, dense and SciPy inputs
- Structural validation of the CSR arrays
- Zero-copy transposed views and explicit transposes
- Device / dtype conversions
"""

import pytest
import torch
import numpy as np
import scipy.sparse as sp
from itertools import product
import sys

sys.path.insert(0, "..")
from torch_trisolve import (
    CSRMatrix,
    Transposed,
    trans,
    coo2csr,
    csr2coo,
    DimensionMismatchError,
)

DEVICES = ['cpu'] + (['cuda'] if torch.cuda.is_available() else [])


def random_dense(m: int, n: int, dtype=torch.float64, device='cpu'):
    A = torch.randn(m, n, dtype=dtype, device=device)
    A[A.abs() < 0.8] = 0
    return A


@pytest.mark.parametrize(
    ['m', 'n', 'device'],
    product([1, 7, 32], [1, 5, 32], DEVICES)
    )
def test_from_dense_roundtrip(m, n, device):
    D = random_dense(m, n, device=device)
    A = CSRMatrix.from_dense(D)

    assert A.shape == (m, n)
    assert A.nnz == int((D != 0).sum())
    assert A.device.type == device
    torch.testing.assert_close(A.to_dense(), D)


def test_from_coo_orders_entries():
    val = torch.tensor([1., 2., 3., 4.], dtype=torch.float64)
    row = torch.tensor([2, 0, 2, 1])
    col = torch.tensor([1, 2, 0, 1])
    A = CSRMatrix.from_coo(val, row, col, (3, 3))

    assert A.rowptr.tolist() == [0, 1, 2, 4]
    assert A.col.tolist() == [2, 1, 0, 1]
    assert A.val.tolist() == [2., 4., 3., 1.]


def test_coo2csr_keeps_duplicates():
    val = torch.tensor([1., 2., 5.])
    row = torch.tensor([0, 0, 1])
    col = torch.tensor([0, 0, 1])
    v, rowptr, c, shape = coo2csr(val, row, col, (2, 2))

    assert rowptr.tolist() == [0, 2, 3]
    assert v.tolist() == [1., 2., 5.]

    v2, r2, c2, _ = csr2coo(v, rowptr, c, shape)
    assert r2.tolist() == [0, 0, 1]
    torch.testing.assert_close(CSRMatrix(rowptr, c, v, shape).to_dense(),
                               torch.tensor([[3., 0.], [0., 5.]]))


def test_unsorted_columns_are_accepted():
    A = CSRMatrix(torch.tensor([0, 3]), torch.tensor([2, 0, 1]),
                  torch.tensor([3., 1., 2.]), (1, 3))
    torch.testing.assert_close(A.to_dense(), torch.tensor([[1., 2., 3.]]))


@pytest.mark.parametrize(
    ['rowptr', 'col', 'shape'],
    [
        ([1, 2, 3], [0, 1], (2, 2)),     # rowptr[0] != 0
        ([0, 1, 1], [0, 1], (2, 2)),     # rowptr[-1] != nnz
        ([0, 2, 1, 2], [0, 1], (3, 2)),  # decreasing offsets
        ([0, 1, 2], [0, 2], (2, 2)),     # column out of range
        ([0, 1], [0], (2, 2)),           # rowptr too short
    ]
    )
def test_invalid_structure(rowptr, col, shape):
    with pytest.raises(DimensionMismatchError):
        CSRMatrix(torch.tensor(rowptr), torch.tensor(col),
                  torch.ones(len(col), dtype=torch.float64), shape)


def test_integer_values_rejected():
    with pytest.raises(TypeError):
        CSRMatrix(torch.tensor([0, 1]), torch.tensor([0]), torch.tensor([1]), (1, 1))


def test_scipy_roundtrip():
    D = random_dense(12, 9)
    S = sp.csr_matrix(D.numpy())
    A = CSRMatrix.from_scipy(S)

    assert A.shape == (12, 9)
    np.testing.assert_allclose(A.to_scipy().toarray(), D.numpy())
    torch.testing.assert_close(A.to_dense(), D)


@pytest.mark.parametrize(['m', 'n'], [(6, 4), (5, 5)])
def test_trans_dense_and_csr(m, n):
    D = random_dense(m, n)
    A = CSRMatrix.from_dense(D)

    At = trans(A)
    assert isinstance(At, Transposed)
    assert At.operand is A
    assert At.shape == (n, m)
    assert trans(At) is A
    assert A.T.operand is A
    torch.testing.assert_close(At.materialize().to_dense(), D.T)
    torch.testing.assert_close(A.transpose().to_dense(), D.T)

    Dt = trans(D)
    assert Dt.operand is D
    assert trans(Dt) is D
    Dm = Dt.materialize()
    torch.testing.assert_close(Dm, D.T)
    assert Dm.is_contiguous()
    assert Dm.data_ptr() != D.data_ptr()


def test_trans_invalid():
    with pytest.raises(DimensionMismatchError):
        trans(torch.ones(3))
    with pytest.raises(TypeError):
        trans([[1.0]])


def test_to_and_clone():
    A = CSRMatrix.from_dense(random_dense(5, 5))
    B = A.to(dtype=torch.float32)
    assert B.dtype == torch.float32
    assert B.rowptr.dtype == torch.long

    C = A.clone()
    C.val.zero_()
    assert bool((A.val != 0).all())

    assert repr(A) == f"CSRMatrix(shape=(5, 5), nnz={A.nnz}, dtype=torch.float64, device=cpu)"


@pytest.mark.skipif(not torch.cuda.is_available(), reason="CUDA not available")
def test_cuda_transfer():
    A = CSRMatrix.from_dense(random_dense(8, 8))
    Ac = A.cuda()
    assert Ac.device.type == 'cuda'
    assert Ac.rowptr.device.type == 'cuda'
    torch.testing.assert_close(Ac.cpu().to_dense(), A.to_dense())
