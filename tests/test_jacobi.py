import pytest
import torch
from itertools import product
import sys
sys.path.append("..")
from torch_trisolve import (
    CSRMatrix,
    JacobiPreconditioner,
    build_jacobi,
    apply,
    trans,
    ZeroDiagonalError,
    MissingDiagonalError,
    DimensionMismatchError,
)
from torch_trisolve.random import diagonally_dominant

DEVICES = ['cpu'] + (['cuda'] if torch.cuda.is_available() else [])
FORMATS = ['dense', 'csr', 'torch_coo', 'torch_csr']


def as_format(D: torch.Tensor, fmt: str):
    if fmt == 'dense':
        return D
    if fmt == 'csr':
        return CSRMatrix.from_dense(D)
    if fmt == 'torch_coo':
        return D.to_sparse_coo()
    return D.to_sparse_csr()


@pytest.mark.parametrize(
    ['n', 'fmt', 'device'],
    product([1, 10, 64], FORMATS, DEVICES)
    )
def test_apply_divides_by_diagonal(n, fmt, device):
    D = diagonally_dominant(n, device=device)
    P = build_jacobi(as_format(D, fmt))
    torch.testing.assert_close(P.diagonal, D.diagonal())

    b = torch.randn(n, dtype=torch.float64, device=device)
    expected = b / D.diagonal()

    z = P(b)
    torch.testing.assert_close(z, expected)
    assert z.data_ptr() != b.data_ptr()

    r = b.clone()
    out = apply(P, r)
    assert out is r
    torch.testing.assert_close(r, expected)


def test_zero_diagonal_dense():
    A = torch.tensor([[1., 2., 0.],
                      [3., 0., 1.],
                      [0., 1., 2.]], dtype=torch.float64)
    with pytest.raises(ZeroDiagonalError) as info:
        JacobiPreconditioner(A)
    assert info.value.row == 1


def test_absent_csr_diagonal_is_zero():
    A = CSRMatrix.from_coo(torch.tensor([1., 2., 3.], dtype=torch.float64),
                           torch.tensor([0, 1, 2]), torch.tensor([0, 0, 2]), (3, 3))
    with pytest.raises(ZeroDiagonalError) as info:
        JacobiPreconditioner(A)
    assert info.value.row == 1


def test_missing_diagonal_torch_sparse():
    indices = torch.tensor([[0, 1, 2], [0, 0, 2]])
    values = torch.tensor([1., 2., 3.], dtype=torch.float64)
    A = torch.sparse_coo_tensor(indices, values, (3, 3))
    with pytest.raises(MissingDiagonalError) as info:
        JacobiPreconditioner(A)
    assert info.value.row == 1

    with pytest.raises(MissingDiagonalError):
        JacobiPreconditioner(A.coalesce().to_sparse_csr())


def test_stored_zero_torch_sparse():
    indices = torch.tensor([[0, 1], [0, 1]])
    values = torch.tensor([1., 0.], dtype=torch.float64)
    A = torch.sparse_coo_tensor(indices, values, (2, 2))
    with pytest.raises(ZeroDiagonalError):
        JacobiPreconditioner(A)


def test_transposed_has_same_diagonal():
    D = diagonally_dominant(6)
    P = build_jacobi(trans(D))
    torch.testing.assert_close(P.diagonal, D.diagonal())


def test_init_keeps_state_on_failure():
    D = diagonally_dominant(4)
    P = JacobiPreconditioner(D)
    diag = P.diagonal.clone()

    with pytest.raises(ZeroDiagonalError):
        P.init(torch.zeros(4, 4, dtype=torch.float64))
    torch.testing.assert_close(P.diagonal, diag)

    P.init(2 * D)
    torch.testing.assert_close(P.diagonal, 2 * diag)


def test_diagonal_is_a_snapshot():
    D = diagonally_dominant(5)
    P = JacobiPreconditioner(D)
    expected = D.diagonal().clone()
    D.diagonal().fill_(100.)
    torch.testing.assert_close(P.diagonal, expected)


def test_jacobi_errors():
    with pytest.raises(DimensionMismatchError):
        JacobiPreconditioner(torch.ones(3, 4, dtype=torch.float64))
    with pytest.raises(DimensionMismatchError):
        JacobiPreconditioner(CSRMatrix.from_dense(torch.ones(2, 3, dtype=torch.float64)))
    with pytest.raises(TypeError):
        JacobiPreconditioner([[1.0]])

    P = JacobiPreconditioner(diagonally_dominant(3))
    with pytest.raises(DimensionMismatchError):
        P(torch.ones(4, dtype=torch.float64))
    with pytest.raises(DimensionMismatchError):
        P(torch.ones(3, 1, dtype=torch.float64))
    with pytest.raises(ZeroDivisionError):
        JacobiPreconditioner(torch.zeros(2, 2, dtype=torch.float64))

    assert repr(P) == "JacobiPreconditioner(size=3, dtype=torch.float64, device=cpu)"
