#!/usr/bin/env python
"""
Basic Usage Examples for torch-trisolve

This example demonstrates:
1. Dense triangular solves, in place and on a copy
2. Transposed operands without copies
3. Sparse (CSR) triangular solves
4. LU factorization without pivoting
5. Row statistics and the Jacobi preconditioner
"""

import torch
from torch_trisolve import (
    CSRMatrix,
    inplace_solve,
    solve,
    trans,
    lu_factorize,
    lu_substitute,
    row_info,
    prod,
    build_jacobi,
)
from torch_trisolve.random import triangular, diagonally_dominant


# =============================================================================
# 1. Dense solves
# =============================================================================

def example_1_dense():
    """Solve an upper triangular system in place."""
    A = torch.tensor([[2.0, 1.0, 1.0],
                      [0.0, 3.0, 1.0],
                      [0.0, 0.0, 4.0]], dtype=torch.float64)
    b = torch.tensor([4.0, 4.0, 4.0], dtype=torch.float64)

    inplace_solve(A, b, 'upper')
    print(f"x = {b}")  # [1, 1, 1]

    # Several right-hand sides at once, B is left untouched
    B = torch.randn(3, 4, dtype=torch.float64)
    X = solve(A, B, 'upper')
    print(f"residual = {(A @ X - B).abs().max():.2e}")


# =============================================================================
# 2. Transposed operands
# =============================================================================

def example_2_transposed():
    """A^T x = b with a lower tag reads the upper triangle of A."""
    A = torch.triu(torch.rand(5, 5, dtype=torch.float64)) + torch.eye(5, dtype=torch.float64)
    b = torch.randn(5, dtype=torch.float64)

    x = solve(trans(A), b, 'lower')
    print(f"residual = {(A.T @ x - b).abs().max():.2e}")

    # Rows of B as right-hand sides: solve A X = B^T, written back into B
    B = torch.randn(2, 5, dtype=torch.float64)
    B0 = B.clone()
    inplace_solve(A, trans(B), 'upper')
    print(f"residual = {(A @ B.T - B0.T).abs().max():.2e}")


# =============================================================================
# 3. Sparse solves
# =============================================================================

def example_3_sparse():
    """Unit lower triangular CSR solve."""
    L = CSRMatrix(torch.tensor([0, 0, 1, 3]),
                  torch.tensor([0, 1, 0]),
                  torch.tensor([2.0, 3.0, 1.0], dtype=torch.float64),
                  (3, 3))
    x = torch.ones(3, dtype=torch.float64)
    inplace_solve(L, x, 'unit_lower')
    print(f"{L}\nx = {x}")  # [1, -1, 3]

    # Larger random system, also on GPU when available
    device = 'cuda' if torch.cuda.is_available() else 'cpu'
    U = triangular(1000, 'upper', density=0.01, device=device)
    b = torch.randn(1000, dtype=torch.float64, device=device)
    x = solve(U, b, 'upper')
    print(f"residual on {device} = {(prod(U, x) - b).abs().max():.2e}")


# =============================================================================
# 4. LU
# =============================================================================

def example_4_lu():
    """Factor a diagonally dominant matrix and reuse the factors."""
    A = diagonally_dominant(50)
    LU = A.clone()
    lu_factorize(LU)

    for _ in range(3):
        b = torch.randn(50, dtype=torch.float64)
        x = b.clone()
        lu_substitute(LU, x)
        print(f"residual = {(A @ x - b).abs().max():.2e}")


# =============================================================================
# 5. Row statistics and Jacobi
# =============================================================================

def example_5_jacobi():
    """Row norms and a diagonal preconditioner."""
    A = CSRMatrix.from_dense(diagonally_dominant(6))
    for mode in ['norm_inf', 'norm_1', 'norm_2', 'diagonal']:
        print(f"{mode:>9}: {row_info(A, mode)}")

    P = build_jacobi(A)
    r = torch.ones(6, dtype=torch.float64)
    print(f"{P}\nz = {P(r)}")


if __name__ == '__main__':
    example_1_dense()
    example_2_transposed()
    example_3_sparse()
    example_4_lu()
    example_5_jacobi()
