"""
CSR container and zero-copy transposed views.

Examples
--------
>>> import torch
>>> from torch_trisolve import CSRMatrix, trans
>>>
>>> # 3x3 unit lower triangular matrix, rows may be stored in any column order
>>> rowptr = torch.tensor([0, 0, 1, 3])
>>> col = torch.tensor([0, 1, 0])
>>> val = torch.tensor([2.0, 3.0, 1.0], dtype=torch.float64)
>>> L = CSRMatrix(rowptr, col, val, (3, 3))
>>> print(L)
CSRMatrix(shape=(3, 3), nnz=3, dtype=torch.float64, device=cpu)
>>>
>>> # Transposed operator, no data is copied
>>> Lt = trans(L)
>>> Lt.operand is L
True
"""

import torch
from typing import Optional, Tuple, Union

from .check import check_csr, check_floating
from .convert import coo2csr, csr2coo
from .errors import DimensionMismatchError


class CSRMatrix:
    """
    Sparse matrix in compressed row storage.

    Parameters
    ----------
    rowptr : torch.Tensor
        [m+1] row offsets, ``rowptr[0] == 0`` and ``rowptr[-1] == nnz``.
    col : torch.Tensor
        [nnz] column index of every stored entry, in ``[0, n)``.
    val : torch.Tensor
        [nnz] floating point values.
    shape : Tuple[int, int]
        (m, n)

    Within a row the entries need not be sorted by column. All three arrays
    must live on the same device; that device is the memory location used to
    select a backend.
    """

    def __init__(
        self,
        rowptr: torch.Tensor,
        col: torch.Tensor,
        val: torch.Tensor,
        shape: Tuple[int, int],
    ):
        if not (rowptr.device == col.device == val.device):
            raise ValueError(
                f"rowptr, col and val must be on the same device, "
                f"got {rowptr.device}, {col.device} and {val.device}"
            )
        check_floating("val", val)
        self.rowptr = rowptr.long()
        self.col = col.long()
        self.val = val
        self._shape = (int(shape[0]), int(shape[1]))
        check_csr(self.val, self.rowptr, self.col, self._shape)

    # =========================================================================
    # Class Methods
    # =========================================================================

    @classmethod
    def from_coo(
        cls,
        val: torch.Tensor,
        row: torch.Tensor,
        col: torch.Tensor,
        shape: Tuple[int, int],
    ) -> "CSRMatrix":
        """Build from COO triplets, entries are ordered by (row, col)."""
        val, rowptr, col, shape = coo2csr(val, row, col, shape)
        return cls(rowptr, col, val, shape)

    @classmethod
    def from_dense(cls, A: torch.Tensor) -> "CSRMatrix":
        """Build from a dense 2-D tensor, keeping its non-zero entries."""
        if A.ndim != 2:
            raise DimensionMismatchError("A", tuple(A.shape), "(m,n)")
        row, col = torch.nonzero(A, as_tuple=True)
        return cls.from_coo(A[row, col], row, col, tuple(A.shape))

    @classmethod
    def from_scipy(cls, A, device: Optional[Union[str, torch.device]] = None) -> "CSRMatrix":
        """Build from any SciPy sparse matrix (converted to CSR first)."""
        from .backends import is_scipy_available
        if not is_scipy_available():
            raise ImportError("SciPy is required for from_scipy")

        A = A.tocsr()
        return cls(
            torch.from_numpy(A.indptr.astype("int64")).to(device=device),
            torch.from_numpy(A.indices.astype("int64")).to(device=device),
            torch.from_numpy(A.data.copy()).to(device=device),
            A.shape,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def shape(self) -> Tuple[int, int]:
        return self._shape

    @property
    def nnz(self) -> int:
        return self.val.shape[0]

    @property
    def dtype(self) -> torch.dtype:
        return self.val.dtype

    @property
    def device(self) -> torch.device:
        return self.val.device

    @property
    def is_square(self) -> bool:
        return self._shape[0] == self._shape[1]

    @property
    def T(self) -> "Transposed":
        """Zero-copy transposed view, same as ``trans(self)``"""
        return Transposed(self)

    # =========================================================================
    # Conversions
    # =========================================================================

    def to(
        self,
        device: Optional[Union[str, torch.device]] = None,
        dtype: Optional[torch.dtype] = None,
    ) -> "CSRMatrix":
        """Move to a device and/or cast the values."""
        return CSRMatrix(
            self.rowptr.to(device=device),
            self.col.to(device=device),
            self.val.to(device=device, dtype=dtype),
            self._shape,
        )

    def cpu(self) -> "CSRMatrix":
        return self.to("cpu")

    def cuda(self, device: Optional[int] = None) -> "CSRMatrix":
        return self.to(torch.device("cuda", device) if device is not None else "cuda")

    def clone(self) -> "CSRMatrix":
        return CSRMatrix(self.rowptr.clone(), self.col.clone(), self.val.clone(), self._shape)

    def to_coo(self) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor, Tuple[int, int]]:
        """Return (val, row, col, shape)"""
        return csr2coo(self.val, self.rowptr, self.col, self._shape)

    def to_dense(self) -> torch.Tensor:
        """Dense copy, duplicate entries are summed."""
        val, row, col, shape = self.to_coo()
        out = torch.zeros(shape, dtype=self.dtype, device=self.device)
        out.index_put_((row, col), val, accumulate=True)
        return out

    def to_scipy(self):
        """Return a ``scipy.sparse.csr_matrix`` sharing no memory with self"""
        from .backends import is_scipy_available
        if not is_scipy_available():
            raise ImportError("SciPy is required for to_scipy")
        import scipy.sparse as sp

        return sp.csr_matrix(
            (
                self.val.detach().cpu().numpy().copy(),
                self.col.cpu().numpy().copy(),
                self.rowptr.cpu().numpy().copy(),
            ),
            shape=self._shape,
        )

    def transpose(self) -> "CSRMatrix":
        """
        Explicit transpose as a new CSRMatrix.

        Unlike ``trans(self)`` this copies and reorders the data.
        """
        val, row, col, (m, n) = self.to_coo()
        return CSRMatrix.from_coo(val, col, row, (n, m))

    def __repr__(self) -> str:
        return f"CSRMatrix(shape={self._shape}, nnz={self.nnz}, dtype={self.dtype}, device={self.device.type})"


class Transposed:
    """
    Logical transpose of a dense matrix or CSRMatrix.

    Holds a reference to ``operand`` and swaps the row/column interpretation;
    no data is copied. Writes through a transposed dense right-hand side land
    in the operand's storage.
    """

    __slots__ = ("operand",)

    def __init__(self, operand: Union[torch.Tensor, CSRMatrix]):
        self.operand = operand

    @property
    def shape(self) -> Tuple[int, int]:
        m, n = self.operand.shape
        return (n, m)

    @property
    def dtype(self) -> torch.dtype:
        return self.operand.dtype

    @property
    def device(self) -> torch.device:
        return self.operand.device

    @property
    def T(self) -> Union[torch.Tensor, CSRMatrix]:
        return self.operand

    def materialize(self) -> Union[torch.Tensor, CSRMatrix]:
        """Fresh copy holding the transposed data."""
        if isinstance(self.operand, CSRMatrix):
            return self.operand.transpose()
        return self.operand.mT.clone(memory_format=torch.contiguous_format)

    def __repr__(self) -> str:
        return f"Transposed({self.operand!r})"


def trans(x: Union[torch.Tensor, CSRMatrix, Transposed]) -> Union[Transposed, torch.Tensor, CSRMatrix]:
    """
    Zero-copy transposed view of a matrix.

    ``trans(trans(A))`` returns ``A`` itself.
    """
    if isinstance(x, Transposed):
        return x.operand
    if isinstance(x, CSRMatrix):
        return Transposed(x)
    if isinstance(x, torch.Tensor):
        if x.ndim != 2:
            raise DimensionMismatchError("x", tuple(x.shape), "(m,n)")
        return Transposed(x)
    raise TypeError(f"Cannot transpose {type(x).__name__}")
