"""
Tags consumed by the solvers.

Triangular shape tags
---------------------
- 'lower':      lower triangular, diagonal stored and divided by
- 'unit_lower': lower triangular, implicit unit diagonal (never read)
- 'upper':      upper triangular, diagonal stored and divided by
- 'unit_upper': upper triangular, implicit unit diagonal (never read)

Row-info modes
--------------
- 'norm_inf': max absolute value in the row
- 'norm_1':   sum of absolute values in the row
- 'norm_2':   Euclidean norm of the row
- 'diagonal': diagonal entry of the row (0 if not stored)
"""

from typing import Literal, Tuple

import torch

TriangularTag = Literal['lower', 'unit_lower', 'upper', 'unit_upper']
RowInfoMode = Literal['norm_inf', 'norm_1', 'norm_2', 'diagonal']

TRIANGULAR_TAGS: Tuple[str, ...] = ('lower', 'unit_lower', 'upper', 'unit_upper')
ROW_INFO_MODES: Tuple[str, ...] = ('norm_inf', 'norm_1', 'norm_2', 'diagonal')


def check_tag(tag: str) -> str:
    if tag not in TRIANGULAR_TAGS:
        raise ValueError(f"Unknown triangular tag: {tag!r}. Available: {', '.join(TRIANGULAR_TAGS)}")
    return tag


def check_mode(mode: str) -> str:
    if mode not in ROW_INFO_MODES:
        raise ValueError(f"Unknown row info mode: {mode!r}. Available: {', '.join(ROW_INFO_MODES)}")
    return mode


def is_lower(tag: str) -> bool:
    """True for tags solved by forward substitution"""
    return check_tag(tag) in ('lower', 'unit_lower')


def is_unit(tag: str) -> bool:
    """True for tags whose diagonal is implicitly one"""
    return check_tag(tag) in ('unit_lower', 'unit_upper')


def location_of(obj) -> str:
    """
    Memory-location tag of a tensor, CSRMatrix or transposed view.

    The tag is the ``torch.device.type`` of the storage ('cpu', 'cuda', ...).
    """
    from .csr import Transposed

    if isinstance(obj, Transposed):
        obj = obj.operand
    device = getattr(obj, 'device', None)
    if device is None:
        raise TypeError(f"Cannot determine memory location of {type(obj).__name__}")
    return torch.device(device).type
