import torch
from typing import Sequence

def lexsort(keys:Sequence[torch.Tensor], dim=-1)->torch.Tensor:
    """ Multi level stable sort, the last key is the primary one (as numpy.lexsort)
    https://discuss.pytorch.org/t/numpy-lexsort-equivalent-in-pytorch/47850/4


    Parameters
    ----------
    keys: Sequence[torch.Tensor]
        sequence of tensors of identical shape

    dim: int
        the dimension for sorting


    Returns
    -------
    indices: torch.Tensor
        the sorted indices

    """
    if len(keys) == 0:
        raise ValueError(f"Must have at least 1 key, but {len(keys)=}.")
    if any(k.shape != keys[0].shape for k in keys):
        raise ValueError(f"keys must share one shape, got {[tuple(k.shape) for k in keys]}.")

    idx = keys[0].argsort(dim=dim, stable=True)
    for k in keys[1:]:
        idx = idx.gather(dim, k.gather(dim, idx).argsort(dim=dim, stable=True))

    return idx
