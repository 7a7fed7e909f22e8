"""
Differentiation backend: the handful of graph operations the pricing
formula and the solver are allowed to use.

PyTorch builds its graph as the operations run, so "building a fresh
graph" for a step simply means re-running the formula on the current
parameter value. Everything the rest of the package needs from the
engine goes through this module:

    - node declaration      (as_node, placeholder, variable)
    - elementwise math      (ln, sqrt, exp, neg, square, reduce_mean)
    - Gaussian CDF          (normal_cdf)
    - reverse-mode gradient (grad)
    - Adam update state     (adam)
    - uniform seeding       (uniform)
    - detaching results     (to_numpy)

Swapping the backend means rewriting this file only.
"""

from typing import Optional, Sequence, Tuple

import numpy as np
import torch
from torch.distributions import Normal

from . import config


# ════════════════════════════════════════════════════════════════════════
#  NODES
# ════════════════════════════════════════════════════════════════════════

def as_node(value) -> torch.Tensor:
    """Wrap a number, array or tensor as a float64 tensor on the configured device."""
    if isinstance(value, torch.Tensor):
        if value.dtype == config.DTYPE and value.device == config.DEVICE:
            return value
        return value.to(dtype=config.DTYPE, device=config.DEVICE)
    return torch.as_tensor(np.asarray(value, dtype=np.float64),
                           dtype=config.DTYPE, device=config.DEVICE)


def placeholder(value) -> torch.Tensor:
    """Bound input node. Never receives a gradient."""
    return as_node(value).detach()


def variable(value) -> torch.Tensor:
    """Trainable leaf node holding its own copy of ``value``."""
    return as_node(value).detach().clone().requires_grad_(True)


def is_node(value) -> bool:
    return isinstance(value, torch.Tensor)


# ════════════════════════════════════════════════════════════════════════
#  ELEMENTWISE MATH
# ════════════════════════════════════════════════════════════════════════

def ln(x: torch.Tensor) -> torch.Tensor:
    return torch.log(x)


def sqrt(x: torch.Tensor) -> torch.Tensor:
    return torch.sqrt(x)


def exp(x: torch.Tensor) -> torch.Tensor:
    return torch.exp(x)


def neg(x: torch.Tensor) -> torch.Tensor:
    return torch.neg(x)


def square(x: torch.Tensor) -> torch.Tensor:
    return torch.square(x)


def reduce_mean(x: torch.Tensor) -> torch.Tensor:
    """Mean over every element, collapsing to a scalar node."""
    return torch.mean(x)


def normal_cdf(x: torch.Tensor, mean: float = 0.0, std: float = 1.0) -> torch.Tensor:
    """
    Gaussian CDF Φ((x - mean) / std), differentiable in ``x``.

    Backed by torch.distributions.Normal, which evaluates through erf
    and keeps the graph intact.
    """
    dist = Normal(
        loc=torch.tensor(mean, dtype=x.dtype, device=x.device),
        scale=torch.tensor(std, dtype=x.dtype, device=x.device),
        validate_args=False,  # NaN must flow through, not fail the support check
    )
    return dist.cdf(x)


# ════════════════════════════════════════════════════════════════════════
#  DIFFERENTIATION + OPTIMIZER
# ════════════════════════════════════════════════════════════════════════

def grad(loss: torch.Tensor, param: torch.Tensor) -> torch.Tensor:
    """Gradient of a scalar ``loss`` with respect to ``param``."""
    (g,) = torch.autograd.grad(loss, param)
    return g


def adam(
    params: Sequence[torch.Tensor],
    learning_rate: Optional[float] = None,
    betas: Optional[Tuple[float, float]] = None,
    eps: Optional[float] = None,
) -> torch.optim.Adam:
    """
    Adam optimizer over ``params``.

    The first/second moment buffers are created zeroed, keyed to each
    parameter tensor, and advanced in place by every ``step()``.
    """
    return torch.optim.Adam(
        list(params),
        lr=config.LEARNING_RATE if learning_rate is None else learning_rate,
        betas=config.ADAM_BETAS if betas is None else betas,
        eps=config.ADAM_EPS if eps is None else eps,
    )


# ════════════════════════════════════════════════════════════════════════
#  ARRAYS IN / OUT
# ════════════════════════════════════════════════════════════════════════

def uniform(shape: Tuple[int, ...], seed: Optional[int] = None) -> np.ndarray:
    """
    Standard-uniform samples of the given shape, in [0, 1).

    With a seed, draws from a fresh numpy Generator (reproducible per call);
    without one, from numpy's global state so ``np.random.seed`` applies.
    """
    if seed is not None:
        samples = np.random.default_rng(seed).random(shape)
    else:
        samples = np.random.random_sample(shape)
    return np.asarray(samples, dtype=np.float64)


def to_numpy(node: torch.Tensor):
    """Detached numpy copy of a node; 0-d nodes come back as numpy scalars."""
    out = node.detach().cpu().numpy().copy()
    if out.ndim == 0:
        return out[()]
    return out
