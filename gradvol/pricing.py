"""
Black-Scholes pricing written as a differentiable expression.

The formula is built from the operations in ``graph`` only, so the
price stays differentiable end to end with respect to volatility. That
derivative is what the implied volatility solver descends on, and what
``vega`` exposes directly.

Dividend-free form, with the drift folded into d1 as

    d1 = ln(S/K) + T * (sigma^2 / 2 + r)
    d2 = d1 - sigma * sqrt(T)

There is no special-casing of T <= 0 or sigma <= 0: such inputs produce
non-finite prices rather than errors. This module prices, it does not
validate.

References:
    Black, F. & Scholes, M. (1973). The Pricing of Options and Corporate Liabilities.
"""

import functools
from enum import Enum
from typing import Union

import numpy as np
import torch

from . import graph

# number, numpy array or graph node
ArrayLike = Union[float, np.ndarray, torch.Tensor]


class OptionType(str, Enum):
    CALL = "call"
    PUT = "put"

    @classmethod
    def parse(cls, value) -> "OptionType":
        """Accept the enum itself or "call"/"c"/"put"/"p" in any case."""
        if isinstance(value, cls):
            return value
        key = str(value).lower()
        if key in ("c", "call"):
            return cls.CALL
        if key in ("p", "put"):
            return cls.PUT
        raise ValueError(f"Unknown payoff_type: {value}. Use 'call' or 'put'.")


def _graph_or_array(formula):
    """
    Let a node-level formula also take plain numbers and numpy arrays.

    Any tensor among the inputs means the caller is building a graph:
    the tensor result is returned as is. Otherwise the formula runs with
    gradient tracking off and the result comes back as numpy.
    """
    @functools.wraps(formula)
    def wrapper(spot, time_to_maturity, strike, volatility, risk_free_rate):
        nodes = [spot, time_to_maturity, strike, volatility]
        r = float(risk_free_rate)
        if any(graph.is_node(x) for x in nodes):
            return formula(*(graph.as_node(x) for x in nodes), r)
        with torch.no_grad():
            out = formula(*(graph.placeholder(x) for x in nodes), r)
        return graph.to_numpy(out)
    return wrapper


# ════════════════════════════════════════════════════════════════════════
#  SHARED TERMS
# ════════════════════════════════════════════════════════════════════════

@_graph_or_array
def d1(S: ArrayLike, T: ArrayLike, K: ArrayLike, sigma: ArrayLike,
       r: float) -> ArrayLike:
    return graph.ln(S / K) + T * (graph.square(sigma) / 2.0 + r)


@_graph_or_array
def d2(S: ArrayLike, T: ArrayLike, K: ArrayLike, sigma: ArrayLike,
       r: float) -> ArrayLike:
    return d1(S, T, K, sigma, r) - sigma * graph.sqrt(T)


def _discounted_strike(T, K, r):
    return K * graph.exp(graph.neg(T * r))


# ════════════════════════════════════════════════════════════════════════
#  PRICES
# ════════════════════════════════════════════════════════════════════════

@_graph_or_array
def call_price(S: ArrayLike, T: ArrayLike, K: ArrayLike, sigma: ArrayLike,
               r: float) -> ArrayLike:
    """
    European call: S * Φ(d1) - K * e^{-rT} * Φ(d2).

    Parameters
    ----------
    S : spot price
    T : time to maturity in years
    K : strike price
    sigma : volatility (annualized)
    r : risk-free rate, plain scalar (continuous compounding)

    Inputs broadcast against each other. Tensors in, tensor out;
    anything else in, numpy out.
    """
    _d1 = d1(S, T, K, sigma, r)
    _d2 = _d1 - sigma * graph.sqrt(T)
    return (S * graph.normal_cdf(_d1, 0.0, 1.0)
            - _discounted_strike(T, K, r) * graph.normal_cdf(_d2, 0.0, 1.0))


@_graph_or_array
def put_price(S: ArrayLike, T: ArrayLike, K: ArrayLike, sigma: ArrayLike,
              r: float) -> ArrayLike:
    """European put: K * e^{-rT} * Φ(-d2) - S * Φ(-d1). Same conventions as call_price."""
    _d1 = d1(S, T, K, sigma, r)
    _d2 = _d1 - sigma * graph.sqrt(T)
    return (_discounted_strike(T, K, r) * graph.normal_cdf(graph.neg(_d2), 0.0, 1.0)
            - S * graph.normal_cdf(graph.neg(_d1), 0.0, 1.0))


def price(payoff_type, spot: ArrayLike, time_to_maturity: ArrayLike, strike: ArrayLike,
          volatility: ArrayLike, risk_free_rate: float) -> ArrayLike:
    """Dispatch to call_price / put_price by payoff type."""
    if OptionType.parse(payoff_type) is OptionType.CALL:
        return call_price(spot, time_to_maturity, strike, volatility, risk_free_rate)
    return put_price(spot, time_to_maturity, strike, volatility, risk_free_rate)


# ════════════════════════════════════════════════════════════════════════
#  SENSITIVITY
# ════════════════════════════════════════════════════════════════════════

def vega(payoff_type, spot: ArrayLike, time_to_maturity: ArrayLike, strike: ArrayLike,
         volatility: ArrayLike, risk_free_rate: float) -> ArrayLike:
    """
    dPrice/dsigma, by reverse-mode differentiation of the pricing graph.

    Identical for calls and puts since call - put does not depend on
    sigma. Returns numpy with the broadcast shape of the inputs.
    """
    S = graph.placeholder(spot)
    T = graph.placeholder(time_to_maturity)
    K = graph.placeholder(strike)
    vol = graph.placeholder(volatility)
    shape = torch.broadcast_shapes(S.shape, T.shape, K.shape, vol.shape)
    # one sigma per output element, so the summed gradient stays elementwise
    sigma = graph.variable(torch.broadcast_to(vol, shape))
    prices = price(payoff_type, S, T, K, sigma, risk_free_rate)
    return graph.to_numpy(graph.grad(prices.sum(), sigma))
