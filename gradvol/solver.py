"""
Implied volatility by gradient descent on the pricing formula.

Instead of bracketing a root or running Newton on vega, the volatility
array is treated as a trainable parameter: each epoch prices the whole
batch with the current estimate, takes the mean squared pricing error
as the loss, differentiates it with respect to volatility and lets Adam
move the estimate. The whole batch is one vectorized problem; every
element only sees its own gradient, so scenarios do not interact.

Contract:
    - the four input arrays must share one shape (ShapeMismatchError otherwise,
      raised before anything is allocated)
    - the seed is standard-uniform, no analytic first guess
    - exactly ``epochs`` updates, no tolerance, no early stop
    - epochs=0 hands back the raw seed

The per-epoch graph is rebuilt from the current volatility each time;
only the shared volatility array and the Adam moments live across epochs.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from . import config, graph
from .exceptions import ShapeMismatchError
from .pricing import OptionType, price
from .shared import SharedArray

logger = logging.getLogger(__name__)


@dataclass
class CalibrationResult:
    """
    Outcome of one solver run.

    volatility : calibrated vol, same shape as the inputs
    loss_history : MSE loss seen at each epoch, before that epoch's update
    epochs : number of updates applied
    """
    volatility: np.ndarray
    loss_history: np.ndarray
    epochs: int

    @property
    def final_loss(self) -> float:
        if len(self.loss_history) == 0:
            return float("nan")
        return float(self.loss_history[-1])


def _check_shapes(observed_price, spot, time_to_maturity, strike):
    shapes = {
        "observed_price": np.shape(observed_price),
        "spot": np.shape(spot),
        "time_to_maturity": np.shape(time_to_maturity),
        "strike": np.shape(strike),
    }
    if len(set(shapes.values())) != 1:
        detail = ", ".join(f"{name}={shape}" for name, shape in shapes.items())
        raise ShapeMismatchError(f"Input arrays must share one shape, got {detail}")
    return shapes["observed_price"]


def calibrate(
    payoff_type,
    observed_price,
    spot,
    time_to_maturity,
    strike,
    risk_free_rate: float,
    epochs: Optional[int] = None,
    *,
    learning_rate: Optional[float] = None,
    seed: Optional[int] = None,
    lock_timeout: Optional[float] = None,
) -> CalibrationResult:
    """
    Fit volatility so the priced options match ``observed_price``.

    Parameters
    ----------
    payoff_type : "call" or "put" (or OptionType), one payoff for the whole batch
    observed_price : market prices, any shape
    spot, time_to_maturity, strike : same shape as observed_price
    risk_free_rate : scalar, not optimized
    epochs : number of Adam updates (default: config.EPOCHS)
    learning_rate : Adam step size (default: config.LEARNING_RATE)
    seed : seed for the uniform initial guess (default: numpy global state)
    lock_timeout : seconds to wait on the shared array (default: config.LOCK_TIMEOUT)

    Returns
    -------
    CalibrationResult

    Raises
    ------
    ShapeMismatchError : input arrays differ in shape
    LockAcquisitionError : shared volatility array could not be locked
    ValueError : unknown payoff_type or negative epochs
    """
    shape = _check_shapes(observed_price, spot, time_to_maturity, strike)
    kind = OptionType.parse(payoff_type)
    if epochs is None:
        epochs = config.EPOCHS
    if epochs < 0:
        raise ValueError(f"epochs must be >= 0, got {epochs}")

    logger.debug("solving implied %s volatility: batch shape %s, %d epochs",
                 kind.value, shape, epochs)

    volatility = SharedArray(graph.uniform(shape, seed), timeout=lock_timeout)
    optimizer = graph.adam([volatility.parameter], learning_rate=learning_rate)

    losses = np.empty(epochs, dtype=np.float64)
    for epoch in range(epochs):
        target = graph.placeholder(observed_price)
        S = graph.placeholder(spot)
        T = graph.placeholder(time_to_maturity)
        K = graph.placeholder(strike)
        with volatility.write() as sigma:
            predicted = price(kind, S, T, K, sigma, risk_free_rate)
            loss = graph.reduce_mean(graph.square(predicted - target))
            sigma.grad = graph.grad(loss, sigma)
            optimizer.step()
        losses[epoch] = loss.item()
        if config.LOG_EVERY and (epoch + 1) % config.LOG_EVERY == 0:
            logger.debug("epoch %d/%d: loss %.6g", epoch + 1, epochs, losses[epoch])

    return CalibrationResult(
        volatility=volatility.snapshot(),
        loss_history=losses,
        epochs=epochs,
    )


def implied_volatility(
    payoff_type,
    observed_price,
    spot,
    time_to_maturity,
    strike,
    risk_free_rate: float,
    epochs: Optional[int] = None,
    **kwargs,
) -> np.ndarray:
    """
    Calibrated volatility array for a batch of same-payoff options.

    Thin wrapper over ``calibrate`` that drops the loss history; accepts
    the same keyword overrides. With epochs=0 the uniform seed comes back
    unchanged.
    """
    return calibrate(payoff_type, observed_price, spot, time_to_maturity, strike,
                     risk_free_rate, epochs, **kwargs).volatility


def implied_call_volatility(call_price, spot, time_to_maturity, strike,
                            risk_free_rate, epochs=None, **kwargs):
    return implied_volatility(OptionType.CALL, call_price, spot, time_to_maturity,
                              strike, risk_free_rate, epochs, **kwargs)


def implied_put_volatility(put_price, spot, time_to_maturity, strike,
                           risk_free_rate, epochs=None, **kwargs):
    return implied_volatility(OptionType.PUT, put_price, spot, time_to_maturity,
                              strike, risk_free_rate, epochs, **kwargs)


def pricing_loss(payoff_type, observed_price, spot, time_to_maturity, strike,
                 volatility, risk_free_rate) -> float:
    """Mean squared error of re-pricing the batch with ``volatility``."""
    model = price(payoff_type, spot, time_to_maturity, strike, volatility, risk_free_rate)
    return float(np.mean(np.square(np.asarray(model) - np.asarray(observed_price))))
