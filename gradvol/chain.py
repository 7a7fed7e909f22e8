"""
Implied vol for a whole option chain held in a DataFrame.

Calls and puts are solved as two separate batches (the solver takes a
single payoff per batch); every other row attribute rides along
untouched. No liquidity or moneyness filtering happens here, rows come
back in their original order with two new columns:

    iv          - calibrated volatility
    model_price - the chain re-priced with that volatility
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from . import config
from .pricing import OptionType, price
from .solver import implied_volatility

logger = logging.getLogger(__name__)


def implied_vol_chain(
    df: pd.DataFrame,
    r: Optional[float] = None,
    epochs: Optional[int] = None,
    **solver_kwargs,
) -> pd.DataFrame:
    """
    Add calibrated implied vol to an option chain.

    Parameters
    ----------
    df : DataFrame with at least columns [spot, T, strike, price, option_type]
    r : risk-free rate (default: config.RISK_FREE_RATE)
    epochs : Adam updates per batch (default: config.EPOCHS)
    solver_kwargs : forwarded to the solver (learning_rate, seed, lock_timeout)

    Returns
    -------
    pd.DataFrame : copy of df with iv and model_price columns
    """
    missing = [c for c in config.CHAIN_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Option chain is missing columns: {missing}")
    if r is None:
        r = config.RISK_FREE_RATE

    out = df.copy()
    out["iv"] = np.nan
    out["model_price"] = np.nan
    # compare plain values: an str-backed column would store str(OptionType.CALL)
    kinds = out["option_type"].map(lambda v: OptionType.parse(v).value)

    for kind in (OptionType.CALL, OptionType.PUT):
        mask = (kinds == kind.value).to_numpy(dtype=bool)
        if not mask.any():
            continue
        rows = out.loc[mask]
        S = rows["spot"].to_numpy(dtype=float)
        T = rows["T"].to_numpy(dtype=float)
        K = rows["strike"].to_numpy(dtype=float)
        iv = implied_volatility(kind, rows["price"].to_numpy(dtype=float), S, T, K,
                                r, epochs, **solver_kwargs)
        out.loc[mask, "iv"] = iv
        out.loc[mask, "model_price"] = price(kind, S, T, K, iv, r)
        logger.debug("solved %d %s rows", int(mask.sum()), kind.value)

    return out
