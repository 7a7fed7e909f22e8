"""
gradvol
=======
Black-Scholes pricing and implied volatility calibration by gradient descent.

Modules:
    pricing     - Differentiable call/put formula, vega by autodiff
    solver      - Adam-driven implied volatility calibration
    graph       - Autodiff backend (PyTorch) behind a small op set
    shared      - Reader/writer-locked volatility array
    chain       - DataFrame helper for whole option chains
    exceptions  - Error types
    config      - Global constants and defaults
"""

import logging

from .exceptions import GradVolError, LockAcquisitionError, ShapeMismatchError
from .pricing import OptionType, call_price, price, put_price, vega
from .solver import (
    CalibrationResult,
    calibrate,
    implied_call_volatility,
    implied_put_volatility,
    implied_volatility,
    pricing_loss,
)

__version__ = "0.1.0"

default_log_format = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
default_log_datefmt = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    logging.basicConfig(level=level, format=default_log_format, datefmt=default_log_datefmt)


__all__ = [
    "__version__",
    "configure_logging",
    "OptionType",
    "price",
    "call_price",
    "put_price",
    "vega",
    "calibrate",
    "CalibrationResult",
    "implied_volatility",
    "implied_call_volatility",
    "implied_put_volatility",
    "pricing_loss",
    "GradVolError",
    "ShapeMismatchError",
    "LockAcquisitionError",
]
