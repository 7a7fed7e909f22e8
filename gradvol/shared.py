"""
Lock-guarded volatility array shared by every step of one calibration.

The optimizer mutates the array in place once per epoch (writer role);
the final extraction copies it out (reader role). Both roles are taken
through context managers so release happens even when the step raises.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import numpy as np
import torch

from . import config, graph
from .exceptions import LockAcquisitionError

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or a single writer. Not reentrant."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def acquire_read(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            if not self._cond.wait_for(lambda: not self._writer, timeout):
                return False
            self._readers += 1
            return True

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            ok = self._cond.wait_for(
                lambda: not self._writer and self._readers == 0, timeout
            )
            if not ok:
                return False
            self._writer = True
            return True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()


class SharedArray:
    """
    Trainable volatility tensor behind a reader/writer lock.

    Parameters
    ----------
    values : initial array (copied)
    timeout : seconds to wait for either role before giving up
              (default: config.LOCK_TIMEOUT)
    """

    def __init__(self, values, timeout: Optional[float] = None):
        self._tensor = graph.variable(values)
        self._lock = ReadWriteLock()
        self.timeout = config.LOCK_TIMEOUT if timeout is None else timeout

    @property
    def parameter(self) -> torch.Tensor:
        """The leaf tensor to hand to the optimizer."""
        return self._tensor

    @property
    def shape(self):
        return tuple(self._tensor.shape)

    @contextmanager
    def write(self) -> Iterator[torch.Tensor]:
        if not self._lock.acquire_write(self.timeout):
            raise LockAcquisitionError(
                f"Could not write lock the volatility array within {self.timeout}s"
            )
        try:
            yield self._tensor
        finally:
            self._lock.release_write()

    @contextmanager
    def read(self) -> Iterator[torch.Tensor]:
        if not self._lock.acquire_read(self.timeout):
            raise LockAcquisitionError(
                f"Could not read lock the volatility array within {self.timeout}s"
            )
        try:
            yield self._tensor
        finally:
            self._lock.release_read()

    def snapshot(self) -> np.ndarray:
        """Detached copy of the current values, taken under the reader role."""
        with self.read() as tensor:
            out = tensor.detach().cpu().numpy().copy()
        logger.debug("extracted volatility array of shape %s", out.shape)
        return out
