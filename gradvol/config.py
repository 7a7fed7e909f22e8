"""
Global configuration for the implied volatility calibration engine.

Keeps all magic numbers in one place. Every solver entry point accepts
keyword overrides for the values that matter per call (learning rate,
seed, lock timeout); edit this file for persistent changes.
"""

import torch


# ── numerics ─────────────────────────────────────────────────────────────
DTYPE = torch.float64           # float32 loses too much in the CDF tails
DEVICE = torch.device("cpu")


# ── Adam ─────────────────────────────────────────────────────────────────
LEARNING_RATE = 0.05            # step size in vol units; uniform seed is at most ~1 away
ADAM_BETAS = (0.9, 0.999)       # first / second moment decay
ADAM_EPS = 1e-8


# ── optimization loop ────────────────────────────────────────────────────
EPOCHS = 300                    # default step count, the only stopping rule
LOG_EVERY = 50                  # debug-log the loss every N epochs


# ── shared volatility array ──────────────────────────────────────────────
LOCK_TIMEOUT = 30.0             # seconds; None would block forever


# ── market parameters ────────────────────────────────────────────────────
RISK_FREE_RATE = 0.043          # annualized; used by the DataFrame helper only


# ── option chain schema ──────────────────────────────────────────────────
CHAIN_COLUMNS = ["spot", "T", "strike", "price", "option_type"]
