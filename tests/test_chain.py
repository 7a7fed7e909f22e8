"""
Tests for the option chain DataFrame helper.
"""

import pytest
import numpy as np
import pandas as pd

from gradvol.chain import implied_vol_chain
from gradvol.pricing import price


R = 0.01


@pytest.fixture
def chain():
    rows = []
    for option_type, K, T, vol in [
        ("call", 95.0, 0.5, 0.22),
        ("put", 105.0, 0.5, 0.28),
        ("call", 100.0, 1.0, 0.20),
        ("put", 90.0, 1.0, 0.30),
        ("call", 110.0, 0.75, 0.25),
    ]:
        rows.append({
            "spot": 100.0,
            "T": T,
            "strike": K,
            "price": price(option_type, 100.0, T, K, vol, R),
            "option_type": option_type,
            "true_iv": vol,
        })
    return pd.DataFrame(rows)


class TestImpliedVolChain:

    def test_adds_columns_and_keeps_rows(self, chain):
        out = implied_vol_chain(chain, r=R, epochs=5)
        assert "iv" in out.columns
        assert "model_price" in out.columns
        assert len(out) == len(chain)
        pd.testing.assert_series_equal(out["true_iv"], chain["true_iv"])
        assert "iv" not in chain.columns  # input untouched

    def test_recovers_vols(self, chain):
        out = implied_vol_chain(chain, r=R, epochs=500, seed=1)
        np.testing.assert_allclose(out["iv"], out["true_iv"], atol=0.02)
        np.testing.assert_allclose(out["model_price"], out["price"], atol=0.5)

    def test_both_payoffs_solved(self, chain):
        """Calls and puts each get a finite iv, whatever dtype pandas infers for the column."""
        out = implied_vol_chain(chain, r=R, epochs=5)
        for payoff in ("call", "put"):
            rows = out[out["option_type"] == payoff]
            assert len(rows) > 0
            assert rows["iv"].notna().all(), f"no iv for {payoff} rows"
            assert rows["model_price"].notna().all()

    def test_string_dtype_column(self, chain):
        """An explicit string dtype column still routes rows to their payoff."""
        typed = chain.astype({"option_type": "string"})
        out = implied_vol_chain(typed, r=R, epochs=5)
        assert out["iv"].notna().all()

    def test_single_payoff_chain(self, chain):
        calls = chain[chain["option_type"] == "call"].reset_index(drop=True)
        out = implied_vol_chain(calls, r=R, epochs=5)
        assert out["iv"].notna().all()

    def test_missing_columns(self, chain):
        with pytest.raises(ValueError, match="strike"):
            implied_vol_chain(chain.drop(columns=["strike"]), r=R)

    def test_unknown_option_type(self, chain):
        bad = chain.copy()
        bad.loc[0, "option_type"] = "swaption"
        with pytest.raises(ValueError):
            implied_vol_chain(bad, r=R, epochs=1)
