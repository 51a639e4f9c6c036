"""
Monthly claim trends and the dashboard rollup.

Months are calendar-month buckets keyed by their first day, the same
value ``DATE_TRUNC('month', ...)`` yields in the backend.
"""

from __future__ import annotations

import logging

import pandas as pd

from .schemas import NO_PREVIOUS_MONTH, Entity
from .store import LedgerStore

logger = logging.getLogger(__name__)

TREND_COLUMNS = ["month", "total_payout", "previous_month_payout", "month_over_month_change"]
DASHBOARD_COLUMNS = ["month", "claim_status", "claim_count", "total_claim_amount"]


def _month_start(dates: pd.Series) -> pd.Series:
    return dates.dt.to_period("M").dt.to_timestamp()


def monthly_payout_trend(store: LedgerStore) -> pd.DataFrame:
    """Approved payouts per month with the change from the previous month.

    Every month between the first and last claim month is present;
    months without approved claims total 0.0. The first month has no
    previous month, so its previous payout and change are undefined.
    """
    claims = store.frame(Entity.CLAIMS).dropna(subset=["claim_date"])
    if claims.empty:
        return pd.DataFrame(columns=TREND_COLUMNS)

    claims["month"] = _month_start(claims["claim_date"])
    approved = claims[claims["claim_status"] == "Approved"]
    payouts = approved.groupby("month")["claim_amount"].sum()

    months = pd.date_range(claims["month"].min(), claims["month"].max(), freq="MS")
    payouts = payouts.reindex(months, fill_value=0.0).astype("float64")

    previous = [NO_PREVIOUS_MONTH] + payouts.iloc[:-1].tolist()
    change = [NO_PREVIOUS_MONTH] + (payouts.iloc[1:].values - payouts.iloc[:-1].values).tolist()

    trend = pd.DataFrame(
        {
            "month": months,
            "total_payout": payouts.values,
            "previous_month_payout": pd.Series(previous, dtype=object),
            "month_over_month_change": pd.Series(change, dtype=object),
        },
        columns=TREND_COLUMNS,
    )
    logger.debug("Payout trend over %d month(s)", len(trend))
    return trend


def claims_dashboard(store: LedgerStore) -> pd.DataFrame:
    """Claim count and amount per (month, status), for the presentation layer."""
    claims = store.frame(Entity.CLAIMS).dropna(subset=["claim_date"])
    if claims.empty:
        return pd.DataFrame(columns=DASHBOARD_COLUMNS)

    claims["month"] = _month_start(claims["claim_date"])
    rollup = (
        claims.groupby(["month", "claim_status"], dropna=False)
        .agg(
            claim_count=("claim_id", "size"),
            total_claim_amount=("claim_amount", "sum"),
        )
        .reset_index()
        .sort_values(["month", "claim_status"], ignore_index=True)
    )
    return rollup[DASHBOARD_COLUMNS]
