"""
Top policyholders by premium revenue.

Revenue counts Active policies only. Ranks use standard competition
ranking ("1224"): tied totals share a rank and the next distinct total
skips by the size of the tie.
"""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from .errors import InvalidRequestError
from .store import LedgerStore

logger = logging.getLogger(__name__)

COLUMNS = ["policyholder_id", "full_name", "total_premium_value", "revenue_rank"]


def competition_rank(values: pd.Series) -> pd.Series:
    """Rank descending; ties share the lowest rank of their group."""
    return values.rank(method="min", ascending=False).astype("int64")


def rank_by_revenue(store: LedgerStore, limit: Optional[int] = None) -> pd.DataFrame:
    """Active premium per policyholder with its competition rank, best first."""
    if limit is not None and limit < 0:
        raise InvalidRequestError(f"limit must be non-negative, got {limit}")

    policies = store.unique_policies()
    active = policies[
        (policies["policy_status"] == "Active") & policies["policyholder_id"].notna()
    ]
    if active.empty:
        return pd.DataFrame(columns=COLUMNS)

    revenue = (
        active.groupby("policyholder_id")["premium_amount"]
        .sum()
        .rename("total_premium_value")
        .reset_index()
    )

    holders = store.unique_holders()
    ranked = revenue.merge(
        holders[["policyholder_id", "full_name"]], on="policyholder_id", how="left"
    )

    unknown = ~ranked["policyholder_id"].isin(holders["policyholder_id"])
    if unknown.any():
        logger.warning(
            "%d ranked policyholder id(s) have no policyholder record", int(unknown.sum())
        )

    ranked["revenue_rank"] = competition_rank(ranked["total_premium_value"])
    ranked = ranked.sort_values(["revenue_rank", "policyholder_id"], ignore_index=True)[COLUMNS]

    if limit is not None:
        ranked = ranked.head(limit)
    return ranked
