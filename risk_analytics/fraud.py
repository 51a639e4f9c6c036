"""
Heuristic fraud signals over settled claims.

Two independent, policy-level heuristics:

- frequency anomaly: a static claim-count threshold per policy. Volume
  above the threshold is actionable on its own, whatever the shape of
  the distribution, so no statistical test is applied.
- early claim: a claim filed within a short window after the policy
  started, which often points to pre-existing damage.

A claim dated before its policy start is a logical-date defect reported
by the data-quality layer, not an early claim.
"""

from __future__ import annotations

import logging

import pandas as pd

from . import config
from .errors import InvalidRequestError
from .schemas import Entity
from .store import LedgerStore

logger = logging.getLogger(__name__)

FREQUENCY_COLUMNS = [
    "policy_id",
    "policyholder_id",
    "full_name",
    "total_claims",
    "lifetime_claim_cost",
]
EARLY_CLAIM_COLUMNS = [
    "claim_id",
    "policy_id",
    "full_name",
    "policy_type",
    "policy_start_date",
    "claim_date",
    "days_until_claim",
]


def _holder_names(store: LedgerStore) -> pd.DataFrame:
    holders = store.unique_holders()
    return holders[["policyholder_id", "full_name"]]


def frequency_anomalies(
    store: LedgerStore,
    threshold: int = config.CLAIM_FREQUENCY_THRESHOLD,
) -> pd.DataFrame:
    """Policies with at least ``threshold`` claims of any status."""
    if threshold < 1:
        raise InvalidRequestError(f"threshold must be at least 1, got {threshold}")

    claims = store.with_policy(Entity.CLAIMS)
    if claims.empty:
        return pd.DataFrame(columns=FREQUENCY_COLUMNS)

    per_policy = (
        claims.groupby(["policy_id", "policyholder_id"], dropna=False)
        .agg(
            total_claims=("claim_id", "size"),
            lifetime_claim_cost=("claim_amount", "sum"),
        )
        .reset_index()
    )
    flagged = per_policy[per_policy["total_claims"] >= threshold]
    flagged = flagged.merge(_holder_names(store), on="policyholder_id", how="left")
    flagged = flagged.sort_values(
        ["total_claims", "policy_id"], ascending=[False, True], ignore_index=True
    )

    logger.info("Frequency anomalies: %d policy(ies) with >= %d claims", len(flagged), threshold)
    return flagged[FREQUENCY_COLUMNS]


def early_claims(
    store: LedgerStore,
    window_days: int = config.EARLY_CLAIM_WINDOW_DAYS,
) -> pd.DataFrame:
    """Claims filed between 0 and ``window_days`` days (inclusive) after policy start."""
    if window_days < 0:
        raise InvalidRequestError(f"window_days must be non-negative, got {window_days}")

    claims = store.with_policy(Entity.CLAIMS)
    claims = claims.dropna(subset=["claim_date", "policy_start_date"])
    if claims.empty:
        return pd.DataFrame(columns=EARLY_CLAIM_COLUMNS)

    claims["days_until_claim"] = (
        claims["claim_date"] - claims["policy_start_date"]
    ).dt.days.astype("int64")

    early = claims[claims["days_until_claim"].between(0, window_days, inclusive="both")]
    early = early.merge(_holder_names(store), on="policyholder_id", how="left")
    early = early.sort_values(["days_until_claim", "claim_id"], ignore_index=True)

    logger.info("Early claims: %d within %d days of policy start", len(early), window_days)
    return early[EARLY_CLAIM_COLUMNS]


def flagged_policies(frequency: pd.DataFrame, early: pd.DataFrame) -> pd.DataFrame:
    """Union of both heuristics, one row per policy with a flag per heuristic."""
    freq_ids = set(frequency["policy_id"])
    early_ids = set(early["policy_id"])
    ids = sorted(freq_ids | early_ids)
    return pd.DataFrame(
        {
            "policy_id": ids,
            "frequency_flag": [pid in freq_ids for pid in ids],
            "early_claim_flag": [pid in early_ids for pid in ids],
        },
        columns=["policy_id", "frequency_flag", "early_claim_flag"],
    )
