"""
Profitability analysis: per-policyholder loss ratio.

loss_ratio = claims paid / premiums collected, as a percentage. A holder
with nothing collected has an *undefined* ratio, never 0 and never inf:
zero premiums with open exposure is a different risk category from a
genuine 0% loss ratio.
"""

from __future__ import annotations

import logging
from typing import Union

import pandas as pd

from . import config
from .schemas import (
    NEGATIVE_CLAIMS_PAID,
    NEGATIVE_PREMIUMS_COLLECTED,
    NO_PREMIUMS_COLLECTED,
    Entity,
    Undefined,
    is_defined,
)
from .store import LedgerStore

logger = logging.getLogger(__name__)

COLUMNS = ["policyholder_id", "full_name", "total_paid", "total_claims", "loss_ratio"]


def loss_ratio(
    total_claims: float,
    total_paid: float,
    decimals: int = config.LOSS_RATIO_DECIMALS,
) -> Union[float, Undefined]:
    """Claims over premiums as a rounded percentage.

    Undefined when nothing was paid in, and when either total is negative:
    refund-coded payments or negative claim amounts are data defects, and
    a loss ratio is never negative.
    """
    if total_paid < 0:
        return NEGATIVE_PREMIUMS_COLLECTED
    if total_paid == 0:
        return NO_PREMIUMS_COLLECTED
    if total_claims < 0:
        return NEGATIVE_CLAIMS_PAID
    return round(total_claims / total_paid * 100, decimals)


def loss_ratios(
    store: LedgerStore,
    include_undefined: bool = True,
    decimals: int = config.LOSS_RATIO_DECIMALS,
) -> pd.DataFrame:
    """Premiums collected, approved claims and loss ratio for every policyholder.

    Sorted by loss ratio descending; undefined ratios come last, or are
    dropped when ``include_undefined`` is False.
    """
    holders = store.unique_holders()
    if holders.empty:
        return pd.DataFrame(columns=COLUMNS)

    payments = store.with_policy(Entity.PAYMENTS)
    premium_received = (
        payments.groupby("policyholder_id")["payment_amount"].sum().rename("total_paid")
    )

    claims = store.with_policy(Entity.CLAIMS)
    approved = claims[claims["claim_status"] == "Approved"]
    claims_paid = approved.groupby("policyholder_id")["claim_amount"].sum().rename("total_claims")

    out = holders[["policyholder_id", "full_name"]].merge(
        premium_received, left_on="policyholder_id", right_index=True, how="left"
    )
    out = out.merge(claims_paid, left_on="policyholder_id", right_index=True, how="left")

    # absence of payments or approved claims is a real zero, not missing data
    out["total_paid"] = out["total_paid"].fillna(0.0)
    out["total_claims"] = out["total_claims"].fillna(0.0)

    out["loss_ratio"] = [
        loss_ratio(c, p, decimals) for c, p in zip(out["total_claims"], out["total_paid"])
    ]
    out["loss_ratio"] = out["loss_ratio"].astype(object)

    defined_mask = out["loss_ratio"].map(is_defined).astype(bool)
    defined = out[defined_mask].copy()
    defined["_sort"] = defined["loss_ratio"].astype(float)
    defined = defined.sort_values(["_sort", "policyholder_id"], ascending=[False, True])
    defined = defined.drop(columns="_sort")

    undefined = out[~defined_mask].sort_values("policyholder_id")
    if len(undefined):
        reasons = undefined["loss_ratio"].map(lambda v: v.reason).value_counts()
        logger.info("Undefined loss ratios by reason: %s", reasons.to_dict())
        negative = reasons.drop("no_premiums_collected", errors="ignore")
        if len(negative):
            logger.warning(
                "%d policyholder(s) with negative payment or claim totals",
                int(negative.sum()),
            )

    parts = [defined, undefined] if include_undefined else [defined]
    result = pd.concat(parts, ignore_index=True)[COLUMNS]
    logger.debug("Computed loss ratios for %d policyholder(s)", len(result))
    return result
