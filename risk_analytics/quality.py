"""
Data-quality validation layer.

Establishes data reliability before any financial analysis runs. Every
check is diagnostic only: it returns violations as a DataFrame (empty
means pass) and never repairs, drops or raises on bad data. Only a
malformed request, such as an unknown entity type or field name, raises.

Checks are independent; ``run_quality_checks`` runs any subset of them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Mapping, Optional, Sequence, Union

import pandas as pd

from . import config
from .errors import InvalidRequestError
from .schemas import INSUFFICIENT_SAMPLE, Entity, Undefined, is_defined
from .store import LedgerStore

logger = logging.getLogger(__name__)

NULL_FIELDS = "null_fields"
DUPLICATE_KEYS = "duplicate_keys"
PREMIUM_OUTLIERS = "premium_outliers"
ORPHANS = "orphans"
LOGICAL_DATES = "logical_dates"

ALL_CHECKS = (NULL_FIELDS, DUPLICATE_KEYS, PREMIUM_OUTLIERS, ORPHANS, LOGICAL_DATES)

ORPHAN_COLUMNS = ["relationship", "child_id", "parent_id"]
DATE_VIOLATION_COLUMNS = ["violation", "entity", "record_id", "record_date", "reference_date"]


# ---------------- Check 1: nulls in critical fields ---------------- #

def check_null_fields(
    store: LedgerStore,
    entity: Union[Entity, str],
    fields: Sequence[str],
) -> pd.DataFrame:
    """Count nulls per field, reporting only fields that have any."""
    entity = Entity.resolve(entity)
    unknown = [f for f in fields if f not in entity.spec.columns]
    if unknown:
        raise InvalidRequestError(f"Unknown field(s) for {entity.value}: {unknown}")

    frame = store.frame(entity)
    rows = []
    for f in fields:
        n_null = int(frame[f].isna().sum())
        if n_null > 0:
            rows.append({"field": f, "null_count": n_null})
    return pd.DataFrame(rows, columns=["field", "null_count"])


# ---------------- Check 2: duplicate primary keys ---------------- #

def check_duplicate_keys(store: LedgerStore, entity: Union[Entity, str]) -> pd.DataFrame:
    """Primary keys occurring more than once, with their occurrence count."""
    entity = Entity.resolve(entity)
    key = entity.spec.primary_key
    frame = store.frame(entity)

    counts = frame.groupby(key).size()
    dupes = counts[counts > 1].astype("int64").rename("occurrences")
    return dupes.reset_index().sort_values(key, ignore_index=True)


# ---------------- Check 3: premium outliers ---------------- #

@dataclass
class PremiumOutlierReport:
    """Statistical bounds over active premiums and the policies breaching them."""

    mean: Union[float, Undefined]
    stddev: Union[float, Undefined]
    threshold: Union[float, Undefined]
    outliers: pd.DataFrame

    @property
    def skipped(self) -> bool:
        return not is_defined(self.stddev)


def check_premium_outliers(
    store: LedgerStore,
    sigma: float = config.OUTLIER_SIGMA,
) -> PremiumOutlierReport:
    """Flag active premiums above ``mean + sigma * stddev``, and any premium below 0.

    Needs at least two active premiums for a sample standard deviation;
    with fewer, the whole check is skipped and reported as an
    insufficient sample rather than run against a zero deviation.
    """
    policies = store.frame(Entity.POLICIES)
    columns = ["policy_id", "policy_type", "policy_status", "premium_amount"]

    is_active = policies["policy_status"] == "Active"
    active = policies.loc[is_active, "premium_amount"].dropna()
    if len(active) < 2:
        logger.info("Premium outlier check skipped: %d active premiums", len(active))
        return PremiumOutlierReport(
            mean=INSUFFICIENT_SAMPLE,
            stddev=INSUFFICIENT_SAMPLE,
            threshold=INSUFFICIENT_SAMPLE,
            outliers=pd.DataFrame(columns=columns),
        )

    mean = float(active.mean())
    stddev = float(active.std(ddof=1))
    threshold = mean + sigma * stddev

    # a negative premium is a defect whatever the policy status
    premium = policies["premium_amount"]
    mask = (is_active & (premium > threshold)) | (premium < 0)
    outliers = policies.loc[mask, columns].sort_values(
        "premium_amount", ascending=False, ignore_index=True
    )
    return PremiumOutlierReport(mean=mean, stddev=stddev, threshold=threshold, outliers=outliers)


# ---------------- Check 4: orphaned records ---------------- #

def check_orphans(store: LedgerStore) -> pd.DataFrame:
    """Child records whose foreign key matches no parent (null keys included)."""
    found = []
    for child in Entity:
        spec = child.spec
        if spec.foreign_key is None:
            continue
        fk_col, parent_name = spec.foreign_key
        parent = Entity.resolve(parent_name)

        children = store.frame(child)
        parent_ids = store.frame(parent)[parent.spec.primary_key].dropna()
        orphans = children[~children[fk_col].isin(parent_ids)]
        if orphans.empty:
            continue

        found.append(
            pd.DataFrame(
                {
                    "relationship": f"{child.value}->{parent.value}",
                    "child_id": orphans[spec.primary_key].tolist(),
                    "parent_id": [None if pd.isna(v) else v for v in orphans[fk_col].tolist()],
                },
                columns=ORPHAN_COLUMNS,
            )
        )

    if not found:
        return pd.DataFrame(columns=ORPHAN_COLUMNS)
    return pd.concat(found, ignore_index=True)


# ---------------- Check 5: logical dates ---------------- #

def _date_violations(
    frame: pd.DataFrame,
    violation: str,
    entity: Entity,
    date_col: str,
    reference,
) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "violation": violation,
            "entity": entity.value,
            "record_id": frame[entity.spec.primary_key].values,
            "record_date": frame[date_col].values,
            "reference_date": reference.values if isinstance(reference, pd.Series) else reference,
        },
        columns=DATE_VIOLATION_COLUMNS,
    )


def check_logical_dates(store: LedgerStore, as_of: Union[date, datetime, str]) -> pd.DataFrame:
    """Flag impossible dates relative to ``as_of`` and to related records.

    - claim_after_as_of: claim dated strictly after the evaluation date
    - claim_before_policy_start: claim predates the policy it is filed against
    - policy_before_signup: policy starts before its holder signed up
    """
    as_of = pd.Timestamp(as_of)
    if pd.isna(as_of):
        raise InvalidRequestError("as_of evaluation date is required")

    claims = store.frame(Entity.CLAIMS)
    future = claims[claims["claim_date"] > as_of]

    claims_joined = store.with_policy(Entity.CLAIMS)
    early = claims_joined[claims_joined["claim_date"] < claims_joined["policy_start_date"]]

    holders = store.unique_holders()
    policies = store.unique_policies().merge(
        holders[["policyholder_id", "signup_date"]], on="policyholder_id", how="inner"
    )
    pre_signup = policies[policies["policy_start_date"] < policies["signup_date"]]

    parts = [
        _date_violations(future, "claim_after_as_of", Entity.CLAIMS, "claim_date", as_of),
        _date_violations(
            early, "claim_before_policy_start", Entity.CLAIMS, "claim_date",
            early["policy_start_date"],
        ),
        _date_violations(
            pre_signup, "policy_before_signup", Entity.POLICIES, "policy_start_date",
            pre_signup["signup_date"],
        ),
    ]
    parts = [p for p in parts if not p.empty]
    if not parts:
        return pd.DataFrame(columns=DATE_VIOLATION_COLUMNS)
    return pd.concat(parts, ignore_index=True)


# ---------------- Composition ---------------- #

@dataclass
class QualityReport:
    as_of: pd.Timestamp
    results: dict = field(default_factory=dict)

    def violation_counts(self) -> dict[str, int]:
        counts = {}
        for name, result in self.results.items():
            if isinstance(result, PremiumOutlierReport):
                counts[name] = len(result.outliers)
            else:
                counts[name] = len(result)
        return counts

    @property
    def skipped(self) -> list[str]:
        return [
            name
            for name, result in self.results.items()
            if isinstance(result, PremiumOutlierReport) and result.skipped
        ]

    @property
    def passed(self) -> bool:
        return all(n == 0 for n in self.violation_counts().values())


def run_quality_checks(
    store: LedgerStore,
    as_of: Union[date, datetime, str],
    checks: Iterable[str] = ALL_CHECKS,
    null_fields: Optional[Mapping[str, Sequence[str]]] = None,
    sigma: float = config.OUTLIER_SIGMA,
) -> QualityReport:
    """Run the selected checks and collect their results by check name."""
    checks = list(checks)
    unknown = [c for c in checks if c not in ALL_CHECKS]
    if unknown:
        raise InvalidRequestError(f"Unknown quality check(s): {unknown}")
    if null_fields is None:
        null_fields = config.CRITICAL_FIELDS

    report = QualityReport(as_of=pd.Timestamp(as_of))

    for name in checks:
        if name == NULL_FIELDS:
            parts = [
                check_null_fields(store, entity, fields).assign(entity=Entity.resolve(entity).value)
                for entity, fields in null_fields.items()
            ]
            result = pd.concat(parts, ignore_index=True) if parts else pd.DataFrame()
            result = result.reindex(columns=["entity", "field", "null_count"])
        elif name == DUPLICATE_KEYS:
            parts = [
                check_duplicate_keys(store, entity)
                .rename(columns={entity.spec.primary_key: "key"})
                .assign(entity=entity.value)
                for entity in Entity
            ]
            result = pd.concat(parts, ignore_index=True).reindex(
                columns=["entity", "key", "occurrences"]
            )
        elif name == PREMIUM_OUTLIERS:
            result = check_premium_outliers(store, sigma=sigma)
        elif name == ORPHANS:
            result = check_orphans(store)
        else:
            result = check_logical_dates(store, as_of)
        report.results[name] = result

    for name, n in report.violation_counts().items():
        if n:
            logger.warning("Data quality check %s found %d violation(s)", name, n)
    for name in report.skipped:
        logger.warning("Data quality check %s skipped: insufficient sample", name)

    return report
