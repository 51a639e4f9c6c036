"""
Schema definitions for the four ledger entities.

These schemas define the **contract** between:
- the persistence backend that owns the ledger
- the entity store accessor that snapshots it
- the analytics and data-quality operations that read it

Each entity exists twice: as a frozen dataclass (one record, returned by
store lookups and scans) and as a pandas DataFrame column contract
(used by the vectorized analytics).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .errors import InvalidRequestError


# ---------------- Undefined results ---------------- #

@dataclass(frozen=True)
class Undefined:
    """A computed value with no numeric meaning for its inputs.

    Deliberately not a number: ordering comparisons and arithmetic with
    it raise ``TypeError`` instead of silently producing 0, NaN or inf.
    """

    reason: str

    def __str__(self) -> str:
        return f"undefined ({self.reason})"


NO_PREMIUMS_COLLECTED = Undefined("no_premiums_collected")
NEGATIVE_PREMIUMS_COLLECTED = Undefined("negative_premiums_collected")
NEGATIVE_CLAIMS_PAID = Undefined("negative_claims_paid")
NO_PREVIOUS_MONTH = Undefined("no_previous_month")
INSUFFICIENT_SAMPLE = Undefined("insufficient_sample")


def is_defined(value: Any) -> bool:
    return not isinstance(value, Undefined)


# ---------------- Policyholder ---------------- #

@dataclass(frozen=True)
class Policyholder:
    policyholder_id: int
    full_name: Optional[str]
    age: Optional[int]
    gender: Optional[str]
    city: Optional[str]
    signup_date: Optional[datetime]


# ---------------- Policy ---------------- #

@dataclass(frozen=True)
class Policy:
    policy_id: int
    policyholder_id: Optional[int]
    policy_type: Optional[str]        # Auto / Home / Life / Health
    premium_amount: Optional[float]
    policy_start_date: Optional[datetime]
    policy_status: Optional[str]      # Active / Lapsed / Cancelled


# ---------------- Claim ---------------- #

@dataclass(frozen=True)
class Claim:
    claim_id: int
    policy_id: Optional[int]
    claim_date: Optional[datetime]
    claim_amount: Optional[float]
    claim_status: Optional[str]       # Approved / Pending / Rejected


# ---------------- Payment ---------------- #

@dataclass(frozen=True)
class Payment:
    payment_id: int
    policy_id: Optional[int]
    payment_date: Optional[datetime]
    payment_amount: Optional[float]
    payment_method: Optional[str]     # Credit Card / Bank Transfer / Other


# ---------------- Entity registry ---------------- #

@dataclass(frozen=True)
class EntitySpec:
    record_type: type
    primary_key: str
    columns: tuple[str, ...]
    date_columns: tuple[str, ...] = ()
    amount_columns: tuple[str, ...] = ()
    # (foreign key column, parent entity name)
    foreign_key: Optional[tuple[str, str]] = None


class Entity(str, Enum):
    POLICYHOLDERS = "policyholders"
    POLICIES = "policies"
    CLAIMS = "claims"
    PAYMENTS = "payments"

    @property
    def spec(self) -> EntitySpec:
        return ENTITY_SPECS[self]

    @classmethod
    def resolve(cls, value: "Entity | str") -> "Entity":
        """Accept an ``Entity`` or its table name; reject anything else."""
        try:
            return cls(value)
        except ValueError:
            known = ", ".join(e.value for e in cls)
            raise InvalidRequestError(
                f"Unknown entity type {value!r} (expected one of: {known})"
            ) from None


ENTITY_SPECS: dict[Entity, EntitySpec] = {
    Entity.POLICYHOLDERS: EntitySpec(
        record_type=Policyholder,
        primary_key="policyholder_id",
        columns=("policyholder_id", "full_name", "age", "gender", "city", "signup_date"),
        date_columns=("signup_date",),
    ),
    Entity.POLICIES: EntitySpec(
        record_type=Policy,
        primary_key="policy_id",
        columns=(
            "policy_id",
            "policyholder_id",
            "policy_type",
            "premium_amount",
            "policy_start_date",
            "policy_status",
        ),
        date_columns=("policy_start_date",),
        amount_columns=("premium_amount",),
        foreign_key=("policyholder_id", "policyholders"),
    ),
    Entity.CLAIMS: EntitySpec(
        record_type=Claim,
        primary_key="claim_id",
        columns=("claim_id", "policy_id", "claim_date", "claim_amount", "claim_status"),
        date_columns=("claim_date",),
        amount_columns=("claim_amount",),
        foreign_key=("policy_id", "policies"),
    ),
    Entity.PAYMENTS: EntitySpec(
        record_type=Payment,
        primary_key="payment_id",
        columns=("payment_id", "policy_id", "payment_date", "payment_amount", "payment_method"),
        date_columns=("payment_date",),
        amount_columns=("payment_amount",),
        foreign_key=("policy_id", "policies"),
    ),
}
