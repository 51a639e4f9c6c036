"""
Synthetic insurance ledger for demos and end-to-end runs.

Design goals:
- Same four tables and column contract as the production backend.
- Claim frequency and severity differ by product (see TARGET_* in config).
- Lapsed and cancelled policies stop paying premiums.
- Known data defects are injected afterwards so the quality checks and
  fraud heuristics always have something to find.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

import numpy as np
import pandas as pd

from . import config
from .store import LedgerStore

HORIZON_END = pd.Timestamp(f"{config.END_YEAR}-12-31")


# ---------------- Utility helpers ---------------- #

def _random_dates(n: int, start_year: int, end_year: int, rng: np.random.Generator) -> list[datetime]:
    start = datetime(start_year, 1, 1)
    end = datetime(end_year, 12, 31)
    delta_days = (end - start).days
    return [
        start + timedelta(days=int(d))
        for d in rng.integers(0, delta_days, size=n)
    ]


# ---------------- Policyholders ---------------- #

def generate_policyholders(n: int) -> pd.DataFrame:
    """Generate a pool of policyholders with signup dates in the horizon."""
    rng = np.random.default_rng(config.SEED_POLICYHOLDERS)

    first = rng.choice(config.FIRST_NAMES, size=n)
    last = rng.choice(config.LAST_NAMES, size=n)

    holders = pd.DataFrame(
        {
            "policyholder_id": np.arange(1, n + 1),
            "full_name": [f"{a} {b}" for a, b in zip(first, last)],
            "age": rng.integers(18, 85, size=n),
            "gender": rng.choice(["Male", "Female"], size=n, p=[0.5, 0.5]),
            "city": rng.choice(config.CITIES, size=n),
            "signup_date": _random_dates(n, config.START_YEAR, config.END_YEAR - 1, rng),
        }
    )
    return holders


# ---------------- Policies ---------------- #

def generate_policies(policyholders: pd.DataFrame, n_policies: int) -> pd.DataFrame:
    """Generate policies issued on or after their holder's signup date."""
    rng = np.random.default_rng(config.SEED_POLICIES)

    holder_idx = rng.integers(0, len(policyholders), size=n_policies)
    holder_ids = policyholders["policyholder_id"].to_numpy()[holder_idx]
    signups = pd.to_datetime(policyholders["signup_date"]).to_numpy()[holder_idx]

    products = rng.choice(config.POLICY_TYPES, size=n_policies, p=[0.4, 0.25, 0.15, 0.2])
    statuses = rng.choice(config.POLICY_STATUSES, size=n_policies, p=[0.7, 0.2, 0.1])

    # start within a year after signup, clamped to the horizon
    offsets = pd.to_timedelta(rng.integers(0, 365, size=n_policies), unit="D")
    starts = pd.Series(pd.to_datetime(signups) + offsets).clip(upper=HORIZON_END)

    premiums = [
        round(config.BASE_PREMIUM[prod] * rng.lognormal(mean=0.0, sigma=0.25), 2)
        for prod in products
    ]

    policies = pd.DataFrame(
        {
            "policy_id": np.arange(1, n_policies + 1),
            "policyholder_id": holder_ids,
            "policy_type": products,
            "premium_amount": premiums,
            "policy_start_date": starts.values,
            "policy_status": statuses,
        }
    )
    return policies


# ---------------- Payments ---------------- #

def generate_payments(policies: pd.DataFrame) -> pd.DataFrame:
    """Monthly premium installments from policy start until lapse or horizon end."""
    rng = np.random.default_rng(config.SEED_PAYMENTS)

    rows: list[dict] = []
    for _, pol in policies.iterrows():
        start = pd.Timestamp(pol["policy_start_date"])
        months_open = (HORIZON_END.year - start.year) * 12 + (HORIZON_END.month - start.month) + 1

        n_payments = months_open
        if pol["policy_status"] != "Active":
            # lapsed / cancelled policies stopped paying part-way
            n_payments = int(rng.integers(0, max(months_open, 1)))

        installment = round(pol["premium_amount"] / 12.0, 2)
        for i in range(n_payments):
            rows.append(
                {
                    "policy_id": int(pol["policy_id"]),
                    "payment_date": start + pd.DateOffset(months=i),
                    "payment_amount": installment,
                    "payment_method": rng.choice(config.PAYMENT_METHODS, p=[0.55, 0.35, 0.10]),
                }
            )

    payments = pd.DataFrame(
        rows, columns=["policy_id", "payment_date", "payment_amount", "payment_method"]
    )
    payments.insert(0, "payment_id", np.arange(1, len(payments) + 1))
    return payments


# ---------------- Claims ---------------- #

def generate_claims(policies: pd.DataFrame, random_state: int | None = None) -> pd.DataFrame:
    """Poisson claim counts and lognormal severities per product."""
    seed = random_state if random_state is not None else config.SEED_CLAIMS
    rng = np.random.default_rng(seed)

    rows: list[dict] = []
    for _, pol in policies.iterrows():
        prod = pol["policy_type"]
        n_claims = rng.poisson(config.TARGET_CLAIMS_PER_POLICY[prod])
        if n_claims == 0:
            continue

        start = pd.Timestamp(pol["policy_start_date"])
        open_days = max((HORIZON_END - start).days, 1)

        sigma = 0.8  # heavy right tail
        mu = np.log(config.TARGET_SEVERITY[prod]) - 0.5 * sigma ** 2

        for _ in range(n_claims):
            rows.append(
                {
                    "policy_id": int(pol["policy_id"]),
                    "claim_date": start + timedelta(days=int(rng.integers(0, open_days))),
                    "claim_amount": round(float(rng.lognormal(mean=mu, sigma=sigma)), 2),
                    "claim_status": rng.choice(config.CLAIM_STATUSES, p=[0.6, 0.25, 0.15]),
                }
            )

    claims = pd.DataFrame(rows, columns=["policy_id", "claim_date", "claim_amount", "claim_status"])
    claims.insert(0, "claim_id", np.arange(1, len(claims) + 1))
    return claims


# ---------------- Anomalies ---------------- #

def inject_anomalies(
    holders: pd.DataFrame,
    policies: pd.DataFrame,
    claims: pd.DataFrame,
    payments: pd.DataFrame,
) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Inject the defects the data-quality layer and fraud heuristics target:
    - Missing names
    - Duplicate and orphaned policies
    - Negative and extreme premiums
    - Future-dated claims and claims before policy start
    - Claim bursts on a handful of policies
    """
    rng = np.random.default_rng(config.SEED_ANOMALIES)

    holders = holders.copy()
    policies = policies.copy()
    claims = claims.copy()
    payments = payments.copy()

    # ---------------- Policyholder anomalies ---------------- #

    if len(holders) > 0:
        n_missing_name = max(1, int(0.01 * len(holders)))
        idx_name = rng.choice(holders.index, size=n_missing_name, replace=False)
        holders.loc[idx_name, "full_name"] = None

    # ---------------- Policy anomalies ---------------- #

    if len(policies) > 0:
        # Negative premiums (refund coded as premium)
        n_negative = max(1, int(0.002 * len(policies)))
        idx_neg = rng.choice(policies.index, size=n_negative, replace=False)
        policies.loc[idx_neg, "premium_amount"] = -policies.loc[idx_neg, "premium_amount"].abs()

        # Extreme premiums (data entry errors)
        n_extreme = max(1, int(0.002 * len(policies)))
        idx_ext = rng.choice(policies.index, size=n_extreme, replace=False)
        policies.loc[idx_ext, "premium_amount"] *= rng.uniform(20, 40, size=n_extreme)

        # Re-delivered policy rows
        n_dupes = max(1, int(0.002 * len(policies)))
        dupes = policies.sample(n=n_dupes, random_state=config.SEED_ANOMALIES)
        policies = pd.concat([policies, dupes], ignore_index=True)

        # Policy whose holder was never loaded
        orphan = policies.iloc[[0]].copy()
        orphan["policy_id"] = policies["policy_id"].max() + 1
        orphan["policyholder_id"] = holders["policyholder_id"].max() + 1000
        policies = pd.concat([policies, orphan], ignore_index=True)

    # ---------------- Claims anomalies ---------------- #

    if len(claims) > 0:
        # Future-dated claims
        n_future = max(1, int(0.002 * len(claims)))
        idx_future = rng.choice(claims.index, size=n_future, replace=False)
        claims.loc[idx_future, "claim_date"] = HORIZON_END + pd.to_timedelta(
            rng.integers(30, 400, size=n_future), unit="D"
        )

        # Claims dated before their policy started
        starts = claims["policy_id"].map(
            policies.drop_duplicates("policy_id").set_index("policy_id")["policy_start_date"]
        )
        candidates = claims.index.difference(idx_future)
        n_pre = min(max(1, int(0.003 * len(claims))), len(candidates))
        idx_pre = rng.choice(candidates, size=n_pre, replace=False)
        claims.loc[idx_pre, "claim_date"] = starts.loc[idx_pre] - pd.to_timedelta(
            rng.integers(1, 60, size=n_pre), unit="D"
        )

    if len(policies) > 0:
        # Claim bursts: several claims shortly after start on a few policies
        policy_ids = policies["policy_id"].unique()
        burst_ids = rng.choice(policy_ids, size=min(3, len(policy_ids)), replace=False)
        next_id = int(claims["claim_id"].max()) + 1 if len(claims) else 1
        burst_rows = []
        for pid in burst_ids:
            start = pd.Timestamp(policies.loc[policies["policy_id"] == pid, "policy_start_date"].iloc[0])
            for _ in range(int(rng.integers(5, 8))):
                burst_rows.append(
                    {
                        "claim_id": next_id,
                        "policy_id": int(pid),
                        "claim_date": start + timedelta(days=int(rng.integers(0, 90))),
                        "claim_amount": round(float(rng.uniform(500, 5_000)), 2),
                        "claim_status": rng.choice(config.CLAIM_STATUSES),
                    }
                )
                next_id += 1
        claims = pd.concat([claims, pd.DataFrame(burst_rows)], ignore_index=True)

    return holders, policies, claims, payments


# ---------------- Ledger entrypoint ---------------- #

def generate_ledger(
    n_policyholders: Optional[int] = None,
    n_policies: Optional[int] = None,
    with_anomalies: bool = True,
) -> LedgerStore:
    """
    Generate the full ledger and snapshot it into a store.

    Returns:
        LedgerStore over policyholders, policies, claims, payments
    """
    holders = generate_policyholders(n_policyholders or config.N_POLICYHOLDERS)
    policies = generate_policies(holders, n_policies or config.N_POLICIES)
    claims = generate_claims(policies)
    payments = generate_payments(policies)

    if with_anomalies:
        holders, policies, claims, payments = inject_anomalies(holders, policies, claims, payments)

    return LedgerStore(
        policyholders=holders,
        policies=policies,
        claims=claims,
        payments=payments,
    )
