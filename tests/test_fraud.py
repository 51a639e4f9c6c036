import pandas as pd
import pytest

from risk_analytics.errors import InvalidRequestError
from risk_analytics.fraud import early_claims, flagged_policies, frequency_anomalies
from risk_analytics.store import LedgerStore


def _claims(policy_counts: dict[int, int], claim_date: str = "2023-06-01") -> pd.DataFrame:
    rows = []
    claim_id = 1
    for policy_id, n in policy_counts.items():
        for _ in range(n):
            rows.append(
                {
                    "claim_id": claim_id,
                    "policy_id": policy_id,
                    "claim_date": claim_date,
                    "claim_amount": 100.0,
                    "claim_status": ["Approved", "Pending", "Rejected"][claim_id % 3],
                }
            )
            claim_id += 1
    return pd.DataFrame(rows)


# ---------------- Frequency anomalies ---------------- #

def test_threshold_boundary(make_store):
    store = make_store(claims=_claims({10: 5, 20: 4}))
    result = frequency_anomalies(store, threshold=5)
    assert list(result["policy_id"]) == [10]

    row = result.iloc[0]
    assert row["total_claims"] == 5
    assert row["lifetime_claim_cost"] == 500.0
    assert row["full_name"] == "Abigail Martinez"
    assert row["policyholder_id"] == 1


def test_counts_claims_of_every_status(make_store):
    store = make_store(claims=_claims({30: 6}))
    assert list(frequency_anomalies(store)["total_claims"]) == [6]


def test_ordered_by_claim_count(make_store):
    store = make_store(claims=_claims({10: 5, 20: 7, 30: 6}))
    assert list(frequency_anomalies(store)["policy_id"]) == [20, 30, 10]


def test_configurable_threshold(store):
    assert list(frequency_anomalies(store, threshold=2)["policy_id"]) == [20]
    assert frequency_anomalies(store).empty


def test_threshold_must_be_positive(store):
    with pytest.raises(InvalidRequestError):
        frequency_anomalies(store, threshold=0)


def test_policy_with_bad_dates_still_counted(make_store):
    # all claims predate policy 30's start (2023-03-01)
    store = make_store(claims=_claims({30: 5}, claim_date="2023-01-01"))
    assert list(frequency_anomalies(store)["policy_id"]) == [30]
    assert early_claims(store).empty


# ---------------- Early claims ---------------- #

def test_early_claim_fifteen_days_after_start(store):
    result = early_claims(store)
    assert list(result["claim_id"]) == [100]

    row = result.iloc[0]
    assert row["days_until_claim"] == 15
    assert row["policy_type"] == "Auto"
    assert row["full_name"] == "Abigail Martinez"
    assert row["policy_start_date"] == pd.Timestamp("2023-01-01")


@pytest.mark.parametrize(
    "claim_date, flagged",
    [
        ("2023-01-01", True),   # day 0
        ("2023-01-31", True),   # day 30
        ("2023-02-01", False),  # day 31
        ("2022-12-31", False),  # day -1, a logical-date defect
    ],
)
def test_early_claim_window_bounds(make_store, frames, claim_date, flagged):
    claims = frames["claims"].iloc[[0]].copy()
    claims["claim_date"] = claim_date
    result = early_claims(make_store(claims=claims))
    assert (not result.empty) is flagged


def test_configurable_window(store):
    # claim 200 is 45 days after policy 20 started
    assert list(early_claims(store, window_days=45)["claim_id"]) == [100, 200]


def test_negative_window_is_invalid(store):
    with pytest.raises(InvalidRequestError):
        early_claims(store, window_days=-1)


def test_orphan_claims_are_not_early(make_store, frames):
    claims = frames["claims"].copy()
    claims.loc[0, "policy_id"] = 77
    assert early_claims(make_store(claims=claims)).empty


# ---------------- Combined flags ---------------- #

def test_policy_can_carry_both_flags(make_store, frames):
    claims = _claims({10: 5, 20: 1}, claim_date="2023-01-10")
    store = make_store(claims=claims)
    result = flagged_policies(frequency_anomalies(store), early_claims(store))

    assert result.to_dict("records") == [
        {"policy_id": 10, "frequency_flag": True, "early_claim_flag": True},
    ]


def test_policy_flagged_by_one_heuristic_only(make_store):
    claims = pd.concat(
        [_claims({20: 5}, claim_date="2023-06-01"), _claims({10: 1}, claim_date="2023-01-05")],
        ignore_index=True,
    )
    claims["claim_id"] = range(1, len(claims) + 1)
    store = make_store(claims=claims)
    result = flagged_policies(frequency_anomalies(store), early_claims(store))

    assert result.to_dict("records") == [
        {"policy_id": 10, "frequency_flag": False, "early_claim_flag": True},
        {"policy_id": 20, "frequency_flag": True, "early_claim_flag": False},
    ]


def test_empty_store_has_no_signals():
    store = LedgerStore.empty()
    assert frequency_anomalies(store).empty
    assert early_claims(store).empty
    assert flagged_policies(frequency_anomalies(store), early_claims(store)).empty


# ---------------- Null holder references ---------------- #

def _null_holder_ledger(make_store, frames):
    holders = frames["policyholders"].copy()
    holders["policyholder_id"] = holders["policyholder_id"].astype(object)
    holders.loc[3, "policyholder_id"] = None  # Charlotte Miller loses her id
    policies = frames["policies"].copy()
    policies["policyholder_id"] = policies["policyholder_id"].astype(object)
    policies.loc[2, "policyholder_id"] = None  # policy 20
    claims = _claims({20: 5}, claim_date="2023-01-20")
    return make_store(policyholders=holders, policies=policies, claims=claims)


def test_policy_without_holder_is_still_flagged(make_store, frames):
    store = _null_holder_ledger(make_store, frames)
    result = frequency_anomalies(store)

    assert list(result["policy_id"]) == [20]
    row = result.iloc[0]
    assert row["total_claims"] == 5
    assert pd.isna(row["policyholder_id"])


def test_policy_without_holder_borrows_no_name(make_store, frames):
    store = _null_holder_ledger(make_store, frames)

    assert frequency_anomalies(store)["full_name"].isna().all()

    early = early_claims(store)
    assert len(early) == 5
    assert early["full_name"].isna().all()
