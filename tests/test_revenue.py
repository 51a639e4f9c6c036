import pandas as pd
import pytest

from risk_analytics.errors import InvalidRequestError
from risk_analytics.revenue import competition_rank, rank_by_revenue
from risk_analytics.store import LedgerStore


def test_top_policyholder_by_active_premium(store):
    result = rank_by_revenue(store)
    top = result.iloc[0]
    assert top["policyholder_id"] == 1
    assert top["full_name"] == "Abigail Martinez"
    assert top["total_premium_value"] == 3000.0
    assert top["revenue_rank"] == 1


def test_lapsed_and_cancelled_policies_excluded(store):
    result = rank_by_revenue(store).set_index("policyholder_id")
    # policyholder 2 also holds a lapsed 5000 Life policy
    assert result.loc[2, "total_premium_value"] == 1500.0
    # policyholder 4 only holds a cancelled policy
    assert 4 not in result.index


def test_ties_share_rank(store):
    result = rank_by_revenue(store)
    assert list(result["revenue_rank"]) == [1, 2, 2]
    assert list(result["policyholder_id"]) == [1, 2, 3]


@pytest.mark.parametrize(
    "values, expected",
    [
        ([300, 300, 200, 100], [1, 1, 3, 4]),
        ([500, 400, 400, 400, 100], [1, 2, 2, 2, 5]),
        ([10, 20, 30], [3, 2, 1]),
        ([7, 7, 7], [1, 1, 1]),
    ],
)
def test_competition_rank_skips_after_ties(values, expected):
    assert list(competition_rank(pd.Series(values, dtype=float))) == expected


def test_limit_keeps_first_rows(store):
    assert list(rank_by_revenue(store, limit=2)["policyholder_id"]) == [1, 2]
    assert rank_by_revenue(store, limit=0).empty


def test_negative_limit_is_invalid(store):
    with pytest.raises(InvalidRequestError):
        rank_by_revenue(store, limit=-1)


def test_rank_recomputed_from_current_snapshot(make_store, frames):
    policies = frames["policies"].copy()
    policies.loc[policies["policy_id"] == 30, "premium_amount"] = 4000.0
    result = rank_by_revenue(make_store(policies=policies))
    assert list(result["policyholder_id"][:2]) == [3, 1]


def test_revenue_for_unknown_policyholder_is_kept(make_store, frames):
    policies = pd.concat(
        [
            frames["policies"],
            pd.DataFrame(
                [{"policy_id": 60, "policyholder_id": 99, "policy_type": "Auto",
                  "premium_amount": 250.0, "policy_start_date": "2023-01-01",
                  "policy_status": "Active"}]
            ),
        ],
        ignore_index=True,
    )
    result = rank_by_revenue(make_store(policies=policies)).set_index("policyholder_id")
    assert result.loc[99, "total_premium_value"] == 250.0
    assert pd.isna(result.loc[99, "full_name"])


def test_empty_store_ranks_nothing():
    result = rank_by_revenue(LedgerStore.empty())
    assert result.empty
    assert list(result.columns) == [
        "policyholder_id", "full_name", "total_premium_value", "revenue_rank",
    ]
