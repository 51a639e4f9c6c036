import pandas as pd
import pytest

from risk_analytics.store import LedgerStore


def _frames() -> dict[str, pd.DataFrame]:
    policyholders = pd.DataFrame(
        {
            "policyholder_id": [1, 2, 3, 4],
            "full_name": ["Abigail Martinez", "Avery Rodriguez", "William Jones", "Charlotte Miller"],
            "age": [34, 51, 29, 62],
            "gender": ["Female", "Female", "Male", "Female"],
            "city": ["Austin", "Dallas", "Chicago", "Seattle"],
            "signup_date": ["2022-01-01", "2022-01-01", "2022-03-01", "2022-01-01"],
        }
    )
    policies = pd.DataFrame(
        {
            "policy_id": [10, 11, 20, 21, 30, 40],
            "policyholder_id": [1, 1, 2, 2, 3, 4],
            "policy_type": ["Auto", "Home", "Health", "Life", "Auto", "Home"],
            "premium_amount": [1000.0, 2000.0, 1500.0, 5000.0, 1500.0, 800.0],
            "policy_start_date": [
                "2023-01-01", "2023-02-01", "2023-01-15", "2023-01-01", "2023-03-01", "2023-01-01",
            ],
            "policy_status": ["Active", "Active", "Active", "Lapsed", "Active", "Cancelled"],
        }
    )
    claims = pd.DataFrame(
        {
            "claim_id": [100, 200, 201, 300, 400],
            "policy_id": [10, 20, 20, 30, 40],
            "claim_date": ["2023-01-16", "2023-03-01", "2023-03-10", "2023-05-01", "2023-04-01"],
            "claim_amount": [6600.0, 300.0, 700.0, 200.0, 900.0],
            "claim_status": ["Approved", "Approved", "Rejected", "Pending", "Approved"],
        }
    )
    payments = pd.DataFrame(
        {
            "payment_id": [1, 2, 3, 4, 5],
            "policy_id": [10, 11, 20, 21, 30],
            "payment_date": ["2023-01-01", "2023-02-01", "2023-01-15", "2023-01-01", "2023-03-01"],
            "payment_amount": [1000.0, 2000.0, 1000.0, 500.0, 1500.0],
            "payment_method": ["Credit Card", "Bank Transfer", "Credit Card", "Other", "Credit Card"],
        }
    )
    return {
        "policyholders": policyholders,
        "policies": policies,
        "claims": claims,
        "payments": payments,
    }


@pytest.fixture
def frames() -> dict[str, pd.DataFrame]:
    """Raw tables for a small, clean ledger; tests may modify their copy."""
    return _frames()


@pytest.fixture
def store(frames) -> LedgerStore:
    return LedgerStore(**frames)


@pytest.fixture
def make_store(frames):
    """Build a store from the clean ledger with some tables replaced."""

    def _make(**overrides: pd.DataFrame) -> LedgerStore:
        return LedgerStore(**{**frames, **overrides})

    return _make
