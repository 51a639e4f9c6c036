"""One ledger, every analytics operation, each run independently."""

from risk_analytics.fraud import early_claims
from risk_analytics.profitability import loss_ratios
from risk_analytics.quality import run_quality_checks
from risk_analytics.revenue import rank_by_revenue
from risk_analytics.trends import claims_dashboard, monthly_payout_trend


def test_portfolio_findings(store):
    revenue = rank_by_revenue(store).set_index("policyholder_id")
    assert revenue.loc[1, "total_premium_value"] == 3000.0
    assert revenue.loc[1, "revenue_rank"] == 1

    ratios = loss_ratios(store).set_index("policyholder_id")
    assert ratios.loc[1, "total_paid"] == 3000.0
    assert ratios.loc[1, "loss_ratio"] == 220.0

    early = early_claims(store).set_index("claim_id")
    assert early.loc[100, "days_until_claim"] == 15


def test_operations_are_order_independent(store):
    first = loss_ratios(store)
    rank_by_revenue(store)
    monthly_payout_trend(store)
    claims_dashboard(store)
    run_quality_checks(store, as_of="2024-01-01")
    second = loss_ratios(store)

    assert first["policyholder_id"].tolist() == second["policyholder_id"].tolist()
    assert first["loss_ratio"].tolist() == second["loss_ratio"].tolist()
