"""
Command-line entry point for running the ledger analytics end to end.

Usage (from project root):

    python -m risk_analytics.cli --as-of 2024-12-31

This script:
1) Generates a deterministic synthetic ledger
2) Runs each analytics operation independently against one snapshot
3) Writes every result set as CSV plus a hashed manifest for the
   presentation layer
"""

import argparse
import datetime
import hashlib
import json
import logging
import platform
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from . import config
from .fraud import early_claims, flagged_policies, frequency_anomalies
from .generators import generate_ledger
from .profitability import loss_ratios
from .quality import ALL_CHECKS, run_quality_checks
from .revenue import rank_by_revenue
from .schemas import Undefined
from .trends import claims_dashboard, monthly_payout_trend

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Output location
# -------------------------------------------------------------------

DEFAULT_OUT_DIR = Path(__file__).resolve().parents[1] / "reports"


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

def file_hash(path: Path) -> str:
    """Compute SHA-256 hash of a file (streaming-safe)."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def presentable(frame: pd.DataFrame) -> pd.DataFrame:
    """Render undefined values as empty cells for flat-file consumers."""
    frame = frame.copy()
    for col in frame.columns:
        if frame[col].dtype == object:
            frame[col] = frame[col].map(lambda v: None if isinstance(v, Undefined) else v)
    return frame


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Insurance ledger risk analytics report")
    parser.add_argument("--out", type=Path, default=DEFAULT_OUT_DIR, help="Output directory")
    parser.add_argument(
        "--as-of",
        default=f"{config.END_YEAR}-12-31",
        help="Evaluation date for logical-date checks (YYYY-MM-DD)",
    )
    parser.add_argument("--top", type=int, default=config.REPORT_TOP_N, help="Revenue leaderboard size")
    parser.add_argument("--policyholders", type=int, default=config.N_POLICYHOLDERS)
    parser.add_argument("--policies", type=int, default=config.N_POLICIES)
    parser.add_argument("--threshold", type=int, default=config.CLAIM_FREQUENCY_THRESHOLD)
    parser.add_argument("--window-days", type=int, default=config.EARLY_CLAIM_WINDOW_DAYS)
    parser.add_argument("--verbose", action="store_true")
    return parser


# -------------------------------------------------------------------
# Main entrypoint
# -------------------------------------------------------------------

def run(argv: Optional[Sequence[str]] = None) -> dict:
    """Run the full report and return its manifest."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    out_dir: Path = args.out
    out_dir.mkdir(parents=True, exist_ok=True)

    logger.info("Generating synthetic ledger")
    store = generate_ledger(args.policyholders, args.policies)

    # ---------------- Data quality ---------------- #

    quality = run_quality_checks(store, as_of=args.as_of, checks=ALL_CHECKS)
    outliers = quality.results["premium_outliers"]

    # ---------------- Analytics ---------------- #

    frequency = frequency_anomalies(store, threshold=args.threshold)
    early = early_claims(store, window_days=args.window_days)

    results = {
        "quality_null_fields.csv": quality.results["null_fields"],
        "quality_duplicate_keys.csv": quality.results["duplicate_keys"],
        "quality_premium_outliers.csv": outliers.outliers,
        "quality_orphans.csv": quality.results["orphans"],
        "quality_logical_dates.csv": quality.results["logical_dates"],
        "revenue_ranking.csv": rank_by_revenue(store, limit=args.top),
        "loss_ratios.csv": loss_ratios(store),
        "frequency_anomalies.csv": frequency,
        "early_claims.csv": early,
        "flagged_policies.csv": flagged_policies(frequency, early),
        "payout_trend.csv": monthly_payout_trend(store),
        "claims_dashboard.csv": claims_dashboard(store),
    }

    paths = {}
    for name, frame in results.items():
        path = out_dir / name
        presentable(frame).to_csv(path, index=False)
        paths[name] = path

    logger.info("Reports written to %s", out_dir)

    # ---------------- Build report manifest ---------------- #

    manifest = {
        "generated_at_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "generator_entrypoint": "risk_analytics.cli",
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "as_of": str(pd.Timestamp(args.as_of).date()),
        "parameters": {
            "claim_frequency_threshold": args.threshold,
            "early_claim_window_days": args.window_days,
            "outlier_sigma": config.OUTLIER_SIGMA,
        },
        "ledger_row_counts": store.counts(),
        "report_row_counts": {name: len(frame) for name, frame in results.items()},
        "quality_skipped": quality.skipped,
        "file_hashes_sha256": {name: file_hash(path) for name, path in paths.items()},
    }

    manifest_path = out_dir / "report_manifest.json"
    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)

    logger.info("Manifest written to %s", manifest_path)

    # ---------------- Quick portfolio summary ---------------- #

    leaders = results["revenue_ranking.csv"]
    if not leaders.empty:
        top = leaders.iloc[0]
        logger.info(
            "Top policyholder by active premium: %s (%.2f)",
            top["full_name"], top["total_premium_value"],
        )
    logger.info(
        "Quality violations: %s", quality.violation_counts()
    )
    logger.info(
        "Fraud signals: %d frequency anomalies, %d early claims",
        len(frequency), len(early),
    )

    return manifest


def main() -> None:
    run()


# -------------------------------------------------------------------
# CLI hook
# -------------------------------------------------------------------

if __name__ == "__main__":
    main()
