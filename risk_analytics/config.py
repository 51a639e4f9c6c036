"""
Configuration for insurance ledger risk analytics.

Business thresholds are exposed as defaults here and passed explicitly
to every analytics operation, so a line of business can tune them
without touching the computations.
"""

# ---------------- Fraud heuristics ---------------- #

# Policies with at least this many claims (any status) are flagged
CLAIM_FREQUENCY_THRESHOLD: int = 5

# Claims filed within this many days of policy start (inclusive) are flagged
EARLY_CLAIM_WINDOW_DAYS: int = 30


# ---------------- Data quality ---------------- #

# Premiums above mean + OUTLIER_SIGMA * stddev of active premiums are flagged
OUTLIER_SIGMA: float = 3.0

# Fields whose nulls break downstream calculations
CRITICAL_FIELDS = {
    "policyholders": ["policyholder_id", "full_name", "signup_date"],
}


# ---------------- Profitability & reporting ---------------- #

LOSS_RATIO_DECIMALS: int = 2

# Rows kept in the printed revenue leaderboard
REPORT_TOP_N: int = 20


# ---------------- Categories ---------------- #

POLICY_TYPES = ["Auto", "Home", "Life", "Health"]
POLICY_STATUSES = ["Active", "Lapsed", "Cancelled"]
CLAIM_STATUSES = ["Approved", "Pending", "Rejected"]
PAYMENT_METHODS = ["Credit Card", "Bank Transfer", "Other"]

CITIES = [
    "New York", "Chicago", "Houston", "Phoenix", "Philadelphia",
    "San Antonio", "San Diego", "Dallas", "Austin", "Seattle",
]

FIRST_NAMES = [
    "Abigail", "Avery", "William", "Charlotte", "Liam", "Olivia", "Noah",
    "Emma", "James", "Sophia", "Lucas", "Mia", "Henry", "Amelia", "Ethan",
]
LAST_NAMES = [
    "Martinez", "Rodriguez", "Jones", "Miller", "Smith", "Johnson",
    "Williams", "Brown", "Garcia", "Davis", "Wilson", "Anderson",
]


# ---------------- Synthetic ledger size ---------------- #

N_POLICYHOLDERS: int = 500
N_POLICIES: int = 1_000

START_YEAR: int = 2021
END_YEAR: int = 2024  # inclusive

# Mean annual premium per product (USD), collected in monthly installments
BASE_PREMIUM = {
    "Auto": 1_200.0,
    "Home": 1_800.0,
    "Life": 900.0,
    "Health": 2_400.0,
}

# Expected claims per policy over its observed life
TARGET_CLAIMS_PER_POLICY = {
    "Auto": 0.9,
    "Home": 0.5,
    "Life": 0.1,
    "Health": 1.4,
}

# Mean severity per claim (USD)
TARGET_SEVERITY = {
    "Auto": 3_500.0,
    "Home": 9_000.0,
    "Life": 40_000.0,
    "Health": 2_800.0,
}


# ---------------- Random seeds ---------------- #

SEED_POLICYHOLDERS: int = 42
SEED_POLICIES: int = 43
SEED_CLAIMS: int = 44
SEED_PAYMENTS: int = 45
SEED_ANOMALIES: int = 99
