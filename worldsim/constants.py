# Heuristic constants for the daily computation kernels and economics
# Layer 1: Domain configuration
#
# Every coefficient used by the kernels lives here. These are hand-authored
# approximations, not calibrated estimates; keep them in one place so they
# can be reviewed and tuned together.

# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------

DAYS_PER_YEAR = 365
MAX_SCENARIO_DAYS = 5 * DAYS_PER_YEAR + 1  # 5 years, one leap day

# ---------------------------------------------------------------------------
# Energy
# ---------------------------------------------------------------------------

HOURS_PER_DAY = 24

# Fractional solar output change per 100% rainfall change (cloud cover proxy)
SOLAR_RAINFALL_SENSITIVITY = 0.3
SOLAR_RAINFALL_MULTIPLIER_MAX = 1.1

# ---------------------------------------------------------------------------
# Water
# ---------------------------------------------------------------------------

# Fractional supply change per 100% rainfall change (surface + recharge)
WATER_RAINFALL_SENSITIVITY = 0.8
WATER_RAINFALL_MULTIPLIER_MAX = 1.2

# A day counts as a critical shortage when any region reaches this stress
CRITICAL_SHORTAGE_STRESS = 0.5

# ---------------------------------------------------------------------------
# Agriculture
# ---------------------------------------------------------------------------

CROP_TYPES = ("coffee", "sugar_cane", "corn", "beans")

# Baseline yields (kg per day per region) used when generating sample data
BASELINE_YIELDS_KG = {
    "coffee": 1000.0,
    "sugar_cane": 70000.0,
    "corn": 2750.0,
    "beans": 1150.0,
}

# Soil moisture recurrence: m' = clamp(RETENTION*m + min(RECHARGE_MAX, rain/RAIN_REF*RECHARGE_MAX))
SOIL_MOISTURE_SEED_PCT = 50.0
SOIL_MOISTURE_MIN_PCT = 20.0
SOIL_MOISTURE_MAX_PCT = 85.0
SOIL_MOISTURE_RETENTION = 0.6
SOIL_MOISTURE_RECHARGE_MAX_PCT = 40.0
SOIL_MOISTURE_RAIN_REFERENCE_MM = 150.0

SOIL_DRY_THRESHOLD_PCT = 35.0
SOIL_DRY_MULTIPLIER = 0.85
SOIL_WET_THRESHOLD_PCT = 60.0
SOIL_WET_MULTIPLIER = 1.05

# Lower bound on the rainfall response so yields stay positive
MIN_RAINFALL_RESPONSE = 0.2

# Per-crop response table.
#   altitude: yield multiplier by region altitude band
#   rainfall_mm: (low, high) preferred daily rainfall band
#   temperature_c: (low, high) preferred daily mean temperature band
# The shaped penalties outside the bands are implemented in
# worldsim/kernels/agriculture.py and use the coefficients below.
CROP_PARAMETERS = {
    "coffee": {
        "altitude": {"high": 1.15, "medium": 1.0, "low": 0.85},
        "rainfall_mm": (50.0, 150.0),
        "temperature_c": (18.0, 25.0),
        "dry_base": 0.7,             # response at zero rainfall, rising linearly to 1.0
        "wet_decline_mm": 200.0,     # response falls by 1.0 per this many mm above band
        "cold_multiplier": 0.8,
        "heat_multiplier": 0.9,
    },
    "sugar_cane": {
        "altitude": {"high": 0.9, "medium": 1.0, "low": 1.1},
        "rainfall_mm": (80.0, 200.0),
        "temperature_c": (24.0, 30.0),
        "dry_base": 0.75,
        "in_band_rainfall_multiplier": 1.05,
        "in_band_temperature_multiplier": 1.05,
        "cold_threshold_c": 20.0,
        "cold_multiplier": 0.85,
    },
    "corn": {
        "altitude": {"high": 1.0, "medium": 1.0, "low": 1.0},
        "rainfall_mm": (40.0, 120.0),
        "temperature_c": (18.0, 28.0),
        "dry_multiplier": 0.7,
        "wet_multiplier": 0.9,
        "heat_multiplier": 0.9,
    },
    "beans": {
        "altitude": {"high": 1.0, "medium": 1.0, "low": 1.0},
        "rainfall_mm": (30.0, 100.0),
        "temperature_c": (20.0, 26.0),
        "dry_multiplier": 0.65,
        "wet_multiplier": 0.85,
        "cold_multiplier": 0.9,
        "heat_multiplier": 0.9,
    },
}

# ---------------------------------------------------------------------------
# Economics
# ---------------------------------------------------------------------------

# Regions whose average stress exceeds this need a unit of investment
HIGH_STRESS_THRESHOLD = 0.6
# Mean stress above this adds scaled system-wide investment
SYSTEM_STRESS_THRESHOLD = 0.5

ECONOMIC_HORIZON_YEARS = 5
DISCOUNT_RATE = 0.05
MONTHS_PER_YEAR = 12

# Cost of postponing action: monthly losses compound at this rate over the delay
OPPORTUNITY_COST_DELAY_MONTHS = 6
OPPORTUNITY_COST_MONTHLY_RATE = 0.02

# base_unit_cost_usd: per high-stress region (grid upgrade / treatment plant / irrigation programme)
# scaling_factor_usd: per unit of mean stress above SYSTEM_STRESS_THRESHOLD
# loss_prevented_multiplier: avoided losses per dollar invested over the horizon
# annual_savings_share: share of the valued loss the investment removes each year
# inaction_escalation: growth of losses over the horizon if nothing is done
ECONOMIC_PARAMETERS = {
    "energy": {
        "base_unit_cost_usd": 2_000_000.0,
        "scaling_factor_usd": 10_000_000.0,
        "loss_prevented_multiplier": 4.0,
        "annual_savings_share": 0.80,
        "inaction_escalation": 1.10,
    },
    "water": {
        "base_unit_cost_usd": 5_000_000.0,
        "scaling_factor_usd": 15_000_000.0,
        "loss_prevented_multiplier": 3.5,
        "annual_savings_share": 0.85,
        "inaction_escalation": 1.15,
    },
    "agriculture": {
        "base_unit_cost_usd": 15_000_000.0,
        "scaling_factor_usd": 20_000_000.0,
        "loss_prevented_multiplier": 2.5,
        "annual_savings_share": 0.70,
        "inaction_escalation": 1.20,
    },
}

# Value of lost output
ENERGY_TARIFF_USD_PER_KWH = 0.15
WATER_PRICE_USD_PER_M3 = 1.50
CROP_PRICES_USD_PER_KG = {
    "coffee": 2.50,
    "sugar_cane": 0.08,
    "corn": 0.40,
    "beans": 1.20,
}
AGRICULTURE_GDP_MULTIPLIER = 1.3
