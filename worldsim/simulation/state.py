# State and result records for the WorldSim engine
# Layer 3: Simulation Engine
#
# Dataclasses for regions, baseline snapshots, per-day kernel output and the
# run-level summary. Daily records are frozen; the only mutable state is the
# per-region soil moisture accumulator, which lives for a single run.

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Optional

import pandas as pd

from worldsim.constants import (
    SOIL_MOISTURE_MAX_PCT,
    SOIL_MOISTURE_MIN_PCT,
    SOIL_MOISTURE_RAIN_REFERENCE_MM,
    SOIL_MOISTURE_RECHARGE_MAX_PCT,
    SOIL_MOISTURE_RETENTION,
    SOIL_MOISTURE_SEED_PCT,
)


def clamp(value, lower, upper):
    """Bound value to [lower, upper]."""
    return max(lower, min(upper, value))


@dataclass(frozen=True)
class Region:
    """Geographic unit with fixed infrastructure attributes.

    grid_capacity_kwh is the daily grid supply ceiling; None means the
    grid can always cover whatever solar does not.
    """
    id: str
    name: str
    localized_name: str
    altitude_band: str
    population: int = 0
    solar_capacity_kw: float = 0.0
    grid_capacity_kwh: Optional[float] = None

    @property
    def grid_ceiling_kwh(self):
        if self.grid_capacity_kwh is None:
            return float("inf")
        return self.grid_capacity_kwh


@dataclass
class BaselineSnapshot:
    """Baseline table for one run, as returned by a baseline provider.

    Args:
        domain: "energy", "water" or "agriculture"
        start_date: First simulated day
        end_date: Last simulated day (inclusive)
        regions: Regions covered, sorted by id
        frame: One row per (region_id, date[, crop_type])
        crop_types: Crops present in frame (agriculture only)
    """
    domain: str
    start_date: date
    end_date: date
    regions: list
    frame: pd.DataFrame
    crop_types: tuple = ()

    @property
    def num_days(self):
        return (self.end_date - self.start_date).days + 1

    @property
    def expected_rows(self):
        per_day = max(len(self.crop_types), 1) if self.domain == "agriculture" else 1
        return len(self.regions) * self.num_days * per_day


# ---------------------------------------------------------------------------
# Daily records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EnergyDailyResult:
    """Projected energy balance for one region on one day."""
    date: date
    region_id: str
    region_name: str
    baseline_demand_kwh: float
    demand_kwh: float
    solar_kwh: float
    grid_kwh: float
    deficit_kwh: float
    solar_share_pct: float
    stress: float
    demand_change_pct: float

    @property
    def entity(self):
        return self.region_id

    @property
    def required_amount(self):
        return self.demand_kwh

    @property
    def delivered_amount(self):
        return self.solar_kwh + self.grid_kwh


@dataclass(frozen=True)
class WaterDailyResult:
    """Projected water balance for one region on one day."""
    date: date
    region_id: str
    region_name: str
    baseline_demand_m3: float
    demand_m3: float
    supply_m3: float
    unmet_demand_m3: float
    stress: float
    demand_change_pct: float

    @property
    def entity(self):
        return self.region_id

    @property
    def required_amount(self):
        return self.demand_m3

    @property
    def delivered_amount(self):
        return self.demand_m3 - self.unmet_demand_m3


@dataclass(frozen=True)
class AgricultureDailyResult:
    """Projected yield for one crop in one region on one day."""
    date: date
    region_id: str
    region_name: str
    crop_type: str
    rainfall_mm: float
    temperature_c: float
    soil_moisture_pct: float
    baseline_yield_kg: float
    actual_yield_kg: float
    yield_change_pct: float
    stress: float

    @property
    def entity(self):
        return self.crop_type

    @property
    def required_amount(self):
        return self.baseline_yield_kg

    @property
    def delivered_amount(self):
        return self.actual_yield_kg


def daily_result_to_dict(record):
    """Flatten a daily record to JSON-ready primitives."""
    row = asdict(record)
    row["date"] = record.date.isoformat()
    return row


# ---------------------------------------------------------------------------
# Soil moisture
# ---------------------------------------------------------------------------

def next_soil_moisture(previous_pct, rainfall_mm):
    """One step of the soil moisture recurrence.

    Retains part of yesterday's moisture and adds a rainfall recharge that
    saturates at SOIL_MOISTURE_RECHARGE_MAX_PCT; result is clamped to
    [SOIL_MOISTURE_MIN_PCT, SOIL_MOISTURE_MAX_PCT].
    """
    recharge = min(
        SOIL_MOISTURE_RECHARGE_MAX_PCT,
        max(0.0, rainfall_mm) / SOIL_MOISTURE_RAIN_REFERENCE_MM * SOIL_MOISTURE_RECHARGE_MAX_PCT,
    )
    return clamp(
        SOIL_MOISTURE_RETENTION * previous_pct + recharge,
        SOIL_MOISTURE_MIN_PCT,
        SOIL_MOISTURE_MAX_PCT,
    )


@dataclass
class SoilMoistureState:
    """Soil moisture carried forward day to day for one region.

    Created fresh for each region at the start of each run and advanced in
    date order. Updated in place.
    """
    region_id: str
    moisture_pct: float = SOIL_MOISTURE_SEED_PCT

    def __post_init__(self):
        self.moisture_pct = clamp(self.moisture_pct, SOIL_MOISTURE_MIN_PCT, SOIL_MOISTURE_MAX_PCT)

    def advance(self, rainfall_mm):
        """Apply one day of rainfall and return the new moisture level."""
        self.moisture_pct = next_soil_moisture(self.moisture_pct, rainfall_mm)
        return self.moisture_pct


# ---------------------------------------------------------------------------
# Run-level results
# ---------------------------------------------------------------------------

# Stable output names for the loss totals, per domain
LOSS_FIELDS = {
    "energy": ("total_deficit_kwh", "total_deficit_pct"),
    "water": ("total_unmet_demand_m3", "total_unmet_demand_pct"),
    "agriculture": ("total_yield_loss_kg", "total_yield_loss_pct"),
}

MOST_AFFECTED_FIELDS = {
    "energy": "most_affected_region",
    "water": "most_affected_region",
    "agriculture": "most_affected_crop",
}


@dataclass
class SimulationSummary:
    """Aggregate statistics over all daily records of a run.

    total_loss and most_affected are rendered under domain-specific names
    by to_dict() (see LOSS_FIELDS and MOST_AFFECTED_FIELDS).
    """
    domain: str
    avg_stress: float
    max_stress: float
    total_loss: float
    total_loss_pct: float
    most_affected: Optional[str]
    top_stressed_regions: list
    region_avg_stress: dict = field(default_factory=dict)
    details: dict = field(default_factory=dict)

    def to_dict(self):
        loss_field, loss_pct_field = LOSS_FIELDS[self.domain]
        result = {
            "avg_stress": self.avg_stress,
            "max_stress": self.max_stress,
            loss_field: self.total_loss,
            loss_pct_field: self.total_loss_pct,
            MOST_AFFECTED_FIELDS[self.domain]: self.most_affected,
            "top_stressed_regions": list(self.top_stressed_regions),
            "region_avg_stress": dict(self.region_avg_stress),
        }
        result.update(self.details)
        return result


@dataclass
class EconomicAnalysis:
    """Monetary translation of a run summary. All values in USD."""
    investment_required_usd: float
    loss_prevented_usd: float
    roi_pct: float
    payback_period_months: float
    economic_exposure_usd: float = 0.0
    net_present_value_usd: float = 0.0
    annual_savings_usd: float = 0.0
    opportunity_cost_6mo_delay_usd: float = 0.0
    cost_of_inaction_5_year_usd: float = 0.0

    def to_dict(self):
        return asdict(self)


@dataclass
class SimulationResult:
    """Everything a single run produces."""
    domain: str
    scenario: object
    daily_results: list
    summary: SimulationSummary
    economic_analysis: EconomicAnalysis

    def daily_frame(self):
        """Daily records as a DataFrame, one row per record in output order."""
        return pd.DataFrame([daily_result_to_dict(r) for r in self.daily_results])

    def to_dict(self):
        return {
            "domain": self.domain,
            "scenario": self.scenario.to_dict(),
            "daily_results": [daily_result_to_dict(r) for r in self.daily_results],
            "summary": self.summary.to_dict(),
            "economic_analysis": self.economic_analysis.to_dict(),
        }
