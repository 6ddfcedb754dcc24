from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

import pandas as pd
import pytest

from worldsim.simulation.data_loader import FrameBaselineProvider
from worldsim.simulation.state import Region

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def build_region(region_id="R1", altitude_band="medium", solar_capacity_kw=10_000.0,
                 grid_capacity_kwh=None):
    return Region(
        id=region_id,
        name=f"Region {region_id}",
        localized_name=f"Región {region_id}",
        altitude_band=altitude_band,
        population=100_000,
        solar_capacity_kw=solar_capacity_kw,
        grid_capacity_kwh=grid_capacity_kwh,
    )


def build_frame(region_ids, start, days, columns, crops=None):
    """Daily baseline rows for each region (and crop).

    columns maps a column name to a constant or to a callable
    (region_id, day_index) -> value.
    """
    rows = []
    for region_id in region_ids:
        for i in range(days):
            base = {"region_id": region_id, "date": start + timedelta(days=i)}
            for name, value in columns.items():
                base[name] = value(region_id, i) if callable(value) else value
            if crops is None:
                rows.append(base)
            else:
                for crop in crops:
                    rows.append({**base, "crop_type": crop})
    return pd.DataFrame(rows)


def build_provider(regions, start, days, climate=None, energy=None, water=None,
                   agriculture=None, crops=("coffee", "sugar_cane", "corn", "beans")):
    """FrameBaselineProvider with constant-or-callable columns per table."""
    region_ids = [r.id for r in regions]
    frames = {}
    if climate is not None:
        frames["climate"] = build_frame(region_ids, start, days, climate)
    if energy is not None:
        frames["energy"] = build_frame(region_ids, start, days, energy)
    if water is not None:
        frames["water"] = build_frame(region_ids, start, days, water)
    if agriculture is not None:
        frames["agriculture"] = build_frame(region_ids, start, days, agriculture, crops=crops)
    return FrameBaselineProvider(regions, frames)


@pytest.fixture
def start():
    return date(2024, 1, 1)


@pytest.fixture
def project_root():
    return PROJECT_ROOT


@pytest.fixture
def make_region():
    return build_region


@pytest.fixture
def make_frame():
    return build_frame


@pytest.fixture
def make_provider():
    return build_provider


@pytest.fixture
def three_regions():
    return [
        build_region("R1", "high", grid_capacity_kwh=300_000.0),
        build_region("R2", "medium"),
        build_region("R3", "low", solar_capacity_kw=50_000.0),
    ]


@pytest.fixture
def mixed_provider(three_regions, start):
    """Thirty days of every table for three regions with varied values."""
    return build_provider(
        three_regions,
        start,
        30,
        climate={
            "rainfall_mm": lambda r, i: (i * 7) % 120,
            "temperature_c": lambda r, i: 18.0 + (i % 12),
            "soil_moisture_pct": 45.0,
        },
        energy={
            "energy_demand_kwh": lambda r, i: 400_000.0 + 5_000.0 * i,
            "solar_capacity_factor": 0.2,
        },
        water={
            "water_demand_m3": 10_000.0,
            "water_supply_m3": lambda r, i: 7_000.0 + 200.0 * i,
        },
        agriculture={"baseline_yield_kg": 1_000.0},
    )
