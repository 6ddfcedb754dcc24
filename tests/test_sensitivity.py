from __future__ import annotations

from datetime import timedelta

import pytest

from worldsim.exceptions import InvalidScenarioError
from worldsim.settings.loader import AgricultureScenario, WaterScenario
from worldsim.simulation.sensitivity import run_sensitivity_analysis, run_standard_sweep


@pytest.fixture
def dry_snapshot(make_region, make_provider, start):
    provider = make_provider(
        [make_region("R1", "low"), make_region("R2", "high")], start, 20,
        climate={"rainfall_mm": 10.0, "temperature_c": 24.0, "soil_moisture_pct": 30.0},
        agriculture={"baseline_yield_kg": 1_000.0},
    )
    return provider.load_snapshot(
        "agriculture", start, start + timedelta(days=19),
        crop_types=("coffee", "sugar_cane", "corn", "beans"),
    )


@pytest.fixture
def dry_scenario(start):
    return AgricultureScenario(start, start + timedelta(days=19), rainfall_change_pct=-20.0)


def test_irrigation_sweep_lowers_stress(dry_scenario, dry_snapshot):
    frame = run_sensitivity_analysis(
        dry_scenario, dry_snapshot, "irrigation_improvement_pct", [0, 50, 100]
    )

    assert list(frame["value"]) == [0.0, 50.0, 100.0]
    stress = list(frame["avg_stress"])
    assert stress[0] > stress[1] > stress[2]
    assert list(frame["total_loss"]) == sorted(frame["total_loss"], reverse=True)


def test_values_are_clipped_to_range(dry_scenario, dry_snapshot):
    frame = run_sensitivity_analysis(
        dry_scenario, dry_snapshot, "irrigation_improvement_pct", [-10, 250]
    )
    assert list(frame["value"]) == [0.0, 100.0]


def test_unknown_parameter_rejected(dry_scenario, dry_snapshot):
    with pytest.raises(InvalidScenarioError, match="conservation_rate_pct"):
        run_sensitivity_analysis(dry_scenario, dry_snapshot, "conservation_rate_pct", [10])


def test_standard_sweep_orders_by_swing(dry_scenario, dry_snapshot):
    report = run_standard_sweep(dry_scenario, dry_snapshot)

    params = report["parameters"]
    assert set(params) == {"rainfall_change_pct", "temperature_change_c", "irrigation_improvement_pct"}
    swings = [p["total_swing"] for p in params.values()]
    assert swings == sorted(swings, reverse=True)
    assert params["irrigation_improvement_pct"]["low_value"] == 0.0
    assert params["irrigation_improvement_pct"]["high_value"] == 20.0
    assert 0.0 <= report["base_avg_stress"] <= 1.0


def test_standard_sweep_for_water(mixed_provider, start):
    scenario = WaterScenario(start, start + timedelta(days=9), water_demand_growth_pct=50.0)
    snapshot = mixed_provider.load_snapshot("water", scenario.start_date, scenario.end_date)

    report = run_standard_sweep(scenario, snapshot, variation_scale=0.5)

    assert report["parameters"]["conservation_rate_pct"]["high_value"] == 10.0
    assert report["parameters"]["water_demand_growth_pct"]["low_value"] == 40.0
