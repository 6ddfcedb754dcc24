from __future__ import annotations

from datetime import date, timedelta

import numpy as np
import pytest

from worldsim.simulation.metrics import (
    compute_summary,
    count_critical_shortage_days,
    most_affected_entity,
    rank_stressed_regions,
)
from worldsim.simulation.state import AgricultureDailyResult, WaterDailyResult

DAY = date(2024, 3, 1)


def _water(region_id, day_offset, demand, unmet):
    return WaterDailyResult(
        date=DAY + timedelta(days=day_offset),
        region_id=region_id,
        region_name=f"Region {region_id}",
        baseline_demand_m3=demand,
        demand_m3=demand,
        supply_m3=demand - unmet,
        unmet_demand_m3=unmet,
        stress=unmet / demand if demand else 0.0,
        demand_change_pct=0.0,
    )


def _crop(region_id, crop_type, baseline, actual, day_offset=0):
    return AgricultureDailyResult(
        date=DAY + timedelta(days=day_offset),
        region_id=region_id,
        region_name=f"Region {region_id}",
        crop_type=crop_type,
        rainfall_mm=50.0,
        temperature_c=24.0,
        soil_moisture_pct=45.0,
        baseline_yield_kg=baseline,
        actual_yield_kg=actual,
        yield_change_pct=(actual - baseline) / baseline * 100.0,
        stress=max(0.0, min(1.0, 1.0 - actual / baseline)),
    )


def test_avg_stress_is_mean_of_daily_stress():
    records = [_water("A", i, 100.0, float(10 * i)) for i in range(8)]
    summary = compute_summary("water", records)

    assert summary.avg_stress == pytest.approx(np.mean([r.stress for r in records]))
    assert summary.max_stress == pytest.approx(0.7)


def test_water_loss_totals_and_percentage():
    records = [_water("A", 0, 100.0, 20.0), _water("B", 0, 300.0, 30.0)]
    summary = compute_summary("water", records)

    assert summary.total_loss == pytest.approx(50.0)
    assert summary.total_loss_pct == pytest.approx(12.5)

    data = summary.to_dict()
    assert data["total_unmet_demand_m3"] == pytest.approx(50.0)
    assert data["total_unmet_demand_pct"] == pytest.approx(12.5)
    assert data["most_affected_region"] == "B"
    assert data["total_demand_m3"] == pytest.approx(400.0)


def test_yield_gains_do_not_offset_losses():
    records = [
        _crop("A", "coffee", 1_000.0, 800.0),
        _crop("A", "corn", 1_000.0, 1_300.0),
    ]
    summary = compute_summary("agriculture", records)

    assert summary.total_loss == pytest.approx(200.0)
    assert summary.total_loss_pct == pytest.approx(10.0)
    assert summary.most_affected == "coffee"
    assert summary.details["crop_losses"] == {"coffee": pytest.approx(200.0), "corn": 0.0}

    data = summary.to_dict()
    assert data["total_yield_loss_kg"] == pytest.approx(200.0)
    assert data["total_yield_loss_pct"] == pytest.approx(10.0)
    assert data["most_affected_crop"] == "coffee"


def test_most_affected_ties_keep_first_occurrence():
    assert most_affected_entity({"beans": 5.0, "corn": 5.0, "coffee": 1.0}) == "beans"
    assert most_affected_entity({}) is None


def test_top_regions_ranked_by_stress_then_id():
    averages = {"R4": 0.5, "R2": 0.9, "R1": 0.5, "R3": 0.9, "R5": 0.1, "R6": 0.5}
    ranked = rank_stressed_regions(averages, {})

    assert [r["region_id"] for r in ranked] == ["R2", "R3", "R1", "R4", "R6"]
    assert ranked[0]["avg_stress"] == 0.9


def test_top_regions_are_stable_across_runs():
    records = [_water(rid, 0, 100.0, 40.0) for rid in ("Z", "M", "A")]
    first = compute_summary("water", records).top_stressed_regions
    second = compute_summary("water", list(records)).top_stressed_regions

    assert first == second
    assert [r["region_id"] for r in first] == ["A", "M", "Z"]


def test_top_regions_bounded_to_five():
    records = [_water(f"R{i}", 0, 100.0, float(i)) for i in range(9)]
    summary = compute_summary("water", records)

    assert len(summary.top_stressed_regions) == 5
    assert summary.top_stressed_regions[0]["region_id"] == "R8"
    assert len(summary.region_avg_stress) == 9


def test_critical_shortage_days_counts_distinct_dates():
    records = [
        _water("A", 0, 100.0, 60.0),
        _water("B", 0, 100.0, 70.0),
        _water("A", 1, 100.0, 10.0),
        _water("B", 2, 100.0, 50.0),
    ]
    assert count_critical_shortage_days(records) == 2


def test_empty_run_summary():
    summary = compute_summary("energy", [])

    assert summary.avg_stress == 0.0
    assert summary.max_stress == 0.0
    assert summary.most_affected is None
    assert summary.top_stressed_regions == []
    assert summary.to_dict()["total_deficit_kwh"] == 0.0


def test_agriculture_ranking_carries_crop_type():
    records = [
        _crop("R1", "coffee", 100.0, 40.0),
        _crop("R2", "coffee", 100.0, 90.0),
        _crop("R3", "coffee", 100.0, 70.0),
        _crop("R3", "corn", 100.0, 70.0),
    ]
    ranked = compute_summary("agriculture", records).top_stressed_regions

    assert [(r["region_id"], r["crop_type"]) for r in ranked] == [
        ("R1", "coffee"), ("R3", "all"), ("R2", "coffee"),
    ]


def test_water_ranking_has_no_crop_type():
    ranked = compute_summary("water", [_water("R1", 0, 100.0, 20.0)]).top_stressed_regions
    assert "crop_type" not in ranked[0]
