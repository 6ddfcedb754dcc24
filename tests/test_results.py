from __future__ import annotations

import json
import logging
from datetime import timedelta

import pandas as pd
import pytest

from worldsim.settings.loader import ScenarioMetadata, WaterScenario
from worldsim.simulation.results import (
    create_output_directory,
    main,
    persist_results,
    write_results,
)
from worldsim.simulation.simulation import simulate


@pytest.fixture
def water_result(mixed_provider, start):
    scenario = WaterScenario(start, start + timedelta(days=9), water_demand_growth_pct=30.0)
    snapshot = mixed_provider.load_snapshot("water", scenario.start_date, scenario.end_date)
    return simulate(scenario, snapshot)


def test_write_results_creates_all_files(water_result, tmp_path):
    metadata = ScenarioMetadata(name="test_run", description="three regions", domain="water")
    output_dir = write_results(water_result, tmp_path / "out", metadata)

    assert {p.name for p in output_dir.iterdir()} == {
        "daily_results.csv",
        "summary.json",
        "summary.csv",
        "simulation_config.json",
    }

    daily = pd.read_csv(output_dir / "daily_results.csv")
    assert len(daily) == len(water_result.daily_results)
    assert list(daily["region_id"][:3]) == ["R1", "R2", "R3"]

    summary = json.loads((output_dir / "summary.json").read_text())
    assert summary["domain"] == "water"
    assert summary["summary"]["avg_stress"] == pytest.approx(water_result.summary.avg_stress)
    assert "investment_required_usd" in summary["economic_analysis"]

    config = json.loads((output_dir / "simulation_config.json").read_text())
    assert config["scenario"]["name"] == "test_run"
    assert config["parameters"]["water_demand_growth_pct"] == 30.0
    assert config["regions"] == ["R1", "R2", "R3"]

    metrics = pd.read_csv(output_dir / "summary.csv")
    assert "avg_stress" in set(metrics["metric"])
    assert "top_stressed_region_1" in set(metrics["metric"])


def test_create_output_directory_is_timestamped(tmp_path):
    output_dir = create_output_directory(tmp_path, "drought")

    assert output_dir.is_dir()
    assert output_dir.name.startswith("drought_")


def test_persist_failure_is_logged_not_raised(water_result, tmp_path, caplog):
    blocker = tmp_path / "not_a_directory"
    blocker.write_text("occupied")

    with caplog.at_level(logging.ERROR):
        saved = persist_results(water_result, blocker / "nested")

    assert saved is None
    assert "Failed to save simulation results" in caplog.text
    # The computed result is untouched
    assert len(water_result.daily_results) == 30


def test_cli_runs_shipped_scenario(project_root, tmp_path, capsys):
    exit_code = main([
        str(project_root / "settings" / "scenarios" / "water_conservation.yaml"),
        "--registry", str(project_root / "settings" / "data_registry.yaml"),
        "--output-dir", str(tmp_path / "cli"),
    ])

    assert exit_code == 0
    assert (tmp_path / "cli" / "daily_results.csv").exists()
    assert "Results saved to" in capsys.readouterr().out
