# Scenario simulation loop for WorldSim
# Layer 3: Simulation Engine
#
# Runs one scenario over a baseline snapshot: checks the snapshot covers every
# (region, date[, crop]) in the window, runs the domain kernel region by
# region, orders the daily records, and attaches the summary and economic
# analysis. The only awaited step is the baseline fetch in run_scenario().

import asyncio
import logging
from datetime import timedelta

import pandas as pd

from worldsim.exceptions import DataUnavailableError, InvalidScenarioError
from worldsim.kernels import get_kernel
from worldsim.settings.loader import check_date_range
from worldsim.simulation.data_loader import KEY_COLUMNS, VALUE_COLUMNS, normalize_baseline_frame
from worldsim.simulation.economics import compute_economic_analysis
from worldsim.simulation.metrics import compute_summary
from worldsim.simulation.state import SimulationResult

logger = logging.getLogger(__name__)


def simulation_dates(start_date, end_date):
    """Every day from start_date to end_date inclusive."""
    return [start_date + timedelta(days=i) for i in range((end_date - start_date).days + 1)]


def _scenario_crop_types(scenario):
    if scenario.domain == "agriculture":
        return scenario.crop_types
    return ()


def _scenario_regions(snapshot, scenario):
    regions = list(snapshot.regions)
    if scenario.region_ids is not None:
        known = {r.id for r in regions}
        missing = sorted(set(scenario.region_ids) - known)
        if missing:
            raise DataUnavailableError(f"No baseline data for region(s): {', '.join(missing)}")
        wanted = set(scenario.region_ids)
        regions = [r for r in regions if r.id in wanted]
    if not regions:
        raise DataUnavailableError("No regions found")
    return sorted(regions, key=lambda r: r.id)


def prepare_baseline(snapshot, scenario):
    """Restrict the snapshot to the run's scope and check it is complete.

    Args:
        snapshot: BaselineSnapshot from a provider
        scenario: Scenario being run

    Returns:
        Tuple (regions, frame) with frame sorted by key and one row per key

    Raises:
        DataUnavailableError: If there are no regions, a required column or
            readable date is missing, or any key in regions × days (× crops)
            has no row
    """
    if snapshot.domain != scenario.domain:
        raise DataUnavailableError(
            f"Baseline snapshot is for '{snapshot.domain}', scenario is '{scenario.domain}'"
        )

    regions = _scenario_regions(snapshot, scenario)
    crop_types = _scenario_crop_types(scenario)
    keys = KEY_COLUMNS[scenario.domain]
    dates = simulation_dates(scenario.start_date, scenario.end_date)

    frame = snapshot.frame
    missing_columns = [c for c in keys + VALUE_COLUMNS[scenario.domain] if c not in frame.columns]
    if missing_columns:
        raise DataUnavailableError(f"Baseline is missing column(s): {', '.join(missing_columns)}")

    try:
        frame = normalize_baseline_frame(frame)
    except (TypeError, ValueError) as e:
        raise DataUnavailableError(f"Baseline dates could not be read: {e}") from e

    region_ids = [r.id for r in regions]
    in_scope = (
        frame["region_id"].isin(region_ids)
        & (frame["date"] >= scenario.start_date)
        & (frame["date"] <= scenario.end_date)
    )
    if crop_types:
        in_scope &= frame["crop_type"].isin(crop_types)
    frame = frame[in_scope]

    duplicated = frame.duplicated(subset=keys, keep="first")
    if duplicated.any():
        logger.warning("Baseline has %d duplicate rows; keeping the first of each", int(duplicated.sum()))
        frame = frame[~duplicated]

    levels = [region_ids, dates] + ([list(crop_types)] if crop_types else [])
    expected = pd.MultiIndex.from_product(levels, names=keys)
    if len(frame) < len(expected):
        present = pd.MultiIndex.from_frame(frame[keys])
        missing = expected.difference(present)
        first = ", ".join(str(v) for v in missing[0]) if len(missing) else "unknown"
        raise DataUnavailableError(
            f"Insufficient baseline data: expected {len(expected)} rows, got {len(frame)} "
            f"(first missing: {first})"
        )

    frame = frame.sort_values(keys).reset_index(drop=True)
    return regions, frame


def simulate(scenario, snapshot):
    """Run a scenario synchronously over an already-fetched baseline.

    Args:
        scenario: EnergyScenario, WaterScenario or AgricultureScenario
        snapshot: BaselineSnapshot covering the scenario window

    Returns:
        SimulationResult with daily records ordered by date, region id, crop

    Raises:
        InvalidScenarioError: If the date window or crop type is invalid
        DataUnavailableError: If the baseline does not cover the run
        ComputationError: If a kernel step hits a malformed baseline value
    """
    errors = check_date_range(scenario.start_date, scenario.end_date)
    if errors:
        raise InvalidScenarioError(errors)

    regions, frame = prepare_baseline(snapshot, scenario)
    kernel = get_kernel(scenario.domain)

    logger.info(
        "Running %s scenario: %d regions, %d days (%s to %s)",
        scenario.domain, len(regions), scenario.num_days, scenario.start_date, scenario.end_date,
    )

    rows_by_region = dict(tuple(frame.groupby("region_id", sort=False)))
    daily_results = []
    for region in regions:
        daily_results.extend(kernel(region, rows_by_region[region.id], scenario))

    # Stable sort keeps the kernel's crop order within each (date, region)
    daily_results.sort(key=lambda record: (record.date, record.region_id))

    summary = compute_summary(scenario.domain, daily_results)
    economic_analysis = compute_economic_analysis(summary)

    logger.info(
        "Completed %s scenario: %d records, avg stress %.3f, max stress %.3f",
        scenario.domain, len(daily_results), summary.avg_stress, summary.max_stress,
    )

    return SimulationResult(
        domain=scenario.domain,
        scenario=scenario,
        daily_results=daily_results,
        summary=summary,
        economic_analysis=economic_analysis,
    )


async def run_scenario(scenario, provider):
    """Fetch the baseline for a scenario, then simulate it.

    Args:
        scenario: Scenario to run
        provider: BaselineProvider (any object with an async fetch())

    Returns:
        SimulationResult
    """
    errors = check_date_range(scenario.start_date, scenario.end_date)
    if errors:
        raise InvalidScenarioError(errors)

    snapshot = await provider.fetch(
        scenario.domain,
        scenario.start_date,
        scenario.end_date,
        region_ids=scenario.region_ids,
        crop_types=_scenario_crop_types(scenario),
    )
    return simulate(scenario, snapshot)


def run_simulation(scenario, provider):
    """Blocking wrapper around run_scenario() for scripts and the CLI."""
    return asyncio.run(run_scenario(scenario, provider))
