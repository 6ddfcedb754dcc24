"""Sensitivity analysis for WorldSim scenarios.

Re-runs a scenario over one fixed baseline snapshot with a single parameter
varied at a time, to show which levers move stress and losses the most.
Parameter values are clipped to their declared ranges.
"""

import logging
from dataclasses import replace

import pandas as pd

from worldsim.exceptions import InvalidScenarioError
from worldsim.settings.loader import PARAMETER_RANGES, validate_scenario
from worldsim.simulation.simulation import simulate

logger = logging.getLogger(__name__)

# Perturbation applied by run_standard_sweep, in each parameter's own units
DEFAULT_STEPS = {
    "solar_growth_pct": 20.0,
    "demand_growth_pct": 20.0,
    "water_demand_growth_pct": 20.0,
    "conservation_rate_pct": 20.0,
    "rainfall_change_pct": 20.0,
    "temperature_change_c": 1.0,
    "irrigation_improvement_pct": 20.0,
}

PARAMETER_LABELS = {
    "solar_growth_pct": "Solar Capacity Growth",
    "demand_growth_pct": "Energy Demand Growth",
    "water_demand_growth_pct": "Water Demand Growth",
    "conservation_rate_pct": "Conservation Rate",
    "rainfall_change_pct": "Rainfall Change",
    "temperature_change_c": "Temperature Change",
    "irrigation_improvement_pct": "Irrigation Improvement",
}


def _clip_to_range(domain, parameter, value):
    low, high = PARAMETER_RANGES[domain][parameter]
    return max(low, min(high, value))


def _outcome(scenario, snapshot):
    result = simulate(scenario, snapshot)
    return {
        "avg_stress": result.summary.avg_stress,
        "max_stress": result.summary.max_stress,
        "total_loss": result.summary.total_loss,
        "total_loss_pct": result.summary.total_loss_pct,
        "investment_required_usd": result.economic_analysis.investment_required_usd,
    }


def run_sensitivity_analysis(scenario, snapshot, parameter, values):
    """Run the scenario once per value of one parameter.

    Args:
        scenario: Base scenario
        snapshot: BaselineSnapshot reused for every run
        parameter: Numeric scenario field to vary
        values: Values to try (clipped to the parameter's range)

    Returns:
        DataFrame with columns value, avg_stress, max_stress, total_loss,
        total_loss_pct, investment_required_usd (one row per value)

    Raises:
        InvalidScenarioError: If parameter is not a numeric field of the scenario
    """
    available = scenario.numeric_parameters()
    if parameter not in available:
        valid = ", ".join(available)
        raise InvalidScenarioError(
            f"Unknown {scenario.domain} parameter: '{parameter}'. Available: {valid}"
        )

    rows = []
    for value in values:
        value = _clip_to_range(scenario.domain, parameter, float(value))
        varied = validate_scenario(replace(scenario, **{parameter: value}))
        rows.append({"value": value, **_outcome(varied, snapshot)})
        logger.debug("%s=%g -> avg stress %.4f", parameter, value, rows[-1]["avg_stress"])

    return pd.DataFrame(
        rows,
        columns=["value", "avg_stress", "max_stress", "total_loss", "total_loss_pct",
                 "investment_required_usd"],
    )


def run_standard_sweep(scenario, snapshot, variation_scale=1.0, verbose=False):
    """Vary every numeric parameter down and up by its default step.

    Args:
        scenario: Base scenario
        snapshot: BaselineSnapshot reused for every run
        variation_scale: Multiplier on DEFAULT_STEPS
        verbose: Print progress if True

    Returns:
        dict: {
            "base_avg_stress": float,
            "parameters": {
                param_name: {
                    "label": str,
                    "low_value": float,
                    "high_value": float,
                    "low_avg_stress": float,
                    "high_avg_stress": float,
                    "low_delta": float,   # low_avg_stress - base_avg_stress
                    "high_delta": float,  # high_avg_stress - base_avg_stress
                    "total_swing": float,  # abs(high_delta) + abs(low_delta)
                }
            }
        }
        Parameters are ordered by descending total_swing.
    """
    if verbose:
        print("Running base case...")
    base_avg_stress = _outcome(scenario, snapshot)["avg_stress"]
    if verbose:
        print(f"  Base avg stress: {base_avg_stress:.4f}")

    parameters = scenario.numeric_parameters()
    results = {}
    for i, param in enumerate(parameters, 1):
        label = PARAMETER_LABELS.get(param, param)
        if verbose:
            print(f"[{i}/{len(parameters)}] Testing {label}...")

        step = DEFAULT_STEPS.get(param, 10.0) * variation_scale
        current = getattr(scenario, param)
        frame = run_sensitivity_analysis(scenario, snapshot, param, [current - step, current + step])
        low, high = frame.iloc[0], frame.iloc[1]

        low_delta = float(low["avg_stress"]) - base_avg_stress
        high_delta = float(high["avg_stress"]) - base_avg_stress
        results[param] = {
            "label": label,
            "low_value": float(low["value"]),
            "high_value": float(high["value"]),
            "low_avg_stress": float(low["avg_stress"]),
            "high_avg_stress": float(high["avg_stress"]),
            "low_delta": low_delta,
            "high_delta": high_delta,
            "total_swing": abs(low_delta) + abs(high_delta),
        }

        if verbose:
            print(f"  Low ({results[param]['low_value']:g}): delta {low_delta:+.4f}  |  "
                  f"High ({results[param]['high_value']:g}): delta {high_delta:+.4f}")

    ordered = dict(sorted(results.items(), key=lambda item: -item[1]["total_swing"]))
    return {"base_avg_stress": base_avg_stress, "parameters": ordered}
