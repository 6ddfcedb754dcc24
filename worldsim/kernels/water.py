"""Water balance kernel for WorldSim.

Demand grows at the scenario rate, reduced in proportion to the conservation
rate; supply follows baseline supply scaled by a bounded rainfall factor.
Unmet demand relative to projected demand is the day's stress.

Usage:
    from worldsim.kernels.water import compute_water_day, simulate_region
"""

from worldsim.constants import WATER_RAINFALL_MULTIPLIER_MAX, WATER_RAINFALL_SENSITIVITY
from worldsim.kernels.base import (
    baseline_value,
    growth_multiplier,
    percent_change,
    rainfall_supply_multiplier,
    stress_ratio,
    years_elapsed,
)
from worldsim.simulation.state import WaterDailyResult


def effective_demand_growth_pct(scenario):
    """Annual demand growth after conservation; 100% conservation cancels growth."""
    return scenario.water_demand_growth_pct * (1.0 - scenario.conservation_rate_pct / 100.0)


def compute_water_day(region, current_date, baseline_demand_m3, baseline_supply_m3, scenario):
    """Compute one region-day of the water balance.

    Args:
        region: Region being simulated
        current_date: Simulated date
        baseline_demand_m3: Baseline water demand for the day
        baseline_supply_m3: Baseline available supply for the day
        scenario: WaterScenario

    Returns:
        WaterDailyResult
    """
    years = years_elapsed(current_date, scenario.start_date)

    growth_pct = effective_demand_growth_pct(scenario)
    demand = baseline_demand_m3 * growth_multiplier(growth_pct, years)

    supply = baseline_supply_m3 * rainfall_supply_multiplier(
        scenario.rainfall_change_pct,
        WATER_RAINFALL_SENSITIVITY,
        WATER_RAINFALL_MULTIPLIER_MAX,
    )
    unmet = max(0.0, demand - supply)

    return WaterDailyResult(
        date=current_date,
        region_id=region.id,
        region_name=region.name,
        baseline_demand_m3=baseline_demand_m3,
        demand_m3=demand,
        supply_m3=supply,
        unmet_demand_m3=unmet,
        stress=stress_ratio(unmet, demand),
        demand_change_pct=percent_change(demand, baseline_demand_m3),
    )


def simulate_region(region, rows, scenario):
    """Run the water kernel over one region's baseline rows (date order)."""
    results = []
    for row in rows.itertuples(index=False):
        results.append(compute_water_day(
            region,
            row.date,
            baseline_value(row, "water_demand_m3", region.id, row.date),
            baseline_value(row, "water_supply_m3", region.id, row.date),
            scenario,
        ))
    return results
