"""Energy balance kernel for WorldSim.

Projects daily electricity demand, solar generation and grid draw per region.
Solar output scales with installed capacity growth and a bounded rainfall
(cloud cover) factor; the grid covers the remainder up to the region's daily
ceiling and anything left over is a deficit.

Usage:
    from worldsim.kernels.energy import compute_energy_day, simulate_region

    record = compute_energy_day(region, day, baseline_demand_kwh=1e6,
                                solar_capacity_factor=0.2, scenario=scenario)
"""

from worldsim.constants import (
    HOURS_PER_DAY,
    SOLAR_RAINFALL_MULTIPLIER_MAX,
    SOLAR_RAINFALL_SENSITIVITY,
)
from worldsim.kernels.base import (
    baseline_value,
    growth_multiplier,
    percent_change,
    rainfall_supply_multiplier,
    stress_ratio,
    years_elapsed,
)
from worldsim.simulation.state import EnergyDailyResult


def baseline_solar_kwh(region, solar_capacity_factor):
    """Daily solar generation from installed capacity at today's capacity factor."""
    return region.solar_capacity_kw * HOURS_PER_DAY * solar_capacity_factor


def compute_energy_day(region, current_date, baseline_demand_kwh, solar_capacity_factor, scenario):
    """Compute one region-day of the energy balance.

    Args:
        region: Region being simulated
        current_date: Simulated date
        baseline_demand_kwh: Baseline electricity demand for the day
        solar_capacity_factor: Fraction of nameplate solar delivered (0-1)
        scenario: EnergyScenario

    Returns:
        EnergyDailyResult
    """
    years = years_elapsed(current_date, scenario.start_date)

    demand = baseline_demand_kwh * growth_multiplier(scenario.demand_growth_pct, years)

    solar_available = (
        baseline_solar_kwh(region, solar_capacity_factor)
        * growth_multiplier(scenario.solar_growth_pct, years)
        * rainfall_supply_multiplier(
            scenario.rainfall_change_pct,
            SOLAR_RAINFALL_SENSITIVITY,
            SOLAR_RAINFALL_MULTIPLIER_MAX,
        )
    )
    # Output beyond demand is curtailed
    solar = min(solar_available, demand)

    grid = min(max(0.0, demand - solar), region.grid_ceiling_kwh)
    deficit = max(0.0, demand - solar - grid)

    supplied = solar + grid
    solar_share = solar / supplied * 100.0 if supplied > 0 else 0.0

    return EnergyDailyResult(
        date=current_date,
        region_id=region.id,
        region_name=region.name,
        baseline_demand_kwh=baseline_demand_kwh,
        demand_kwh=demand,
        solar_kwh=solar,
        grid_kwh=grid,
        deficit_kwh=deficit,
        solar_share_pct=solar_share,
        stress=stress_ratio(deficit, demand),
        demand_change_pct=percent_change(demand, baseline_demand_kwh),
    )


def simulate_region(region, rows, scenario):
    """Run the energy kernel over one region's baseline rows (date order)."""
    results = []
    for row in rows.itertuples(index=False):
        results.append(compute_energy_day(
            region,
            row.date,
            baseline_value(row, "energy_demand_kwh", region.id, row.date),
            baseline_value(row, "solar_capacity_factor", region.id, row.date),
            scenario,
        ))
    return results
