# Run-level metrics for WorldSim
# Layer 3: Simulation Engine
#
# Aggregates the ordered daily records of a run into a SimulationSummary:
# stress statistics, total loss against baseline, the most affected entity
# and a ranked list of the most stressed regions. All calculations guard
# against division by zero and return plain floats.

import numpy as np

from worldsim.constants import CRITICAL_SHORTAGE_STRESS
from worldsim.simulation.state import SimulationSummary

# Length of the top_stressed_regions list
TOP_STRESSED_REGIONS = 5


def _as_array(values, count):
    return np.fromiter(values, dtype=float, count=count)


def compute_region_stress(daily_results):
    """Average stress per region, keyed by region id in first-seen order.

    Returns:
        Tuple (avg_stress_by_region, name_by_region)
    """
    totals = {}
    counts = {}
    names = {}
    for record in daily_results:
        totals[record.region_id] = totals.get(record.region_id, 0.0) + record.stress
        counts[record.region_id] = counts.get(record.region_id, 0) + 1
        names.setdefault(record.region_id, record.region_name)
    averages = {region_id: totals[region_id] / counts[region_id] for region_id in totals}
    return averages, names


def compute_region_crop(daily_results):
    """Crop reported per region: its only crop, or "all" when it grows several."""
    crops = {}
    for record in daily_results:
        crops.setdefault(record.region_id, set()).add(record.crop_type)
    return {
        region_id: next(iter(region_crops)) if len(region_crops) == 1 else "all"
        for region_id, region_crops in crops.items()
    }


def rank_stressed_regions(region_avg_stress, region_names, top_n=TOP_STRESSED_REGIONS,
                          region_crops=None):
    """Regions by descending average stress, ties by ascending region id.

    Entries carry crop_type when region_crops is given (agriculture runs).
    """
    ranked = sorted(region_avg_stress.items(), key=lambda item: (-item[1], item[0]))
    entries = []
    for region_id, avg_stress in ranked[:top_n]:
        entry = {
            "region_id": region_id,
            "region_name": region_names.get(region_id, region_id),
            "avg_stress": avg_stress,
        }
        if region_crops is not None:
            entry["crop_type"] = region_crops.get(region_id, "all")
        entries.append(entry)
    return entries


def compute_losses_by_entity(daily_results):
    """Total clamped loss per entity (crop or region), in first-seen order."""
    losses = {}
    for record in daily_results:
        loss = max(0.0, record.required_amount - record.delivered_amount)
        losses[record.entity] = losses.get(record.entity, 0.0) + loss
    return losses


def most_affected_entity(losses_by_entity):
    """Entity with the largest total loss; earliest entity wins ties."""
    best_entity = None
    best_loss = None
    for entity, loss in losses_by_entity.items():
        if best_loss is None or loss > best_loss:
            best_entity = entity
            best_loss = loss
    return best_entity


def count_critical_shortage_days(daily_results, threshold=CRITICAL_SHORTAGE_STRESS):
    """Number of distinct dates on which any region reached the threshold stress."""
    return len({record.date for record in daily_results if record.stress >= threshold})


def _domain_details(domain, daily_results, losses_by_entity):
    """Domain-specific totals reported alongside the common summary fields."""
    n = len(daily_results)
    if domain == "energy":
        demand = _as_array((r.demand_kwh for r in daily_results), n)
        solar = _as_array((r.solar_kwh for r in daily_results), n)
        grid = _as_array((r.grid_kwh for r in daily_results), n)
        deficit = _as_array((r.deficit_kwh for r in daily_results), n)
        supplied = float(solar.sum() + grid.sum())
        return {
            "total_demand_kwh": float(demand.sum()),
            "total_solar_kwh": float(solar.sum()),
            "total_grid_kwh": float(grid.sum()),
            "solar_percentage": float(solar.sum()) / supplied * 100.0 if supplied > 0 else 0.0,
            "peak_deficit_kwh": float(deficit.max()) if n else 0.0,
        }
    if domain == "water":
        demand = _as_array((r.demand_m3 for r in daily_results), n)
        supply = _as_array((r.supply_m3 for r in daily_results), n)
        return {
            "total_demand_m3": float(demand.sum()),
            "total_supply_m3": float(supply.sum()),
            "critical_shortage_days": count_critical_shortage_days(daily_results),
        }
    if domain == "agriculture":
        return {"crop_losses": dict(losses_by_entity)}
    return {}


def compute_summary(domain, daily_results, top_n=TOP_STRESSED_REGIONS):
    """Aggregate a run's daily records.

    Args:
        domain: Domain tag of the run
        daily_results: Daily records in output order
        top_n: Length of the top_stressed_regions list

    Returns:
        SimulationSummary (all zeros / empty for an empty run)
    """
    n = len(daily_results)
    losses_by_entity = compute_losses_by_entity(daily_results)

    if n == 0:
        return SimulationSummary(
            domain=domain,
            avg_stress=0.0,
            max_stress=0.0,
            total_loss=0.0,
            total_loss_pct=0.0,
            most_affected=None,
            top_stressed_regions=[],
            region_avg_stress={},
            details=_domain_details(domain, daily_results, losses_by_entity),
        )

    stress = _as_array((r.stress for r in daily_results), n)
    required = _as_array((r.required_amount for r in daily_results), n)
    delivered = _as_array((r.delivered_amount for r in daily_results), n)

    total_loss = float(np.maximum(0.0, required - delivered).sum())
    total_required = float(required.sum())
    total_loss_pct = total_loss / total_required * 100.0 if total_required > 0 else 0.0

    region_avg_stress, region_names = compute_region_stress(daily_results)
    region_crops = compute_region_crop(daily_results) if domain == "agriculture" else None

    return SimulationSummary(
        domain=domain,
        avg_stress=float(stress.mean()),
        max_stress=float(stress.max()),
        total_loss=total_loss,
        total_loss_pct=total_loss_pct,
        most_affected=most_affected_entity(losses_by_entity),
        top_stressed_regions=rank_stressed_regions(
            region_avg_stress, region_names, top_n, region_crops
        ),
        region_avg_stress=region_avg_stress,
        details=_domain_details(domain, daily_results, losses_by_entity),
    )
