# Shared helpers for the daily computation kernels
# Layer 3: Simulation Engine
#
# Elapsed-time growth, bounded rainfall multipliers and baseline value checks
# used by every domain kernel.

import math

from worldsim.constants import DAYS_PER_YEAR
from worldsim.exceptions import ComputationError
from worldsim.simulation.state import clamp


def years_elapsed(current_date, start_date):
    """Fractional years between the scenario start and current_date."""
    return (current_date - start_date).days / DAYS_PER_YEAR


def growth_multiplier(annual_pct, years):
    """Linear growth factor for an annual percentage rate, floored at 0.

    A rate of 150% reaches 2.5x after one year and 1.75x after six months.
    """
    return max(0.0, 1.0 + annual_pct / 100.0 * years)


def rainfall_supply_multiplier(rainfall_change_pct, sensitivity, upper):
    """Supply factor for a rainfall change, bounded to [0, upper]."""
    return clamp(1.0 + sensitivity * rainfall_change_pct / 100.0, 0.0, upper)


def percent_change(actual, baseline):
    """Percent difference from baseline; 0 when the baseline is 0."""
    if baseline == 0:
        return 0.0
    return (actual - baseline) / baseline * 100.0


def stress_ratio(shortfall, required):
    """Shortfall as a fraction of what was required, bounded to [0, 1]."""
    if required <= 0:
        return 0.0
    return clamp(shortfall / required, 0.0, 1.0)


def baseline_value(row, column, region_id, current_date, crop_type=None, allow_negative=False):
    """Read a numeric baseline value, rejecting missing or malformed entries.

    Raises:
        ComputationError: If the value is missing, non-numeric, non-finite,
            or negative when negatives are not allowed
    """
    value = getattr(row, column, None)
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ComputationError(
            f"Malformed baseline value {column}={value!r}", region_id, current_date, crop_type
        ) from None
    if not math.isfinite(value):
        raise ComputationError(
            f"Missing baseline value for {column}", region_id, current_date, crop_type
        )
    if value < 0 and not allow_negative:
        raise ComputationError(
            f"Negative baseline value {column}={value:g}", region_id, current_date, crop_type
        )
    return value
