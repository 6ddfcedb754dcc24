"""Crop yield kernel for WorldSim.

Projects daily yield per crop and region from the baseline yield and a
product of bounded response multipliers:

    yield = baseline × altitude × rainfall × temperature × soil_moisture × irrigation

Soil moisture is the only state carried between days. Each region gets its
own SoilMoistureState at the start of a run, advanced once per day in date
order before that day's crops are evaluated.

Crop thresholds live in worldsim/constants.py (CROP_PARAMETERS).

Usage:
    from worldsim.kernels.agriculture import project_yield, simulate_region

    actual = project_yield("coffee", "high", 1000.0, rainfall_mm=42.0,
                           temperature_c=24.5, soil_moisture_pct=30.0,
                           irrigation_improvement_pct=0.0)
"""

import logging

import pandas as pd

from worldsim.constants import (
    CROP_PARAMETERS,
    MIN_RAINFALL_RESPONSE,
    SOIL_DRY_MULTIPLIER,
    SOIL_DRY_THRESHOLD_PCT,
    SOIL_MOISTURE_SEED_PCT,
    SOIL_WET_MULTIPLIER,
    SOIL_WET_THRESHOLD_PCT,
)
from worldsim.exceptions import ComputationError
from worldsim.kernels.base import baseline_value, percent_change, stress_ratio
from worldsim.simulation.state import AgricultureDailyResult, SoilMoistureState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response multipliers
# ---------------------------------------------------------------------------

def _crop_parameters(crop_type):
    if crop_type not in CROP_PARAMETERS:
        raise KeyError(f"Unknown crop: '{crop_type}'. Available: {', '.join(CROP_PARAMETERS)}")
    return CROP_PARAMETERS[crop_type]


def altitude_multiplier(crop_type, altitude_band):
    """Suitability of a region's altitude band for the crop."""
    return _crop_parameters(crop_type)["altitude"][altitude_band]


def is_below_rainfall_band(crop_type, rainfall_mm):
    low, _ = _crop_parameters(crop_type)["rainfall_mm"]
    return rainfall_mm < low


def rainfall_multiplier(crop_type, rainfall_mm):
    """Rainfall response, floored at MIN_RAINFALL_RESPONSE.

    Below the preferred band the response either rises linearly from
    dry_base at zero rainfall or takes a flat dry_multiplier penalty.
    Above the band it declines linearly (wet_decline_mm) or takes a flat
    wet_multiplier penalty.
    """
    params = _crop_parameters(crop_type)
    low, high = params["rainfall_mm"]

    if rainfall_mm < low:
        if "dry_base" in params:
            dry_base = params["dry_base"]
            response = dry_base + rainfall_mm / low * (1.0 - dry_base)
        else:
            response = params.get("dry_multiplier", 1.0)
    elif rainfall_mm > high:
        if "wet_decline_mm" in params:
            response = 1.0 - (rainfall_mm - high) / params["wet_decline_mm"]
        else:
            response = params.get("wet_multiplier", 1.0)
    else:
        response = params.get("in_band_rainfall_multiplier", 1.0)

    return max(MIN_RAINFALL_RESPONSE, response)


def temperature_multiplier(crop_type, temperature_c):
    """Temperature response: flat penalties outside the preferred band."""
    params = _crop_parameters(crop_type)
    low, high = params["temperature_c"]
    cold_threshold = params.get("cold_threshold_c", low)

    if temperature_c < cold_threshold:
        return params.get("cold_multiplier", 1.0)
    if temperature_c > high:
        return params.get("heat_multiplier", 1.0)
    if temperature_c >= low:
        return params.get("in_band_temperature_multiplier", 1.0)
    return 1.0


def soil_moisture_multiplier(soil_moisture_pct):
    if soil_moisture_pct < SOIL_DRY_THRESHOLD_PCT:
        return SOIL_DRY_MULTIPLIER
    if soil_moisture_pct > SOIL_WET_THRESHOLD_PCT:
        return SOIL_WET_MULTIPLIER
    return 1.0


def irrigated_rainfall_multiplier(crop_type, rainfall_mm, irrigation_improvement_pct):
    """Rainfall response after irrigation closes part of the deficit.

    Only applies when rainfall is below the crop's band: the shortfall from
    1.0 shrinks in proportion to the improvement percentage. Sufficient
    rainfall is left untouched.
    """
    response = rainfall_multiplier(crop_type, rainfall_mm)
    if not is_below_rainfall_band(crop_type, rainfall_mm) or response >= 1.0:
        return response
    return response + (1.0 - response) * irrigation_improvement_pct / 100.0


def project_yield(crop_type, altitude_band, baseline_yield_kg, rainfall_mm, temperature_c,
                  soil_moisture_pct, irrigation_improvement_pct=0.0):
    """Projected yield for one crop on one day.

    Args:
        crop_type: One of CROP_TYPES
        altitude_band: Region altitude band ("high", "medium", "low")
        baseline_yield_kg: Baseline yield for the day
        rainfall_mm: Scenario-adjusted daily rainfall
        temperature_c: Scenario-adjusted daily mean temperature
        soil_moisture_pct: Soil moisture for the day (already advanced)
        irrigation_improvement_pct: Irrigation investment level (0-100)

    Returns:
        Projected yield in kg
    """
    return (
        baseline_yield_kg
        * altitude_multiplier(crop_type, altitude_band)
        * irrigated_rainfall_multiplier(crop_type, rainfall_mm, irrigation_improvement_pct)
        * temperature_multiplier(crop_type, temperature_c)
        * soil_moisture_multiplier(soil_moisture_pct)
    )


# ---------------------------------------------------------------------------
# Region fold
# ---------------------------------------------------------------------------

def adjusted_climate(baseline_rainfall_mm, baseline_temperature_c, scenario):
    """Apply the scenario's rainfall change and temperature shift."""
    rainfall = max(0.0, baseline_rainfall_mm * (1.0 + scenario.rainfall_change_pct / 100.0))
    temperature = baseline_temperature_c + scenario.temperature_change_c
    return rainfall, temperature


def initial_soil_moisture(region, rows):
    """Seed for a region's fold: first-day baseline moisture, else the fixed seed."""
    if "soil_moisture_pct" in rows.columns and len(rows) > 0:
        seed = rows["soil_moisture_pct"].iloc[0]
        if pd.notna(seed):
            return SoilMoistureState(region.id, float(seed))
    return SoilMoistureState(region.id, SOIL_MOISTURE_SEED_PCT)


def simulate_region(region, rows, scenario):
    """Fold the agriculture kernel over one region's baseline rows.

    Args:
        region: Region being simulated
        rows: Baseline rows for the region, sorted by date (and crop)
        scenario: AgricultureScenario

    Returns:
        AgricultureDailyResult list, date-major then crop in scenario order

    Raises:
        ComputationError: On malformed baseline values or a day missing a crop
    """
    crop_order = scenario.crop_types
    soil = initial_soil_moisture(region, rows)
    results = []

    for current_date, day_rows in rows.groupby("date", sort=True):
        first = next(day_rows.itertuples(index=False))
        rainfall, temperature = adjusted_climate(
            baseline_value(first, "rainfall_mm", region.id, current_date),
            baseline_value(first, "temperature_c", region.id, current_date, allow_negative=True),
            scenario,
        )
        moisture = soil.advance(rainfall)

        by_crop = {row.crop_type: row for row in day_rows.itertuples(index=False)}
        for crop_type in crop_order:
            if crop_type not in by_crop:
                raise ComputationError("Missing crop baseline", region.id, current_date, crop_type)
            baseline = baseline_value(
                by_crop[crop_type], "baseline_yield_kg", region.id, current_date, crop_type
            )
            actual = project_yield(
                crop_type,
                region.altitude_band,
                baseline,
                rainfall,
                temperature,
                moisture,
                scenario.irrigation_improvement_pct,
            )
            results.append(AgricultureDailyResult(
                date=current_date,
                region_id=region.id,
                region_name=region.name,
                crop_type=crop_type,
                rainfall_mm=rainfall,
                temperature_c=temperature,
                soil_moisture_pct=moisture,
                baseline_yield_kg=baseline,
                actual_yield_kg=actual,
                yield_change_pct=percent_change(actual, baseline),
                stress=stress_ratio(baseline - actual, baseline),
            ))

    logger.debug("Region %s: %d crop-days, final soil moisture %.1f%%", region.id, len(results), soil.moisture_pct)
    return results
