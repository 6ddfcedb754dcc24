"""Economic impact translation for WorldSim.

Turns a run summary into indicative investment and return figures. The
dollar figures are fixed per-region heuristics (see ECONOMIC_PARAMETERS in
worldsim/constants.py) and are approximations without calibration data;
they indicate scale, not a costed plan.

    investment = n_high_stress_regions × base_unit_cost
                 + max(0, avg_stress − 0.5) × scaling_factor
    loss_prevented = investment × loss_prevented_multiplier
    roi_pct = (loss_prevented − investment) / investment × 100

The run's valued loss (economic exposure) is treated as a yearly cost for
the savings, delay and inaction figures.

Usage:
    from worldsim.simulation.economics import compute_economic_analysis

    analysis = compute_economic_analysis(summary)
"""

from worldsim.constants import (
    AGRICULTURE_GDP_MULTIPLIER,
    CROP_PRICES_USD_PER_KG,
    DISCOUNT_RATE,
    ECONOMIC_HORIZON_YEARS,
    ECONOMIC_PARAMETERS,
    ENERGY_TARIFF_USD_PER_KWH,
    HIGH_STRESS_THRESHOLD,
    MONTHS_PER_YEAR,
    OPPORTUNITY_COST_DELAY_MONTHS,
    OPPORTUNITY_COST_MONTHLY_RATE,
    SYSTEM_STRESS_THRESHOLD,
    WATER_PRICE_USD_PER_M3,
)
from worldsim.simulation.state import EconomicAnalysis


def count_high_stress_regions(region_avg_stress, threshold=HIGH_STRESS_THRESHOLD):
    """Regions whose average stress is strictly above the threshold."""
    return sum(1 for stress in region_avg_stress.values() if stress > threshold)


def compute_investment_required(domain, avg_stress, high_stress_regions):
    params = ECONOMIC_PARAMETERS[domain]
    return (
        high_stress_regions * params["base_unit_cost_usd"]
        + max(0.0, avg_stress - SYSTEM_STRESS_THRESHOLD) * params["scaling_factor_usd"]
    )


def compute_roi_pct(loss_prevented, investment):
    """Return on investment as a percentage; 0.0 when nothing is invested."""
    if investment <= 0:
        return 0.0
    return (loss_prevented - investment) / investment * 100.0


def compute_payback_months(loss_prevented, investment, horizon_years=ECONOMIC_HORIZON_YEARS):
    """Months of evenly spread avoided losses needed to recover the investment.

    Returns 0.0 when nothing is invested.
    """
    if investment <= 0:
        return 0.0
    monthly_benefit = loss_prevented / horizon_years / MONTHS_PER_YEAR
    return investment / monthly_benefit


def compute_npv(annual_benefits, discount_rate, initial_capex=0.0):
    """Compute Net Present Value of cash flows.

    NPV = -Initial_CAPEX + Σ(benefit(t) / (1+r)^t) for t=1..N

    Args:
        annual_benefits: list of yearly benefit values [year1, year2, ...]
        discount_rate: annual discount rate (e.g., 0.05 for 5%)
        initial_capex: total initial capital expenditure (positive value)

    Returns:
        float: NPV in USD
    """
    npv = -initial_capex
    for t, benefit in enumerate(annual_benefits, start=1):
        npv += benefit / ((1 + discount_rate) ** t)
    return npv


def compute_economic_exposure(summary):
    """Value of the run's total loss at current prices.

    Energy deficit at the retail tariff, unmet water at the utility price,
    and lost crop output at farm-gate price scaled by the GDP multiplier.
    """
    if summary.domain == "energy":
        return summary.total_loss * ENERGY_TARIFF_USD_PER_KWH
    if summary.domain == "water":
        return summary.total_loss * WATER_PRICE_USD_PER_M3
    crop_losses = summary.details.get("crop_losses", {})
    direct = sum(loss * CROP_PRICES_USD_PER_KG.get(crop, 0.0) for crop, loss in crop_losses.items())
    return direct * AGRICULTURE_GDP_MULTIPLIER


def compute_opportunity_cost(monthly_loss, delay_months=OPPORTUNITY_COST_DELAY_MONTHS,
                             monthly_rate=OPPORTUNITY_COST_MONTHLY_RATE):
    """Losses accrued while action is postponed.

    Each month of delay costs monthly_loss grown by monthly_rate per month
    already elapsed:

        cost = Σ monthly_loss × (1 + rate)^(m − 1)  for m = 1..delay_months
    """
    return sum(monthly_loss * (1 + monthly_rate) ** (month - 1)
               for month in range(1, delay_months + 1))


def compute_cost_of_inaction(annual_loss, domain, horizon_years=ECONOMIC_HORIZON_YEARS):
    """Losses over the horizon if nothing is done, with domain escalation."""
    return annual_loss * horizon_years * ECONOMIC_PARAMETERS[domain]["inaction_escalation"]


def compute_economic_analysis(summary):
    """Translate a SimulationSummary into an EconomicAnalysis.

    Args:
        summary: SimulationSummary of a completed run

    Returns:
        EconomicAnalysis with all values in USD (payback in months)
    """
    params = ECONOMIC_PARAMETERS[summary.domain]

    high_stress_regions = count_high_stress_regions(summary.region_avg_stress)
    investment = compute_investment_required(summary.domain, summary.avg_stress, high_stress_regions)
    loss_prevented = investment * params["loss_prevented_multiplier"]

    annual_benefit = loss_prevented / ECONOMIC_HORIZON_YEARS
    npv = compute_npv([annual_benefit] * ECONOMIC_HORIZON_YEARS, DISCOUNT_RATE, investment)
    exposure = compute_economic_exposure(summary)

    return EconomicAnalysis(
        investment_required_usd=investment,
        loss_prevented_usd=loss_prevented,
        roi_pct=compute_roi_pct(loss_prevented, investment),
        payback_period_months=compute_payback_months(loss_prevented, investment),
        economic_exposure_usd=exposure,
        net_present_value_usd=npv,
        annual_savings_usd=exposure * params["annual_savings_share"],
        opportunity_cost_6mo_delay_usd=compute_opportunity_cost(exposure / MONTHS_PER_YEAR),
        cost_of_inaction_5_year_usd=compute_cost_of_inaction(exposure, summary.domain),
    )
