# Scenario loader for WorldSim
# Layer 2: Bridges YAML configuration to simulation runtime
#
# Defines the per-domain scenario parameter sets, validates them against the
# declared ranges, and loads them from scenario YAML files.

import math
from dataclasses import asdict, dataclass, fields
from datetime import date
from pathlib import Path
from typing import ClassVar, Optional

import yaml

from worldsim.constants import CROP_TYPES, MAX_SCENARIO_DAYS
from worldsim.exceptions import InvalidScenarioError


DOMAINS = ("energy", "water", "agriculture")
CROP_FILTERS = ("all",) + CROP_TYPES

# Inclusive (min, max) bounds for every numeric parameter, per domain
PARAMETER_RANGES = {
    "energy": {
        "solar_growth_pct": (-100.0, 200.0),
        "demand_growth_pct": (-100.0, 200.0),
        "rainfall_change_pct": (-100.0, 200.0),
    },
    "water": {
        "water_demand_growth_pct": (-50.0, 200.0),
        "conservation_rate_pct": (0.0, 100.0),
        "rainfall_change_pct": (-100.0, 200.0),
    },
    "agriculture": {
        "rainfall_change_pct": (-100.0, 200.0),
        "temperature_change_c": (-5.0, 10.0),
        "irrigation_improvement_pct": (0.0, 100.0),
    },
}


class _ScenarioBase:
    """Shared behaviour for the domain scenario dataclasses."""

    domain: ClassVar[str] = ""

    @property
    def num_days(self):
        return (self.end_date - self.start_date).days + 1

    def numeric_parameters(self):
        """Names of the numeric parameters this scenario type accepts."""
        return list(PARAMETER_RANGES[self.domain])

    def to_dict(self):
        data = asdict(self)
        data["start_date"] = self.start_date.isoformat()
        data["end_date"] = self.end_date.isoformat()
        data["domain"] = self.domain
        return data


@dataclass
class EnergyScenario(_ScenarioBase):
    """Solar expansion and demand growth scenario.

    Growth rates are annual percentages applied linearly over elapsed time.
    """
    domain: ClassVar[str] = "energy"

    start_date: date
    end_date: date
    solar_growth_pct: float = 0.0
    demand_growth_pct: float = 0.0
    rainfall_change_pct: float = 0.0
    region_ids: Optional[list] = None


@dataclass
class WaterScenario(_ScenarioBase):
    """Water demand growth with conservation and rainfall change."""
    domain: ClassVar[str] = "water"

    start_date: date
    end_date: date
    water_demand_growth_pct: float = 0.0
    conservation_rate_pct: float = 0.0
    rainfall_change_pct: float = 0.0
    region_ids: Optional[list] = None


@dataclass
class AgricultureScenario(_ScenarioBase):
    """Climate shift and irrigation investment scenario for crop yields.

    crop_type is "all" or one of CROP_TYPES.
    """
    domain: ClassVar[str] = "agriculture"

    start_date: date
    end_date: date
    rainfall_change_pct: float = 0.0
    temperature_change_c: float = 0.0
    irrigation_improvement_pct: float = 0.0
    crop_type: str = "all"
    region_ids: Optional[list] = None

    @property
    def crop_types(self):
        """Crops simulated for this scenario, in output order."""
        if self.crop_type == "all":
            return CROP_TYPES
        if self.crop_type not in CROP_TYPES:
            raise InvalidScenarioError(
                f"Unknown crop_type '{self.crop_type}'. Available: {', '.join(CROP_FILTERS)}"
            )
        return (self.crop_type,)


SCENARIO_CLASSES = {
    "energy": EnergyScenario,
    "water": WaterScenario,
    "agriculture": AgricultureScenario,
}


@dataclass
class ScenarioMetadata:
    """Scenario identification."""
    name: str
    description: str
    domain: str


@dataclass
class ScenarioConfig:
    """A scenario file: identification plus the parameter set to run."""
    metadata: ScenarioMetadata
    parameters: object


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def check_date_range(start_date, end_date):
    """Return error messages for an invalid simulation window."""
    if start_date > end_date:
        return [f"start_date ({start_date}) must not be after end_date ({end_date})"]
    if (end_date - start_date).days + 1 > MAX_SCENARIO_DAYS:
        return ["Date range cannot exceed 5 years"]
    return []


def validate_scenario(scenario):
    """Check a scenario against the declared parameter ranges.

    Collects every violation before raising so callers can report them all.

    Args:
        scenario: EnergyScenario, WaterScenario or AgricultureScenario

    Returns:
        The scenario, unchanged, when valid

    Raises:
        InvalidScenarioError: If any rule is violated
    """
    if scenario.domain not in PARAMETER_RANGES:
        raise InvalidScenarioError(f"Unknown domain '{scenario.domain}'")

    errors = check_date_range(scenario.start_date, scenario.end_date)

    for name, (low, high) in PARAMETER_RANGES[scenario.domain].items():
        value = getattr(scenario, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            errors.append(f"{name} must be a finite number, got {value!r}")
        elif not low <= value <= high:
            errors.append(f"{name} must be between {low:g} and {high:g}, got {value:g}")

    if scenario.domain == "agriculture" and scenario.crop_type not in CROP_FILTERS:
        errors.append(
            f"crop_type must be one of {', '.join(CROP_FILTERS)}, got '{scenario.crop_type}'"
        )

    if scenario.region_ids is not None and len(scenario.region_ids) == 0:
        errors.append("region_ids must not be empty when given")

    if errors:
        raise InvalidScenarioError(errors)
    return scenario


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def _parse_date(value):
    """Parse date string in YYYY-MM-DD format (YAML may already give a date)."""
    if isinstance(value, date):
        return value
    parts = str(value).split("-")
    if len(parts) != 3:
        raise InvalidScenarioError(f"Invalid date format: {value}. Expected YYYY-MM-DD")
    try:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError as e:
        raise InvalidScenarioError(f"Invalid date: {value} ({e})") from e


def _require(data, key, context=""):
    """Get required key from dict, raise if missing."""
    if key not in data:
        ctx = f" in {context}" if context else ""
        raise KeyError(f"Missing required key '{key}'{ctx}")
    return data[key]


def build_scenario(domain, start_date, end_date, parameters=None):
    """Create and validate a scenario from plain values.

    Args:
        domain: "energy", "water" or "agriculture"
        start_date: date or YYYY-MM-DD string
        end_date: date or YYYY-MM-DD string
        parameters: Dict of domain parameters; omitted ones default to no change

    Returns:
        Validated scenario dataclass for the domain

    Raises:
        InvalidScenarioError: On unknown domain, unknown parameters or bad values
    """
    if domain not in SCENARIO_CLASSES:
        raise InvalidScenarioError(
            f"Unknown domain '{domain}'. Available: {', '.join(DOMAINS)}"
        )
    scenario_class = SCENARIO_CLASSES[domain]
    parameters = dict(parameters or {})

    allowed = {f.name for f in fields(scenario_class)} - {"start_date", "end_date"}
    unknown = sorted(set(parameters) - allowed)
    if unknown:
        raise InvalidScenarioError(
            f"Unknown {domain} parameter(s): {', '.join(unknown)}. Available: {', '.join(sorted(allowed))}"
        )

    errors = []
    for name in PARAMETER_RANGES[domain]:
        if name not in parameters:
            continue
        try:
            parameters[name] = float(parameters[name])
        except (TypeError, ValueError):
            errors.append(f"{name} must be a number, got {parameters[name]!r}")
    if errors:
        raise InvalidScenarioError(errors)

    if parameters.get("region_ids") is not None:
        parameters["region_ids"] = [str(r) for r in parameters["region_ids"]]

    scenario = scenario_class(
        start_date=_parse_date(start_date),
        end_date=_parse_date(end_date),
        **parameters,
    )
    return validate_scenario(scenario)


def load_scenario(path):
    """Load scenario from YAML file.

    Args:
        path: Path to scenario YAML file (string or Path object)

    Returns:
        ScenarioConfig with metadata and a validated parameter set

    Raises:
        FileNotFoundError: If scenario file doesn't exist
        KeyError: If required configuration is missing
        InvalidScenarioError: If parameter values are invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    scenario_data = _require(data, "scenario", "root")
    simulation_data = _require(data, "simulation", "root")
    parameters = data.get("parameters") or {}

    metadata = ScenarioMetadata(
        name=_require(scenario_data, "name", "scenario"),
        description=scenario_data.get("description", ""),
        domain=_require(scenario_data, "domain", "scenario"),
    )

    scenario = build_scenario(
        metadata.domain,
        _require(simulation_data, "start_date", "simulation"),
        _require(simulation_data, "end_date", "simulation"),
        parameters,
    )
    return ScenarioConfig(metadata=metadata, parameters=scenario)
