# Exception types for WorldSim
#
# Input errors, missing baseline data and kernel failures are kept distinct
# so callers can map them to their own responses (e.g. 400 vs 503 vs 500).


class SimulationError(Exception):
    """Base class for all errors raised by the simulation engine."""


class InvalidScenarioError(SimulationError, ValueError):
    """Scenario parameters failed validation.

    Args:
        errors: One message per violated rule. A single string is accepted.
    """

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("Invalid scenario: " + "; ".join(self.errors))


class DataUnavailableError(SimulationError):
    """Baseline data is missing or does not cover the requested range."""


class ComputationError(SimulationError):
    """A kernel step failed on malformed baseline data.

    Carries the region and date of the failing step so the offending row
    can be located in the baseline table.
    """

    def __init__(self, message, region_id=None, date=None, crop_type=None):
        self.region_id = region_id
        self.date = date
        self.crop_type = crop_type
        where = [f"region={region_id}", f"date={date}"]
        if crop_type is not None:
            where.append(f"crop={crop_type}")
        super().__init__(f"{message} ({', '.join(where)})")
