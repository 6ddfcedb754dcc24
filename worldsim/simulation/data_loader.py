# Baseline data loader for WorldSim
# Layer 3: Simulation Engine
#
# Loads region reference data and baseline daily time series (climate,
# energy, water, crop yields) and serves them to the engine as a
# BaselineSnapshot keyed by (region_id, date[, crop_type]).
# Data is loaded once per provider and sliced per run.

import asyncio
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

import pandas as pd
import yaml

from worldsim.exceptions import DataUnavailableError
from worldsim.simulation.state import BaselineSnapshot, Region

logger = logging.getLogger(__name__)

ALTITUDE_BANDS = ("high", "medium", "low")
CLIMATE_COLUMNS = ["rainfall_mm", "temperature_c", "soil_moisture_pct"]

# Row key and required measurement columns per domain
KEY_COLUMNS = {
    "energy": ["region_id", "date"],
    "water": ["region_id", "date"],
    "agriculture": ["region_id", "date", "crop_type"],
}
VALUE_COLUMNS = {
    "energy": ["energy_demand_kwh", "solar_capacity_factor"],
    "water": ["water_demand_m3", "water_supply_m3"],
    "agriculture": ["baseline_yield_kg", "rainfall_mm", "temperature_c"],
}


def load_data_registry(registry_path="settings/data_registry.yaml"):
    """Load data registry YAML and return as dict."""
    with open(registry_path, "r") as f:
        return yaml.safe_load(f)


def _skip_metadata_rows(filepath):
    """Count number of comment rows at start of CSV file."""
    filepath = Path(filepath)
    with open(filepath, "r") as f:
        skip = 0
        for line in f:
            if line.startswith("#"):
                skip += 1
            else:
                break
        return skip


def _resolve(filepath, project_root=None):
    filepath = Path(filepath)
    if project_root and not filepath.is_absolute():
        filepath = Path(project_root) / filepath
    return filepath


def load_regions(path):
    """Load region reference data from YAML.

    Args:
        path: Path to regions YAML with a top-level 'regions' list

    Returns:
        List of Region, sorted by id

    Raises:
        FileNotFoundError: If the file doesn't exist
        KeyError: If a region lacks id, name or altitude_band
        ValueError: If an altitude band is unknown or ids repeat
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Regions file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    regions = []
    for entry in data["regions"]:
        for key in ("id", "name", "altitude_band"):
            if key not in entry:
                raise KeyError(f"Missing required key '{key}' in regions entry {entry}")
        if entry["altitude_band"] not in ALTITUDE_BANDS:
            raise ValueError(
                f"Region {entry['id']}: altitude_band must be one of {ALTITUDE_BANDS}, "
                f"got '{entry['altitude_band']}'"
            )
        grid_capacity = entry.get("grid_capacity_kwh")
        regions.append(Region(
            id=str(entry["id"]),
            name=entry["name"],
            localized_name=entry.get("localized_name", entry["name"]),
            altitude_band=entry["altitude_band"],
            population=int(entry.get("population", 0)),
            solar_capacity_kw=float(entry.get("solar_capacity_kw", 0.0)),
            grid_capacity_kwh=None if grid_capacity is None else float(grid_capacity),
        ))

    ids = [r.id for r in regions]
    if len(set(ids)) != len(ids):
        raise ValueError(f"Duplicate region ids in {path}")
    return sorted(regions, key=lambda r: r.id)


def load_baseline_csv(filepath, project_root=None):
    """Load a baseline CSV (with optional '#' metadata header rows).

    Returns:
        DataFrame with 'date' parsed to datetime.date and 'region_id' as str
    """
    filepath = _resolve(filepath, project_root)
    skip_rows = _skip_metadata_rows(filepath)
    df = pd.read_csv(filepath, skiprows=skip_rows)
    return normalize_baseline_frame(df)


def normalize_baseline_frame(df):
    """Coerce key columns so frames from CSV and from memory compare equal."""
    df = df.copy()
    df["date"] = pd.to_datetime(df["date"]).dt.date
    df["region_id"] = df["region_id"].astype(str)
    if "crop_type" in df.columns:
        df["crop_type"] = df["crop_type"].astype(str)
    return df


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

@runtime_checkable
class BaselineProvider(Protocol):
    """Source of baseline data for a run.

    fetch() is the only awaited operation in a run; everything after it is
    synchronous computation on the returned snapshot.
    """

    async def fetch(self, domain, start_date, end_date, region_ids=None, crop_types=None):
        ...


class FrameBaselineProvider:
    """Serves baseline snapshots from in-memory DataFrames.

    Args:
        regions: List of Region
        frames: Dict keyed by "climate", "energy", "water", "agriculture"; any
            may be omitted. Climate columns are joined onto every domain.
    """

    def __init__(self, regions, frames):
        self.regions = sorted(regions, key=lambda r: r.id)
        self.frames = {name: normalize_baseline_frame(df) for name, df in frames.items()}

    def _select_regions(self, region_ids):
        if region_ids is None:
            return list(self.regions)
        known = {r.id: r for r in self.regions}
        missing = [rid for rid in region_ids if rid not in known]
        if missing:
            raise DataUnavailableError(f"No baseline data for region(s): {', '.join(missing)}")
        return [known[rid] for rid in sorted(set(region_ids))]

    def load_snapshot(self, domain, start_date, end_date, region_ids=None, crop_types=None):
        """Slice the baseline tables for one run.

        Args:
            domain: "energy", "water" or "agriculture"
            start_date: First day (inclusive)
            end_date: Last day (inclusive)
            region_ids: Optional subset of region ids
            crop_types: Crops to include (agriculture only)

        Returns:
            BaselineSnapshot with one row per key in the window

        Raises:
            DataUnavailableError: If no regions, the domain table, or required
                columns are missing, or a row has no matching climate day
        """
        if domain not in KEY_COLUMNS:
            raise DataUnavailableError(f"No baseline table for domain '{domain}'")

        regions = self._select_regions(region_ids)
        if not regions:
            raise DataUnavailableError("No regions found")

        if domain not in self.frames:
            raise DataUnavailableError(f"No {domain} baseline data loaded")

        wanted = {r.id for r in regions}
        df = self.frames[domain]
        df = df[(df["date"] >= start_date) & (df["date"] <= end_date) & df["region_id"].isin(wanted)]

        crop_types = tuple(crop_types or ())
        if domain == "agriculture":
            df = df[df["crop_type"].isin(crop_types)]

        climate = self.frames.get("climate")
        if climate is not None:
            own = [c for c in CLIMATE_COLUMNS if c in df.columns]
            join = [c for c in CLIMATE_COLUMNS if c in climate.columns and c not in own]
            if join:
                df = df.merge(
                    climate[["region_id", "date"] + join],
                    on=["region_id", "date"], how="left", indicator=True,
                )
                unmatched = df[df["_merge"] == "left_only"]
                df = df.drop(columns="_merge")
                if len(unmatched) and any(c in VALUE_COLUMNS[domain] for c in join):
                    first = unmatched.sort_values(KEY_COLUMNS[domain]).iloc[0]
                    raise DataUnavailableError(
                        f"Insufficient climate data: no row for region {first['region_id']} "
                        f"on {first['date']}"
                    )

        missing_columns = [c for c in KEY_COLUMNS[domain] + VALUE_COLUMNS[domain] if c not in df.columns]
        if missing_columns:
            raise DataUnavailableError(
                f"{domain} baseline is missing column(s): {', '.join(missing_columns)}"
            )

        df = df.sort_values(KEY_COLUMNS[domain]).reset_index(drop=True)
        logger.debug("Baseline snapshot for %s: %d rows, %d regions", domain, len(df), len(regions))

        return BaselineSnapshot(
            domain=domain,
            start_date=start_date,
            end_date=end_date,
            regions=regions,
            frame=df,
            crop_types=crop_types if domain == "agriculture" else (),
        )

    async def fetch(self, domain, start_date, end_date, region_ids=None, crop_types=None):
        """Asynchronous form of load_snapshot; runs the slicing off the event loop."""
        return await asyncio.to_thread(
            self.load_snapshot, domain, start_date, end_date, region_ids, crop_types
        )


class CsvBaselineProvider(FrameBaselineProvider):
    """Loads baseline CSVs and regions listed in the data registry.

    Args:
        registry_path: Path to data_registry.yaml
        project_root: Root for resolving relative paths in the registry
            (defaults to the registry's grandparent, i.e. the repo root)
    """

    def __init__(self, registry_path="settings/data_registry.yaml", project_root=None):
        registry_path = Path(registry_path)
        if project_root is None:
            project_root = registry_path.resolve().parent.parent
        registry = load_data_registry(registry_path)

        regions = load_regions(_resolve(registry["regions"], project_root))
        frames = {}
        for name, filepath in registry.get("baseline", {}).items():
            frames[name] = load_baseline_csv(filepath, project_root)
            logger.info("Loaded %s baseline: %d rows from %s", name, len(frames[name]), filepath)

        super().__init__(regions, frames)
        self.registry = registry
        self.project_root = Path(project_root)
