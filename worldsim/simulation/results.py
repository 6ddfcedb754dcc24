# Results output for WorldSim
# Layer 3: Simulation Engine
#
# Writes a completed run to disk. Output structure:
#   /results/<scenario_name>_YYYYMMDD_HHMMSS/
#     daily_results.csv
#     summary.json
#     summary.csv
#     simulation_config.json
#
# Writing is separate from computing: a failed write is logged and never
# changes the SimulationResult already returned to the caller.

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)


def create_output_directory(base_path="results", scenario_name="scenario"):
    """Create timestamped output directory.

    Args:
        base_path: Base results directory
        scenario_name: Name prefix for output folder

    Returns:
        Path to created directory
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = Path(base_path) / f"{scenario_name}_{timestamp}"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def write_daily_results(result, output_path):
    """Write daily records to CSV, one row per record in output order.

    Args:
        result: SimulationResult
        output_path: Path to output CSV file

    Returns:
        DataFrame that was written
    """
    df = result.daily_frame()
    df.to_csv(output_path, index=False)
    return df


def write_summary(result, output_path):
    """Write summary and economic analysis to JSON."""
    payload = {
        "domain": result.domain,
        "summary": result.summary.to_dict(),
        "economic_analysis": result.economic_analysis.to_dict(),
    }
    with open(output_path, "w") as f:
        json.dump(payload, f, indent=2)


def write_summary_csv(result, output_path):
    """Write scalar summary and economic values as a two-column metric/value CSV."""
    rows = []
    for section in (result.summary.to_dict(), result.economic_analysis.to_dict()):
        for metric, value in section.items():
            if isinstance(value, (int, float)) or value is None or isinstance(value, str):
                rows.append({"metric": metric, "value": value})
    for rank, entry in enumerate(result.summary.top_stressed_regions, start=1):
        rows.append({"metric": f"top_stressed_region_{rank}", "value": entry["region_id"]})

    df = pd.DataFrame(rows, columns=["metric", "value"])
    df.to_csv(output_path, index=False)
    return df


def write_simulation_config(result, output_path, metadata=None):
    """Write scenario configuration snapshot to JSON.

    Args:
        result: SimulationResult
        output_path: Path to output JSON file
        metadata: Optional ScenarioMetadata from the scenario file
    """
    config = {"parameters": result.scenario.to_dict()}
    if metadata is not None:
        config["scenario"] = {
            "name": metadata.name,
            "description": metadata.description,
            "domain": metadata.domain,
        }
    config["regions"] = sorted({r.region_id for r in result.daily_results})

    with open(output_path, "w") as f:
        json.dump(config, f, indent=2)


def write_results(result, output_dir=None, metadata=None):
    """Write all output files for a run.

    Args:
        result: SimulationResult
        output_dir: Directory to write into (timestamped directory under
            results/ if not provided)
        metadata: Optional ScenarioMetadata

    Returns:
        Path to output directory
    """
    if output_dir is None:
        name = metadata.name if metadata is not None else result.domain
        output_dir = create_output_directory(scenario_name=name)
    else:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

    write_daily_results(result, output_dir / "daily_results.csv")
    write_summary(result, output_dir / "summary.json")
    write_summary_csv(result, output_dir / "summary.csv")
    write_simulation_config(result, output_dir / "simulation_config.json", metadata)

    logger.info("Results written to %s", output_dir)
    return output_dir


def persist_results(result, output_dir=None, metadata=None):
    """Write results, logging rather than raising if the write fails.

    Returns:
        Path to output directory, or None if writing failed
    """
    try:
        return write_results(result, output_dir, metadata)
    except OSError as e:
        logger.error("Failed to save simulation results: %s", e)
        return None


def main(argv=None):
    """Run a scenario file and write results from the command line."""
    from worldsim.settings.loader import load_scenario
    from worldsim.simulation.data_loader import CsvBaselineProvider
    from worldsim.simulation.simulation import run_simulation

    parser = argparse.ArgumentParser(description="Run a WorldSim scenario and write results.")
    parser.add_argument("scenario", help="Path to scenario YAML file")
    parser.add_argument("--output-dir", default=None, help="Directory for output files")
    parser.add_argument(
        "--registry", default="settings/data_registry.yaml", help="Path to data registry YAML"
    )
    parser.add_argument("--verbose", action="store_true", help="Log progress at INFO level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"Loading scenario: {args.scenario}")
    config = load_scenario(args.scenario)

    provider = CsvBaselineProvider(args.registry)

    print("Running simulation...")
    result = run_simulation(config.parameters, provider)

    summary = result.summary
    print(f"  Records:        {len(result.daily_results)}")
    print(f"  Avg stress:     {summary.avg_stress:.3f}")
    print(f"  Max stress:     {summary.max_stress:.3f}")
    print(f"  Total loss:     {summary.total_loss:,.1f} ({summary.total_loss_pct:.2f}%)")
    print(f"  Investment:     ${result.economic_analysis.investment_required_usd:,.0f}")

    output_path = persist_results(result, args.output_dir, config.metadata)
    if output_path is None:
        print("Warning: results could not be saved", file=sys.stderr)
        return 1

    print(f"\nDone! Results saved to: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
