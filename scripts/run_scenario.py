"""CLI for running offline elevator dispatch scenarios defined in JSON configs."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from dispatch.loader import load_algorithm
from simulation import Simulation, SimulationSettings


def build_simulation(config: Dict, algorithm: Optional[str] = None, plugins: Iterable[str] = ()) -> Simulation:
    settings = SimulationSettings.from_dict(config.get("settings", {}))
    simulation = Simulation(settings)

    plugin_refs = list(config.get("plugins", [])) + list(plugins)
    for reference in plugin_refs:
        plugin_id = reference.rpartition(":")[2]
        simulation.register_algorithm(plugin_id, load_algorithm(reference))

    name = algorithm or config.get("algorithm", "default")
    if not simulation.switch_algorithm(name):
        available = ", ".join(a["id"] for a in simulation.available_algorithms())
        raise ValueError(f"Unknown algorithm '{name}'. Available: {available}")
    return simulation


def _apply_scheduled_events(simulation: Simulation, events: List[Dict], fired: Set[int]) -> None:
    for index, event in enumerate(events):
        if index in fired or event.get("type") != "fault":
            continue
        elevator_id = event.get("elevator_id")
        if elevator_id is None:
            continue
        if simulation.current_time >= int(event.get("time_s", 0) * 1000):
            fired.add(index)
            simulation.trigger_elevator_fault(elevator_id, event.get("reason"))


def run_simulation(simulation: Simulation, config: Dict) -> List[Dict]:
    duration_ms = int(config.get("duration_s", 120) * 1000)
    sample_ms = int(config.get("sample_interval_s", 10) * 1000)
    events = config.get("events", [])
    fired: Set[int] = set()
    snapshots: List[Dict] = []
    next_sample_ms = sample_ms

    while simulation.current_time < duration_ms:
        _apply_scheduled_events(simulation, events, fired)
        simulation.step()
        if sample_ms and simulation.current_time >= next_sample_ms:
            stats = simulation.get_statistics(force=True).to_dict()
            stats["time_s"] = simulation.clock.seconds
            snapshots.append(stats)
            next_sample_ms += sample_ms
    return snapshots


def save_results(output_path: Optional[Path], data: Dict) -> None:
    if not output_path:
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="Path to a JSON scenario configuration file")
    parser.add_argument("--algorithm", help="Algorithm id overriding the one in the config")
    parser.add_argument(
        "--plugin",
        action="append",
        default=[],
        help="Extra algorithm to register, as 'module:Class' or 'file.py:Class'",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional file path to write the run result and statistics as JSON",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    config = json.loads(args.config.read_text())
    simulation = build_simulation(config, args.algorithm, args.plugin)
    snapshots = run_simulation(simulation, config)

    run_result = simulation.run_result()
    breakdowns = [
        {"elevator_id": report.elevator_id, "time_s": report.time_ms / 1000, "reason": report.reason}
        for elevator in simulation.building.elevators
        for report in elevator.breakdowns
    ]
    results = {
        "scenario": config.get("name", args.config.stem),
        "description": config.get("description"),
        "duration_s": config.get("duration_s", 120),
        "result": run_result,
        "breakdowns": breakdowns,
        "statistics_over_time": snapshots,
    }

    save_results(args.output, results)

    print(f"Scenario: {results['scenario']}")
    if results["description"]:
        print(results["description"])
    print(f"Algorithm: {run_result['algorithm_name']} ({run_result['algorithm_id']})")
    print(f"Duration: {results['duration_s']} s")
    print("Final statistics:")
    for key, value in run_result["statistics"].items():
        print(f"  {key}: {value}")
    if breakdowns:
        print(f"Breakdowns: {len(breakdowns)}")
    if args.output:
        print(f"Saved results to {args.output}")


if __name__ == "__main__":
    main()
