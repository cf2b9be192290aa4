import importlib.util
import unittest
from pathlib import Path

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "run_scenario.py"


def load_script():
    spec = importlib.util.spec_from_file_location("run_scenario", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class RunScenarioTest(unittest.TestCase):
    def setUp(self):
        self.script = load_script()

    def config(self, **overrides):
        config = {
            "settings": {"number_of_lanes": 2, "number_of_floors": 6, "seed": 3, "warmup_s": 0.0},
            "duration_s": 30,
            "sample_interval_s": 10,
        }
        config.update(overrides)
        return config

    def test_samples_when_tick_does_not_divide_interval(self):
        config = self.config()
        config["settings"]["tick_ms"] = 30
        simulation = self.script.build_simulation(config)
        snapshots = self.script.run_simulation(simulation, config)
        self.assertEqual(len(snapshots), 3)
        for index, snapshot in enumerate(snapshots, start=1):
            self.assertGreaterEqual(snapshot["time_s"], 10 * index)
            self.assertLess(snapshot["time_s"], 10 * index + 0.03)

    def test_scheduled_fault_fires_once(self):
        config = self.config(events=[{"type": "fault", "time_s": 5, "elevator_id": 1, "reason": "drill"}])
        simulation = self.script.build_simulation(config, algorithm="scan")
        self.script.run_simulation(simulation, config)
        reasons = [r.reason for r in simulation.building.elevators[1].breakdowns]
        self.assertEqual(reasons.count("drill"), 1)
        self.assertEqual(simulation.manager.current_id, "scan")

    def test_unknown_algorithm_is_rejected(self):
        with self.assertRaises(ValueError):
            self.script.build_simulation(self.config(), algorithm="missing")


if __name__ == "__main__":
    unittest.main()
