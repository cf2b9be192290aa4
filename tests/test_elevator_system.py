import math
import unittest

from dispatch.manager import AlgorithmManager
from simulation.elevator import Elevator, ElevatorState
from simulation.elevator_system import ElevatorSystem
from simulation.passenger import Passenger


class ScriptedAlgorithm:
    name = "Scripted"
    description = "Returns whatever the test tells it to."

    def __init__(self, assignment=0, floor=0, error=None):
        self.assignment = assignment
        self.floor = floor
        self.error = error
        self.seen = []

    def assign_elevator_to_person(self, person, start_floor, building):
        self.seen.append(building)
        if self.error:
            raise self.error
        return self.assignment

    def decide_next_floor(self, elevator, building):
        self.seen.append(elevator)
        if self.error:
            raise self.error
        return self.floor


class LifecycleAlgorithm(ScriptedAlgorithm):
    def __init__(self):
        super().__init__()
        self.events = []

    def initialize(self, building):
        self.events.append(("initialize", building.total_elevators))

    def cleanup(self):
        self.events.append(("cleanup", None))


def make_system(algorithm, lanes=3, floors=6):
    manager = AlgorithmManager()
    manager.register("scripted", algorithm)
    manager.set_current("scripted")
    elevators = [Elevator(elevator_id=i, total_floors=floors, capacity=4, speed=5) for i in range(lanes)]
    return ElevatorSystem(elevators, floors, manager)


def passenger():
    return Passenger(passenger_id=1, origin=2, destination=4, wait_started_at=0, give_up_threshold=60.0)


class ElevatorSystemTest(unittest.TestCase):
    def test_valid_assignment_is_returned(self):
        system = make_system(ScriptedAlgorithm(assignment=2))
        self.assertEqual(system.assign_elevator_to_person(passenger(), 2), 2)

    def test_invalid_assignments_fall_back_to_first_elevator(self):
        for answer in (3, -1, 1.5, math.nan, "1", None, True):
            with self.subTest(answer=answer):
                system = make_system(ScriptedAlgorithm(assignment=answer))
                with self.assertLogs("simulation.elevator_system", level="WARNING"):
                    self.assertEqual(system.assign_elevator_to_person(passenger(), 2), 0)

    def test_integral_float_is_accepted(self):
        system = make_system(ScriptedAlgorithm(assignment=1.0, floor=4.0))
        self.assertEqual(system.assign_elevator_to_person(passenger(), 2), 1)
        self.assertEqual(system.decide_next_floor(system.elevators[0]), 4)

    def test_invalid_floor_falls_back_to_current_floor(self):
        for answer in (6, -2, math.inf, "3"):
            with self.subTest(answer=answer):
                system = make_system(ScriptedAlgorithm(floor=answer))
                car = system.elevators[1]
                with self.assertLogs("simulation.elevator_system", level="WARNING"):
                    self.assertEqual(system.decide_next_floor(car), car.current_floor)

    def test_algorithm_exceptions_are_contained(self):
        system = make_system(ScriptedAlgorithm(error=RuntimeError("boom")))
        with self.assertLogs("simulation.elevator_system", level="ERROR"):
            self.assertEqual(system.assign_elevator_to_person(passenger(), 2), 0)
        with self.assertLogs("simulation.elevator_system", level="ERROR"):
            self.assertEqual(system.decide_next_floor(system.elevators[0]), 0)

    def test_snapshots_are_copies(self):
        algorithm = ScriptedAlgorithm(floor=3)
        system = make_system(algorithm)
        car = system.elevators[0]
        car.add_floor_to_visit(3)
        car.add_floor_to_visit(5)
        system.decide_next_floor(car)
        snapshot = algorithm.seen[-1]
        self.assertEqual(snapshot.floors_to_visit, (3, 5))
        self.assertIsInstance(snapshot.floors_to_visit, tuple)
        car.add_floor_to_visit(1)
        self.assertEqual(snapshot.floors_to_visit, (3, 5))
        with self.assertRaises(AttributeError):
            snapshot.current_floor = 2

    def test_building_snapshot_lists_every_elevator(self):
        algorithm = ScriptedAlgorithm()
        system = make_system(algorithm, lanes=4)
        system.elevators[2].enter_repair("test", 0, force=True)
        system.assign_elevator_to_person(passenger(), 2)
        building = algorithm.seen[-1]
        self.assertEqual(building.total_elevators, 4)
        self.assertEqual([e.id for e in building.elevators], [0, 1, 2, 3])
        self.assertTrue(building.elevators[2].is_in_repair)
        self.assertEqual(building.elevators[2].state, "repair")

    def test_hot_swap_takes_effect_on_next_decision(self):
        system = make_system(ScriptedAlgorithm(assignment=1))
        system.manager.register("other", ScriptedAlgorithm(assignment=2))
        self.assertEqual(system.assign_elevator_to_person(passenger(), 2), 1)
        self.assertTrue(system.set_algorithm("other"))
        self.assertEqual(system.assign_elevator_to_person(passenger(), 2), 2)

    def test_switching_runs_lifecycle_hooks(self):
        outgoing = LifecycleAlgorithm()
        system = make_system(outgoing)
        incoming = LifecycleAlgorithm()
        system.manager.register("incoming", incoming)
        self.assertTrue(system.set_algorithm("incoming"))
        self.assertEqual(outgoing.events, [("cleanup", None)])
        self.assertEqual(incoming.events, [("initialize", 3)])

    def test_unknown_algorithm_is_rejected(self):
        system = make_system(ScriptedAlgorithm())
        self.assertFalse(system.set_algorithm("missing"))
        self.assertEqual(system.manager.current_id, "scripted")


class DefaultRoutingTest(unittest.TestCase):
    def run_until_idle(self, car, system, now):
        for _ in range(2000):
            now += 20
            car.update(now, system.decide_next_floor)
            if car.state is ElevatorState.IDLE and not car.floors_to_visit:
                return now
        self.fail("elevator never settled")

    def test_default_keeps_going_up_after_a_stop(self):
        car = Elevator(elevator_id=0, total_floors=10, capacity=4, speed=5)
        system = ElevatorSystem([car], 10, AlgorithmManager())
        car.add_floor_to_visit(5)
        now = self.run_until_idle(car, system, 0)
        self.assertEqual(car.current_floor, 5)
        self.assertEqual(car.last_direction, 1)

        car.add_floor_to_visit(4)
        car.add_floor_to_visit(8)
        car.update(now + 20, system.decide_next_floor)
        self.assertEqual(car.target_floor, 8)
        self.assertIs(car.state, ElevatorState.MOVING_UP)


class AlgorithmManagerTest(unittest.TestCase):
    def test_default_algorithm_is_active(self):
        manager = AlgorithmManager()
        self.assertEqual(manager.current_id, "default")
        self.assertEqual(len(manager.algorithms()), 6)

    def test_register_rejects_objects_without_contract(self):
        with self.assertRaises(TypeError):
            AlgorithmManager().register("broken", object())

    def test_replacing_active_algorithm_runs_both_hooks(self):
        system = make_system(LifecycleAlgorithm())
        outgoing = system.manager.current
        replacement = LifecycleAlgorithm()
        system.manager.register("scripted", replacement, system.building_data())
        self.assertEqual(outgoing.events, [("cleanup", None)])
        self.assertEqual(replacement.events, [("initialize", 3)])
        self.assertIs(system.manager.current, replacement)

    def test_registering_inactive_algorithm_runs_no_hooks(self):
        system = make_system(LifecycleAlgorithm())
        other = LifecycleAlgorithm()
        system.manager.register("other", other, system.building_data())
        self.assertEqual(system.manager.current.events, [])
        self.assertEqual(other.events, [])


if __name__ == "__main__":
    unittest.main()
