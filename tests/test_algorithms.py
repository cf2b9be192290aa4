import unittest

from dispatch import (
    ALGORITHM_REGISTRY,
    DefaultElevatorAlgorithm,
    LoadBalancingAlgorithm,
    NearestElevatorAlgorithm,
    ScanAlgorithm,
    UtilizationTargetAlgorithm,
    WaitTimeWeightedAlgorithm,
    get_algorithm,
    list_algorithms,
)
from dispatch.interface import (
    IDLE,
    MOVING_UP,
    REPAIR,
    BuildingData,
    ElevatorData,
    ElevatorFloorStats,
    FloorStats,
    PersonData,
)
from dispatch.utils import distance_to_floor, find_closest_floor, pickup_wait, scan_next_floor


def elevator(elevator_id=0, floor=0, **overrides) -> ElevatorData:
    values = dict(
        id=elevator_id,
        current_floor=floor,
        target_floor=None,
        state=IDLE,
        direction=0,
        passengers=0,
        capacity=8,
        floors_to_visit=(),
        passenger_destinations=(),
        is_in_repair=False,
        last_direction=0,
    )
    values.update(overrides)
    return ElevatorData(**values)


def building(elevators, total_floors=10, floor_stats=()) -> BuildingData:
    return BuildingData(
        total_floors=total_floors,
        total_elevators=len(elevators),
        elevators=tuple(elevators),
        floor_stats=tuple(floor_stats),
    )


def waiting(floor, count, max_wait, per_elevator=()) -> FloorStats:
    return FloorStats(
        floor=floor,
        waiting_count=count,
        max_wait_time=max_wait,
        avg_wait_time=max_wait,
        per_elevator=tuple(per_elevator),
    )


PERSON = PersonData(start_floor=0, destination_floor=5, wait_time=0.0)


class RegistryTest(unittest.TestCase):
    def test_all_strategies_registered(self):
        self.assertEqual(
            set(ALGORITHM_REGISTRY),
            {"default", "nearest", "load_balancing", "wait_time", "scan", "utilization"},
        )
        listing = list_algorithms()
        self.assertEqual(len(listing), len(ALGORITHM_REGISTRY))
        for entry in listing:
            self.assertTrue(entry["name"])
            self.assertTrue(entry["description"])

    def test_get_algorithm_is_case_insensitive(self):
        self.assertIsInstance(get_algorithm("SCAN"), ScanAlgorithm)

    def test_unknown_algorithm_raises(self):
        with self.assertRaises(ValueError):
            get_algorithm("teleport")

    def test_options_are_passed_through(self):
        algorithm = get_algorithm("utilization", target_utilization=0.5)
        self.assertEqual(algorithm.target_utilization, 0.5)


class ContractTest(unittest.TestCase):
    def test_full_elevator_is_never_chosen_while_another_has_room(self):
        snapshot = building(
            [
                elevator(0, floor=0, passengers=8, floors_to_visit=(6,), passenger_destinations=(6,)),
                elevator(1, floor=9),
            ]
        )
        for key in ALGORITHM_REGISTRY:
            with self.subTest(algorithm=key):
                self.assertEqual(get_algorithm(key).assign_elevator_to_person(PERSON, 0, snapshot), 1)

    def test_elevator_in_repair_is_never_chosen(self):
        snapshot = building(
            [
                elevator(0, floor=0, state=REPAIR, is_in_repair=True),
                elevator(1, floor=9),
            ]
        )
        for key in ALGORITHM_REGISTRY:
            with self.subTest(algorithm=key):
                self.assertEqual(get_algorithm(key).assign_elevator_to_person(PERSON, 0, snapshot), 1)

    def test_assignment_falls_back_when_every_elevator_is_full(self):
        snapshot = building(
            [
                elevator(0, passengers=8),
                elevator(1, passengers=5, capacity=5),
            ]
        )
        for key in ALGORITHM_REGISTRY:
            with self.subTest(algorithm=key):
                index = get_algorithm(key).assign_elevator_to_person(PERSON, 0, snapshot)
                self.assertIn(index, (0, 1))

    def test_idle_elevator_without_work_stays_put(self):
        car = elevator(0, floor=4)
        snapshot = building([car])
        for key in ALGORITHM_REGISTRY:
            with self.subTest(algorithm=key):
                self.assertEqual(get_algorithm(key).decide_next_floor(car, snapshot), 4)

    def test_decide_next_floor_is_idempotent(self):
        car = elevator(
            0,
            floor=3,
            passengers=2,
            floors_to_visit=(1, 6, 8),
            passenger_destinations=(6,),
            last_direction=-1,
        )
        snapshot = building([car, elevator(1, floor=7)], floor_stats=[waiting(1, 2, 12.0), waiting(8, 1, 25.0)])
        for key in ALGORITHM_REGISTRY:
            with self.subTest(algorithm=key):
                algorithm = get_algorithm(key)
                first = algorithm.decide_next_floor(car, snapshot)
                second = algorithm.decide_next_floor(car, snapshot)
                self.assertEqual(first, second)
                self.assertIn(first, (1, 6, 8))


class NearestTest(unittest.TestCase):
    def test_visits_floors_in_ascending_order(self):
        car = elevator(0, floor=2, floors_to_visit=(4, 1, 3))
        self.assertEqual(NearestElevatorAlgorithm().decide_next_floor(car, building([car])), 1)

    def test_assigns_closest_elevator(self):
        snapshot = building([elevator(0, floor=9), elevator(1, floor=2), elevator(2, floor=6)])
        algorithm = NearestElevatorAlgorithm()
        self.assertEqual(algorithm.assign_elevator_to_person(PERSON, 3, snapshot), 1)


class LoadBalancingTest(unittest.TestCase):
    def test_picks_least_occupied_elevator(self):
        snapshot = building(
            [
                elevator(0, floor=0, passengers=3),
                elevator(1, floor=9, passengers=1),
                elevator(2, floor=5, passengers=2),
            ]
        )
        self.assertEqual(LoadBalancingAlgorithm().assign_elevator_to_person(PERSON, 0, snapshot), 1)

    def test_drop_offs_come_before_pickups(self):
        car = elevator(0, floor=2, passengers=1, floors_to_visit=(1, 6), passenger_destinations=(6,))
        self.assertEqual(LoadBalancingAlgorithm().decide_next_floor(car, building([car])), 6)


class ScanTest(unittest.TestCase):
    def test_continues_upward_before_reversing(self):
        car = elevator(0, floor=3, state=MOVING_UP, direction=1, floors_to_visit=(1, 5))
        self.assertEqual(ScanAlgorithm().decide_next_floor(car, building([car], total_floors=6)), 5)

    def test_continues_sweep_after_stopping(self):
        car = elevator(0, floor=3, last_direction=1, floors_to_visit=(1, 5))
        self.assertEqual(ScanAlgorithm().decide_next_floor(car, building([car], total_floors=6)), 5)

    def test_reverses_when_nothing_ahead(self):
        car = elevator(0, floor=3, last_direction=1, floors_to_visit=(0, 1))
        self.assertEqual(ScanAlgorithm().decide_next_floor(car, building([car])), 1)

    def test_nearest_floor_without_heading(self):
        car = elevator(0, floor=3, floors_to_visit=(0, 5))
        self.assertEqual(ScanAlgorithm().decide_next_floor(car, building([car])), 5)

    def test_full_elevator_only_stops_for_drop_offs(self):
        car = elevator(
            0,
            floor=3,
            last_direction=1,
            passengers=8,
            floors_to_visit=(4, 1),
            passenger_destinations=(1,),
        )
        self.assertEqual(ScanAlgorithm().decide_next_floor(car, building([car])), 1)

    def test_prefers_elevator_heading_the_callers_way(self):
        snapshot = building(
            [
                elevator(0, floor=2, last_direction=-1),
                elevator(1, floor=4, last_direction=1),
            ]
        )
        self.assertEqual(ScanAlgorithm().assign_elevator_to_person(PERSON, 3, snapshot), 1)


class WaitTimeWeightedTest(unittest.TestCase):
    def test_long_wait_floor_wins(self):
        car = elevator(0, floor=2, floors_to_visit=(1, 4))
        snapshot = building([car], floor_stats=[waiting(1, 1, 40.0)])
        self.assertEqual(WaitTimeWeightedAlgorithm().decide_next_floor(car, snapshot), 1)

    def test_nearer_floor_wins_without_waiting_passengers(self):
        car = elevator(0, floor=3, floors_to_visit=(0, 5))
        self.assertEqual(WaitTimeWeightedAlgorithm().decide_next_floor(car, building([car])), 5)

    def test_equal_scores_go_to_lower_floor(self):
        car = elevator(0, floor=3, floors_to_visit=(1, 5))
        self.assertEqual(WaitTimeWeightedAlgorithm().decide_next_floor(car, building([car])), 1)

    def test_idle_same_direction_elevator_preferred(self):
        snapshot = building(
            [
                elevator(0, floor=5, state=MOVING_UP, direction=1, target_floor=9, passengers=6),
                elevator(1, floor=4),
            ]
        )
        self.assertEqual(WaitTimeWeightedAlgorithm().assign_elevator_to_person(PERSON, 3, snapshot), 1)


class UtilizationTargetTest(unittest.TestCase):
    def test_urgent_floor_first(self):
        car = elevator(0, floor=5, floors_to_visit=(4, 9))
        snapshot = building([car], floor_stats=[waiting(9, 1, 18.0), waiting(4, 1, 2.0)])
        self.assertEqual(UtilizationTargetAlgorithm().decide_next_floor(car, snapshot), 9)

    def test_nearly_full_elevator_sweeps_drop_offs(self):
        car = elevator(
            0,
            floor=5,
            last_direction=-1,
            passengers=8,
            capacity=8,
            floors_to_visit=(6, 2, 7),
            passenger_destinations=(2, 7),
        )
        self.assertEqual(UtilizationTargetAlgorithm().decide_next_floor(car, building([car])), 2)

    def test_prefers_elevator_near_target_occupancy(self):
        snapshot = building(
            [
                elevator(0, floor=3, passengers=6, capacity=8, floors_to_visit=(0,), passenger_destinations=(0,)),
                elevator(1, floor=3, passengers=1, capacity=8, floors_to_visit=(0,), passenger_destinations=(0,)),
            ]
        )
        algorithm = UtilizationTargetAlgorithm()
        self.assertEqual(algorithm.assign_elevator_to_person(PERSON, 3, snapshot), 0)


class DefaultAlgorithmTest(unittest.TestCase):
    def test_urgent_floor_takes_priority(self):
        car = elevator(0, floor=5, floors_to_visit=(4, 9))
        snapshot = building([car], floor_stats=[waiting(9, 2, 25.0), waiting(4, 1, 5.0)])
        self.assertEqual(DefaultElevatorAlgorithm().decide_next_floor(car, snapshot), 9)

    def test_full_elevator_skips_pickups(self):
        car = elevator(
            0,
            floor=5,
            passengers=8,
            floors_to_visit=(4, 8),
            passenger_destinations=(8,),
        )
        self.assertEqual(DefaultElevatorAlgorithm().decide_next_floor(car, building([car])), 8)

    def test_keeps_direction_of_travel_after_stopping(self):
        car = elevator(0, floor=5, state=IDLE, direction=0, last_direction=1, floors_to_visit=(4, 8, 9))
        self.assertEqual(DefaultElevatorAlgorithm().decide_next_floor(car, building([car])), 8)

    def test_reverses_when_nothing_left_ahead(self):
        car = elevator(0, floor=5, state=IDLE, direction=0, last_direction=1, floors_to_visit=(1, 3))
        self.assertEqual(DefaultElevatorAlgorithm().decide_next_floor(car, building([car])), 3)

    def test_prefers_drop_offs_without_direction(self):
        car = elevator(0, floor=5, passengers=1, floors_to_visit=(4, 7), passenger_destinations=(7,))
        self.assertEqual(DefaultElevatorAlgorithm().decide_next_floor(car, building([car])), 7)


class UtilsTest(unittest.TestCase):
    def test_find_closest_floor_prefers_lower_on_tie(self):
        self.assertEqual(find_closest_floor(3, [5, 1]), 1)
        self.assertEqual(find_closest_floor(3, []), 3)

    def test_distance_includes_detour_for_floors_behind(self):
        car = elevator(0, floor=4, state=MOVING_UP, direction=1, target_floor=8)
        self.assertEqual(distance_to_floor(car, 6), 2)
        self.assertEqual(distance_to_floor(car, 2), 10)

    def test_scan_next_floor_excludes_current(self):
        self.assertEqual(scan_next_floor(3, [3], 1), 3)
        self.assertEqual(scan_next_floor(3, [3, 2], 1), 2)

    def test_pickup_wait_prefers_per_elevator_figures(self):
        stats = waiting(
            2,
            3,
            30.0,
            per_elevator=[ElevatorFloorStats(elevator_id=1, waiting_count=1, max_wait_time=4.0, avg_wait_time=4.0)],
        )
        self.assertEqual(pickup_wait(elevator(1), stats), (1, 4.0))
        self.assertEqual(pickup_wait(elevator(0), stats), (3, 30.0))
        self.assertEqual(pickup_wait(elevator(0), None), (0, 0.0))


if __name__ == "__main__":
    unittest.main()
