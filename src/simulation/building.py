from __future__ import annotations

import logging
import random
import time
from typing import Callable, Dict, List, Optional

from dispatch.interface import ElevatorFloorStats, FloorStats
from dispatch.manager import AlgorithmManager

from .config import SimulationSettings
from .elevator import Elevator, ElevatorState
from .elevator_system import ElevatorSystem
from .floor import Floor
from .metrics import MetricsTracker, SimulationStatistics
from .passenger import Passenger

logger = logging.getLogger(__name__)

StatsCallback = Callable[[SimulationStatistics], None]


class Building:
    """Floors, elevators and passenger queues for one simulation run.

    ``update`` advances everything by one tick. A new Building is built for
    every reset; nothing from an old one is reused.
    """

    STATS_THROTTLE_S = 1.0

    def __init__(
        self,
        settings: SimulationSettings,
        manager: AlgorithmManager,
        rng: Optional[random.Random] = None,
        wall_clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.rng = rng or random.Random(settings.seed)
        self.wall_clock = wall_clock
        self.floors: List[Floor] = [Floor(i) for i in range(settings.number_of_floors)]
        self.elevators: List[Elevator] = [
            Elevator(
                elevator_id=i,
                total_floors=settings.number_of_floors,
                capacity=settings.elevator_capacity,
                speed=settings.elevator_speed,
                floor_height=settings.floor_height,
                timings=settings.timings,
            )
            for i in range(settings.number_of_lanes)
        ]
        self.system = ElevatorSystem(self.elevators, settings.number_of_floors, manager)
        self.metrics = MetricsTracker()
        self.served: List[Passenger] = []
        self.give_up_count = 0
        self.scored_give_up_count = 0
        self.now_ms = 0
        self.warmup_ms = int(settings.warmup_s * 1000)
        self._spawn_counter = 0
        self._next_passenger_id = 0
        self._stats_callbacks: List[StatsCallback] = []
        self._stats_cache: Optional[SimulationStatistics] = None
        self._stats_cached_at = 0.0

    @property
    def top_floor(self) -> int:
        return self.settings.number_of_floors - 1

    @property
    def warmup_active(self) -> bool:
        return self.now_ms < self.warmup_ms

    @property
    def warmup_time_left(self) -> float:
        return max(0.0, (self.warmup_ms - self.now_ms) / 1000.0)

    def get_floor(self, floor_number: int) -> Optional[Floor]:
        if 0 <= floor_number < len(self.floors):
            return self.floors[floor_number]
        return None

    def get_elevator(self, elevator_id: int) -> Optional[Elevator]:
        for elevator in self.elevators:
            if elevator.elevator_id == elevator_id:
                return elevator
        return None

    # Tick ---------------------------------------------------------------

    def update(self, now_ms: int) -> None:
        if self.warmup_active and now_ms >= self.warmup_ms:
            logger.info("warm-up finished at %.1fs; scoring starts now", now_ms / 1000)
        self.now_ms = now_ms

        self._maybe_spawn(now_ms)

        for elevator in self.elevators:
            elevator.update(now_ms, self._route)
            if elevator.repair_completed:
                self._restore_assigned_floors(elevator)

        self._collect_from_elevators(now_ms)
        self._board_loading_elevators(now_ms)
        self._reassign_from_broken_elevators()
        self._update_waiting(now_ms)

        if not self.warmup_active:
            ratios = [len(e.passengers) / e.capacity for e in self.elevators]
            self.metrics.sample_utilization(sum(ratios) / len(ratios))

    def _route(self, elevator: Elevator) -> int:
        return self.system.decide_next_floor(elevator, self.get_floor_stats())

    # Arrivals -----------------------------------------------------------

    def spawn_threshold(self, tick_ms: Optional[int] = None) -> int:
        """Ticks between arrivals for the configured flow rate; 0 disables spawning."""
        rate = self.settings.people_flow_rate
        if rate <= 0:
            return 0
        ticks_per_second = 1000.0 / (tick_ms or self.settings.tick_ms)
        return max(1, int(round(ticks_per_second / rate)))

    def _maybe_spawn(self, now_ms: int) -> None:
        threshold = self.spawn_threshold()
        if not threshold:
            return
        self._spawn_counter += 1
        if self._spawn_counter < threshold:
            return
        self._spawn_counter = 0
        if self.rng.random() < self.settings.edge_floor_probability:
            floor = self.rng.choice((0, self.top_floor))
        else:
            floor = self.rng.randrange(self.settings.number_of_floors)
        self.add_person(floor, now_ms=now_ms)

    def pick_destination(self, origin: int) -> int:
        if origin == 0:
            return self.rng.randint(1, self.top_floor)
        if origin == self.top_floor:
            return self.rng.randint(0, self.top_floor - 1)
        destination = self.rng.randrange(self.settings.number_of_floors - 1)
        return destination + 1 if destination >= origin else destination

    def add_person(
        self, floor: int, destination: Optional[int] = None, now_ms: Optional[int] = None
    ) -> Passenger:
        if not 0 <= floor < self.settings.number_of_floors:
            raise ValueError(f"floor {floor} outside building")
        if destination is None:
            destination = self.pick_destination(floor)
        now = self.now_ms if now_ms is None else now_ms
        passenger = Passenger(
            passenger_id=self._next_passenger_id,
            origin=floor,
            destination=destination,
            wait_started_at=now,
            give_up_threshold=self.rng.uniform(self.settings.give_up_min_s, self.settings.give_up_max_s),
        )
        self._next_passenger_id += 1
        self.floors[floor].add_passenger(passenger)
        self._dispatch(passenger)
        self.invalidate_statistics()
        logger.debug(
            "passenger %s added at floor %s going to %s, assigned elevator %s",
            passenger.passenger_id,
            floor,
            destination,
            passenger.assigned_elevator,
        )
        return passenger

    def _dispatch(self, passenger: Passenger) -> None:
        index = self.system.assign_elevator_to_person(passenger, passenger.origin, self.get_floor_stats())
        passenger.assigned_elevator = index
        self.elevators[index].add_floor_to_visit(passenger.origin)

    # Elevator bookkeeping -----------------------------------------------

    def _collect_from_elevators(self, now_ms: int) -> None:
        for elevator in self.elevators:
            for passenger in elevator.drain_delivered():
                self._record_delivery(passenger)
            for passenger in elevator.drain_evacuated():
                passenger.requeue(elevator.current_floor, now_ms)
                self.floors[elevator.current_floor].add_passenger(passenger)
                self._dispatch(passenger)
                logger.info(
                    "passenger %s evacuated from elevator %s at floor %s",
                    passenger.passenger_id,
                    elevator.elevator_id,
                    elevator.current_floor,
                )

    def _record_delivery(self, passenger: Passenger) -> None:
        self.served.append(passenger)
        if passenger.boarded_at is None or passenger.boarded_at < self.warmup_ms:
            return
        self.metrics.record_served(passenger)
        interval = self.settings.stats_update_interval
        if interval > 0 and self.metrics.served % interval == 0:
            stats = self.get_statistics(force=True)
            for callback in self._stats_callbacks:
                callback(stats)

    def _board_loading_elevators(self, now_ms: int) -> None:
        for elevator in self.elevators:
            if elevator.state is not ElevatorState.LOADING:
                continue
            floor = self.floors[elevator.current_floor]
            free = elevator.capacity - len(elevator.passengers)
            for passenger in floor.board_passengers(elevator.elevator_id, free):
                elevator.board(passenger, now_ms)
            leftovers = floor.assigned_to(elevator.elevator_id)
            for passenger in leftovers:
                self._dispatch(passenger)
            if not floor.assigned_to(elevator.elevator_id):
                elevator.complete_stop(floor.number)

    def _reassign_from_broken_elevators(self) -> None:
        broken = {e.elevator_id for e in self.elevators if e.in_repair}
        if not broken or len(broken) == len(self.elevators):
            return
        for floor in self.floors:
            for passenger in floor.waiting:
                if passenger.assigned_elevator not in broken:
                    continue
                index = self.system.assign_elevator_to_person(passenger, floor.number, self.get_floor_stats())
                if index in broken:
                    continue
                logger.debug(
                    "passenger %s moved from elevator %s to %s",
                    passenger.passenger_id,
                    passenger.assigned_elevator,
                    index,
                )
                passenger.assigned_elevator = index
                self.elevators[index].add_floor_to_visit(floor.number)

    def _restore_assigned_floors(self, elevator: Elevator) -> None:
        for floor in self.floors:
            if floor.assigned_to(elevator.elevator_id):
                elevator.add_floor_to_visit(floor.number)

    def _update_waiting(self, now_ms: int) -> None:
        for floor in self.floors:
            for passenger in floor.waiting:
                passenger.update_wait(now_ms)
            gone = floor.remove_given_up()
            if gone:
                self.give_up_count += len(gone)
                if not self.warmup_active:
                    self.scored_give_up_count += len(gone)
                logger.debug("%s passenger(s) gave up at floor %s", len(gone), floor.number)

    def trigger_fault(self, elevator_id: int, reason: str) -> bool:
        elevator = self.get_elevator(elevator_id)
        if elevator is None:
            return False
        if not elevator.enter_repair(reason, self.now_ms, force=True):
            return False
        self._collect_from_elevators(self.now_ms)
        return True

    # Statistics ---------------------------------------------------------

    def get_floor_stats(self) -> List[FloorStats]:
        stats: List[FloorStats] = []
        for floor in self.floors:
            waits = [p.wait_time for p in floor.waiting]
            by_elevator: Dict[int, List[float]] = {}
            for passenger in floor.waiting:
                by_elevator.setdefault(passenger.assigned_elevator, []).append(passenger.wait_time)
            per_elevator = tuple(
                ElevatorFloorStats(
                    elevator_id=elevator_id,
                    waiting_count=len(values),
                    max_wait_time=max(values),
                    avg_wait_time=sum(values) / len(values),
                )
                for elevator_id, values in sorted(by_elevator.items())
            )
            stats.append(
                FloorStats(
                    floor=floor.number,
                    waiting_count=len(waits),
                    max_wait_time=max(waits) if waits else 0.0,
                    avg_wait_time=sum(waits) / len(waits) if waits else 0.0,
                    waiting_people=tuple(self.system.person_data(p) for p in floor.waiting),
                    per_elevator=per_elevator,
                )
            )
        return stats

    def on_stats_updated(self, callback: StatsCallback) -> None:
        self._stats_callbacks.append(callback)

    def invalidate_statistics(self) -> None:
        self._stats_cache = None

    def get_statistics(self, force: bool = False) -> SimulationStatistics:
        wall = self.wall_clock()
        if (
            not force
            and self._stats_cache is not None
            and wall - self._stats_cached_at < self.STATS_THROTTLE_S
        ):
            return self._stats_cache
        self._stats_cache = self.metrics.statistics(
            self.settings,
            self.give_up_count,
            self.warmup_active,
            self.warmup_time_left,
            scored_give_ups=self.scored_give_up_count,
        )
        self._stats_cached_at = wall
        return self._stats_cache

    def snapshot(self) -> dict:
        return {
            "time_ms": self.now_ms,
            "floors": [
                {"floor": f.number, "waiting": len(f.waiting), "button_pressed": f.button_pressed}
                for f in self.floors
            ],
            "elevators": [
                {
                    "id": e.elevator_id,
                    "state": e.state.value,
                    "current_floor": e.current_floor,
                    "target_floor": e.target_floor,
                    "position": e.position,
                    "passengers": len(e.passengers),
                    "capacity": e.capacity,
                    "floors_to_visit": sorted(e.floors_to_visit),
                    "stuck_warning": e.stuck_warning,
                    "repair_reason": e.repair_reason,
                }
                for e in self.elevators
            ],
        }
