from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, List, Optional, Set, Tuple

from .config import ElevatorTimings
from .passenger import Passenger

logger = logging.getLogger(__name__)


class ElevatorState(str, Enum):
    IDLE = "idle"
    MOVING_UP = "moving_up"
    MOVING_DOWN = "moving_down"
    LOADING = "loading"
    REPAIR = "repair"

    @property
    def direction(self) -> int:
        if self is ElevatorState.MOVING_UP:
            return 1
        if self is ElevatorState.MOVING_DOWN:
            return -1
        return 0

    @property
    def is_moving(self) -> bool:
        return self in (ElevatorState.MOVING_UP, ElevatorState.MOVING_DOWN)


@dataclass(frozen=True)
class StateChange:
    state: ElevatorState
    time_ms: int


@dataclass(frozen=True)
class RouteEntry:
    time_ms: int
    from_floor: int
    to_floor: int


@dataclass(frozen=True)
class BreakdownReport:
    """Diagnostic record captured when an elevator is taken out of service."""

    elevator_id: int
    time_ms: int
    reason: str
    state: ElevatorState
    time_in_state_ms: int
    current_floor: int
    target_floor: Optional[int]
    position: float
    expected_position: float
    passengers: int
    capacity: int
    planned_route: Tuple[int, ...]
    recent_states: Tuple[StateChange, ...]

    def format(self) -> str:
        history = ", ".join(f"{c.state.value} at {c.time_ms / 1000:.1f}s" for c in self.recent_states)
        route = " -> ".join(str(f) for f in self.planned_route) or "none"
        target = "None" if self.target_floor is None else str(self.target_floor)
        return (
            f"===== ELEVATOR {self.elevator_id} BREAKDOWN REPORT =====\n"
            f"Reason: {self.reason}\n"
            f"Current state: {self.state.value} for {self.time_in_state_ms / 1000:.1f}s\n"
            f"Current floor: {self.current_floor}\n"
            f"Target floor: {target}\n"
            f"Position: {self.position:.1f} (expected: {self.expected_position:.1f})\n"
            f"Passengers: {self.passengers}/{self.capacity}\n"
            f"Planned route: {route}\n"
            f"Recent state changes: {history}"
        )


Router = Callable[["Elevator"], int]


@dataclass
class Elevator:
    """One car and its per-tick state machine.

    The car moves through IDLE -> MOVING_UP/MOVING_DOWN -> LOADING -> IDLE.
    A periodic fault check can divert it into REPAIR from any other state;
    after ``timings.repair_ms`` it returns to IDLE. Routing decisions are
    requested through the ``router`` callable passed to :meth:`update`.
    """

    elevator_id: int
    total_floors: int
    capacity: int
    speed: float
    floor_height: int = 40
    timings: ElevatorTimings = field(default_factory=ElevatorTimings)
    current_floor: int = 0
    target_floor: Optional[int] = None
    state: ElevatorState = ElevatorState.IDLE
    position: float = field(default=0.0, init=False)
    passengers: List[Passenger] = field(default_factory=list)
    last_direction: int = 0
    stuck_warning: bool = False
    repair_reason: Optional[str] = None
    breakdowns: List[BreakdownReport] = field(default_factory=list)
    _floors_to_visit: Set[int] = field(default_factory=set, init=False, repr=False)
    _state_entered_at: int = field(default=0, init=False, repr=False)
    _last_check_at: int = field(default=0, init=False, repr=False)
    _evacuated: List[Passenger] = field(default_factory=list, init=False, repr=False)
    _delivered: List[Passenger] = field(default_factory=list, init=False, repr=False)
    repair_completed: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if not 0 <= self.current_floor < self.total_floors:
            raise ValueError(f"floor {self.current_floor} outside building")
        self.position = float(self.current_floor * self.floor_height)
        size = self.timings.history_size
        self._position_history: Deque[float] = deque(maxlen=size)
        self._state_history: Deque[ElevatorState] = deque(maxlen=size)
        self.state_changes: Deque[StateChange] = deque(maxlen=20)
        self.route_history: Deque[RouteEntry] = deque(maxlen=20)
        self._reset_history()

    # Read-only views ----------------------------------------------------

    @property
    def direction(self) -> int:
        return self.state.direction

    @property
    def floors_to_visit(self) -> Set[int]:
        return set(self._floors_to_visit)

    @property
    def passenger_destinations(self) -> List[int]:
        return sorted({p.destination for p in self.passengers})

    @property
    def is_full(self) -> bool:
        return len(self.passengers) >= self.capacity

    @property
    def in_repair(self) -> bool:
        return self.state is ElevatorState.REPAIR

    @property
    def top_floor(self) -> int:
        return self.total_floors - 1

    def time_in_state(self, now_ms: int) -> int:
        return now_ms - self._state_entered_at

    # Commands -----------------------------------------------------------

    def add_floor_to_visit(self, floor: int) -> bool:
        if self.in_repair or not 0 <= floor < self.total_floors:
            return False
        self._floors_to_visit.add(floor)
        return True

    def board(self, passenger: Passenger, now_ms: int) -> bool:
        if self.in_repair or self.is_full:
            return False
        passenger.board(now_ms)
        self.passengers.append(passenger)
        self._floors_to_visit.add(passenger.destination)
        logger.debug(
            "elevator %s boarded passenger %s at floor %s bound for %s",
            self.elevator_id,
            passenger.passenger_id,
            self.current_floor,
            passenger.destination,
        )
        return True

    def complete_stop(self, floor: int) -> None:
        self._floors_to_visit.discard(floor)

    def drain_delivered(self) -> List[Passenger]:
        delivered, self._delivered = self._delivered, []
        return delivered

    def drain_evacuated(self) -> List[Passenger]:
        evacuated, self._evacuated = self._evacuated, []
        return evacuated

    def override_state(self, state: ElevatorState, now_ms: int) -> None:
        """Force a state without its usual entry actions; diagnostics only."""
        self._transition(state, now_ms)

    # Tick ---------------------------------------------------------------

    def update(self, now_ms: int, router: Router) -> None:
        self.repair_completed = False
        if not self.in_repair:
            self._check_for_faults(now_ms)

        if self.state is ElevatorState.IDLE:
            self._update_idle(now_ms, router)
        elif self.state.is_moving:
            self._update_moving(now_ms)
        elif self.state is ElevatorState.LOADING:
            if self.time_in_state(now_ms) >= self.timings.loading_ms:
                self._transition(ElevatorState.IDLE, now_ms)
        elif self.state is ElevatorState.REPAIR:
            if self.time_in_state(now_ms) >= self.timings.repair_ms:
                self.stuck_warning = False
                self.repair_reason = None
                self.repair_completed = True
                self._transition(ElevatorState.IDLE, now_ms)
                logger.info("elevator %s back in service at floor %s", self.elevator_id, self.current_floor)

    def _update_idle(self, now_ms: int, router: Router) -> None:
        if not self._floors_to_visit:
            return
        if self.current_floor in self._floors_to_visit and not self.is_full:
            self._enter_loading(now_ms)
            return

        next_floor = router(self)
        if (
            isinstance(next_floor, bool)
            or not isinstance(next_floor, int)
            or not 0 <= next_floor < self.total_floors
        ):
            logger.warning(
                "elevator %s got unusable floor %r, staying at %s",
                self.elevator_id,
                next_floor,
                self.current_floor,
            )
            return
        if next_floor == self.current_floor:
            return

        self.target_floor = next_floor
        self.route_history.append(RouteEntry(now_ms, self.current_floor, next_floor))
        if next_floor > self.current_floor:
            self._transition(ElevatorState.MOVING_UP, now_ms)
        else:
            self._transition(ElevatorState.MOVING_DOWN, now_ms)

    def _update_moving(self, now_ms: int) -> None:
        if self.target_floor is None:
            return
        target_position = float(self.target_floor * self.floor_height)
        distance = target_position - self.position
        if abs(distance) <= self.speed:
            self.position = target_position
            self.current_floor = self.target_floor
            self._floors_to_visit.discard(self.target_floor)
            self.target_floor = None
            self._enter_loading(now_ms)
            return

        step = self.speed if distance > 0 else -self.speed
        top = float(self.top_floor * self.floor_height)
        self.position = min(max(self.position + step, 0.0), top)
        # The floor the car last passed, never the one it is approaching.
        if step > 0:
            self.current_floor = int(math.floor(self.position / self.floor_height))
        else:
            self.current_floor = int(math.ceil(self.position / self.floor_height))

    def _enter_loading(self, now_ms: int) -> None:
        self._floors_to_visit.discard(self.current_floor)
        staying: List[Passenger] = []
        for passenger in self.passengers:
            if passenger.destination == self.current_floor:
                passenger.complete(now_ms)
                self._delivered.append(passenger)
            else:
                staying.append(passenger)
        self.passengers = staying
        self._transition(ElevatorState.LOADING, now_ms)

    # Fault detection ----------------------------------------------------

    def _check_for_faults(self, now_ms: int) -> None:
        t = self.timings
        if now_ms - self._last_check_at < t.stuck_check_interval_ms:
            return
        self._last_check_at = now_ms
        self._position_history.append(self.position)
        self._state_history.append(self.state)

        time_in_state = self.time_in_state(now_ms)
        if time_in_state < t.state_change_grace_ms:
            return

        if self.state is ElevatorState.MOVING_UP and self.current_floor >= self.top_floor:
            self.enter_repair("Attempted to move up at top floor", now_ms)
            return
        if self.state is ElevatorState.MOVING_DOWN and self.current_floor <= 0:
            self.enter_repair("Attempted to move down at ground floor", now_ms)
            return

        if self.state.is_moving:
            if self._position_stalled() and time_in_state >= t.moving_threshold_ms:
                self.enter_repair("No position change detected while moving", now_ms)
            return

        if self.state is ElevatorState.IDLE:
            threshold = t.idle_threshold_ms
            overdue = bool(self._floors_to_visit) and time_in_state > threshold * t.warning_multiplier
        else:
            threshold = t.loading_threshold_ms
            overdue = time_in_state > threshold * t.warning_multiplier

        if not overdue:
            self.stuck_warning = False
            return
        if not self.stuck_warning:
            logger.warning(
                "elevator %s stuck in %s for %.1fs at floor %s",
                self.elevator_id,
                self.state.value,
                time_in_state / 1000,
                self.current_floor,
            )
            self.stuck_warning = True
        if (
            self.state is ElevatorState.LOADING
            and time_in_state > threshold * t.loading_repair_multiplier
        ):
            self.enter_repair("Loading state duration exceeded threshold", now_ms)

    def _position_stalled(self) -> bool:
        if len(self._position_history) < self._position_history.maxlen:
            return False
        first = self._position_history[0]
        if any(abs(p - first) >= self.timings.movement_threshold for p in self._position_history):
            return False
        return all(s is self._state_history[0] for s in self._state_history)

    def enter_repair(self, reason: str, now_ms: int, force: bool = False) -> bool:
        """Take the car out of service, evacuating everyone on board.

        Returns False when the request is ignored, either because the car is
        already in repair or because it changed state too recently.
        """

        if self.in_repair:
            return False
        time_in_state = self.time_in_state(now_ms)
        if not force and time_in_state < self.timings.state_change_grace_ms:
            logger.debug(
                "elevator %s skipping repair (%s): state too new (%sms)",
                self.elevator_id,
                reason,
                time_in_state,
            )
            return False

        report = BreakdownReport(
            elevator_id=self.elevator_id,
            time_ms=now_ms,
            reason=reason,
            state=self.state,
            time_in_state_ms=time_in_state,
            current_floor=self.current_floor,
            target_floor=self.target_floor,
            position=self.position,
            expected_position=float(self.current_floor * self.floor_height),
            passengers=len(self.passengers),
            capacity=self.capacity,
            planned_route=tuple(sorted(self._floors_to_visit)),
            recent_states=tuple(self.state_changes)[-5:],
        )
        self.breakdowns.append(report)
        logger.error(report.format())

        nearest = int(round(self.position / self.floor_height))
        self.current_floor = min(max(nearest, 0), self.top_floor)
        self.position = float(self.current_floor * self.floor_height)
        self._evacuate(now_ms)
        self._floors_to_visit.clear()
        self.target_floor = None
        self.repair_reason = reason
        self._transition(ElevatorState.REPAIR, now_ms)
        return True

    def _evacuate(self, now_ms: int) -> None:
        for passenger in self.passengers:
            if passenger.destination == self.current_floor:
                passenger.complete(now_ms)
                self._delivered.append(passenger)
            else:
                self._evacuated.append(passenger)
        self.passengers = []

    # Bookkeeping --------------------------------------------------------

    def _transition(self, state: ElevatorState, now_ms: int) -> None:
        previous = self.state
        if previous.is_moving:
            self.last_direction = previous.direction
        self.state = state
        self._state_entered_at = now_ms
        self._last_check_at = now_ms
        self._reset_history()
        self.state_changes.append(StateChange(state, now_ms))
        logger.debug(
            "elevator %s %s -> %s at floor %s (t=%sms)",
            self.elevator_id,
            previous.value,
            state.value,
            self.current_floor,
            now_ms,
        )

    def _reset_history(self) -> None:
        self._position_history.clear()
        self._state_history.clear()
