from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from .interface import IDLE, MOVING_DOWN, MOVING_UP, BuildingData, ElevatorData, FloorStats


def distance_to_floor(elevator: ElevatorData, floor: int) -> int:
    """Estimate the number of floors an elevator travels before reaching ``floor``.

    A moving elevator finishes its current trip before it can turn around,
    so floors behind it cost the detour to its target and back.
    """

    current = elevator.current_floor
    target = elevator.target_floor
    if elevator.state == MOVING_UP and target is not None and floor < current:
        return (target - current) + (target - floor)
    if elevator.state == MOVING_DOWN and target is not None and floor > current:
        return (current - target) + (floor - target)
    return abs(current - floor)


def find_closest_floor(current_floor: int, floors: Iterable[int]) -> int:
    """Closest floor to ``current_floor``; ties go to the lower floor."""

    candidates = sorted(floors)
    if not candidates:
        return current_floor
    return min(candidates, key=lambda floor: abs(current_floor - floor))


def is_floor_in_same_direction(elevator: ElevatorData, floor: int) -> bool:
    if elevator.state == IDLE or elevator.direction == 0:
        return True
    if elevator.direction > 0:
        return floor > elevator.current_floor
    return floor < elevator.current_floor


def floors_in_direction(current_floor: int, floors: Iterable[int], direction: int) -> List[int]:
    if direction > 0:
        return sorted(f for f in floors if f > current_floor)
    if direction < 0:
        return sorted((f for f in floors if f < current_floor), reverse=True)
    return []


def scan_next_floor(current_floor: int, floors: Sequence[int], heading: int) -> int:
    """Pick the next stop the way a SCAN sweep would.

    Keeps travelling in ``heading`` while stops remain that way, then turns
    around to the nearest stop behind. Without a heading the closest stop
    wins.
    """

    pending = [f for f in floors if f != current_floor]
    if not pending:
        return current_floor
    if heading == 0:
        return find_closest_floor(current_floor, pending)
    ahead = floors_in_direction(current_floor, pending, heading)
    if ahead:
        return ahead[0]
    behind = floors_in_direction(current_floor, pending, -heading)
    if behind:
        return behind[0]
    return find_closest_floor(current_floor, pending)


def candidate_elevators(building: BuildingData) -> List[ElevatorData]:
    """Elevators that can accept a new passenger."""

    return [e for e in building.elevators if not e.is_in_repair and not e.is_full]


def fallback_elevator(building: BuildingData) -> int:
    """Index to use when no elevator has room: the least loaded one in service."""

    in_service = [e for e in building.elevators if not e.is_in_repair]
    if not in_service:
        return 0
    best = min(in_service, key=lambda e: (e.passengers / max(1, e.capacity), e.id))
    return building.elevators.index(best)


def pickup_wait(
    elevator: ElevatorData, stats: Optional[FloorStats]
) -> Tuple[int, float]:
    """Waiting count and longest wait on a floor as seen by ``elevator``.

    Figures for passengers assigned to this elevator take precedence; the
    floor aggregate is used when none of them are assigned here.
    """

    if stats is None:
        return 0, 0.0
    own = stats.for_elevator(elevator.id)
    if own is not None and own.waiting_count > 0:
        return own.waiting_count, own.max_wait_time
    return stats.waiting_count, stats.max_wait_time
