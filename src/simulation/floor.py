from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .passenger import Passenger


@dataclass
class Floor:
    """A floor with its queue of waiting passengers."""

    number: int
    waiting: List[Passenger] = field(default_factory=list)

    def add_passenger(self, passenger: Passenger) -> None:
        self.waiting.append(passenger)

    def has_waiting(self) -> bool:
        return bool(self.waiting)

    @property
    def button_pressed(self) -> bool:
        return self.has_waiting()

    def assigned_to(self, elevator_id: int) -> List[Passenger]:
        return [p for p in self.waiting if p.assigned_elevator == elevator_id]

    def board_passengers(self, elevator_id: int, capacity: int) -> List[Passenger]:
        """Remove up to ``capacity`` passengers assigned to ``elevator_id`` in arrival order."""
        boarded: List[Passenger] = []
        remaining: List[Passenger] = []
        for passenger in self.waiting:
            if passenger.assigned_elevator == elevator_id and len(boarded) < capacity:
                boarded.append(passenger)
            else:
                remaining.append(passenger)
        self.waiting = remaining
        return boarded

    def remove_given_up(self) -> List[Passenger]:
        gone = [p for p in self.waiting if p.gave_up]
        if gone:
            self.waiting = [p for p in self.waiting if not p.gave_up]
        return gone
