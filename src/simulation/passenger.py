from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PassengerStatus(str, Enum):
    WAITING = "waiting"
    BOARDED = "boarded"
    SERVED = "served"
    GAVE_UP = "gave_up"


@dataclass
class Passenger:
    """A rider moving between floors.

    ``wait_time`` grows every tick while the passenger waits and is frozen
    the moment they board; ``transit_time`` is frozen on arrival.
    """

    passenger_id: int
    origin: int
    destination: int
    wait_started_at: int
    give_up_threshold: float
    assigned_elevator: int = -1
    status: PassengerStatus = PassengerStatus.WAITING
    wait_time: float = 0.0
    transit_time: float = 0.0
    boarded_at: Optional[int] = None
    served_at: Optional[int] = None

    def __post_init__(self) -> None:
        if self.origin == self.destination:
            raise ValueError("destination must differ from origin")

    @property
    def direction(self) -> int:
        """Return +1 for up, -1 for down."""
        return 1 if self.destination > self.origin else -1

    @property
    def is_waiting(self) -> bool:
        return self.status is PassengerStatus.WAITING

    @property
    def gave_up(self) -> bool:
        return self.status is PassengerStatus.GAVE_UP

    def update_wait(self, now_ms: int) -> bool:
        """Advance the wait timer; returns True when the passenger gives up."""
        if not self.is_waiting:
            return False
        self.wait_time = (now_ms - self.wait_started_at) / 1000.0
        if self.wait_time > self.give_up_threshold:
            self.status = PassengerStatus.GAVE_UP
            return True
        return False

    def board(self, now_ms: int) -> None:
        if not self.is_waiting:
            raise RuntimeError(f"passenger {self.passenger_id} cannot board while {self.status.value}")
        self.status = PassengerStatus.BOARDED
        self.boarded_at = now_ms

    def complete(self, now_ms: int) -> None:
        if self.status is not PassengerStatus.BOARDED or self.boarded_at is None:
            raise RuntimeError(f"passenger {self.passenger_id} is not on board")
        self.status = PassengerStatus.SERVED
        self.served_at = now_ms
        self.transit_time = (now_ms - self.boarded_at) / 1000.0

    def requeue(self, floor: int, now_ms: int) -> None:
        """Put an evacuated passenger back in line at ``floor``."""
        self.origin = floor
        self.status = PassengerStatus.WAITING
        self.wait_started_at = now_ms
        self.wait_time = 0.0
        self.boarded_at = None
        self.assigned_elevator = -1

    @property
    def service_time(self) -> float:
        return self.wait_time + self.transit_time
