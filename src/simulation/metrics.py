from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import List, Optional

from .config import SimulationSettings
from .passenger import Passenger

TARGET_UTILIZATION = 0.7
BASE_SCORE = 1000


@dataclass
class SimulationStatistics:
    warmup_active: bool
    warmup_time_left: float
    average_wait_time: float
    average_journey_time: float
    average_service_time: float
    total_people_served: int
    people_who_gave_up: int
    efficiency_score: int
    wait_p95: float = 0.0
    journey_p95: float = 0.0
    average_utilization: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def compute_efficiency_score(
    average_wait: float,
    average_journey: float,
    give_ups: int,
    utilization: float,
    settings: SimulationSettings,
    served: int,
) -> int:
    """Single comparable score for a run.

    Penalties for waiting, riding, abandonment and off-target utilisation
    are each capped; difficulty bonuses reward slow, small, busy, tall or
    understaffed buildings so harder scenarios are not punished for being
    hard. Nobody served yet scores 0.
    """

    if served <= 0:
        return 0
    wait_penalty = min(600.0, average_wait * 15.0)
    journey_penalty = min(300.0, average_journey * 10.0)
    give_up_penalty = min(500.0, give_ups * 10.0)
    utilization_penalty = min(200.0, abs(utilization - TARGET_UTILIZATION) * 200.0)

    speed_bonus = max(0.0, min(100.0, (11 - settings.elevator_speed) * 10.0))
    capacity_bonus = max(0.0, min(75.0, (16 - settings.elevator_capacity) * 5.0))
    flow_bonus = max(0.0, min(150.0, settings.people_flow_rate * 15.0))
    floor_bonus = max(0.0, min(100.0, (settings.number_of_floors - 5) * 8.0))
    lane_bonus = max(0.0, min(75.0, (4 - settings.number_of_lanes) * 25.0))

    score = (
        BASE_SCORE
        - wait_penalty
        - journey_penalty
        - give_up_penalty
        - utilization_penalty
        + speed_bonus
        + capacity_bonus
        + flow_bonus
        + floor_bonus
        + lane_bonus
    )
    return max(0, int(round(score)))


def percentile(values: List[float], fraction: float) -> float:
    if not values:
        return 0.0
    sorted_vals = sorted(values)
    k = (len(sorted_vals) - 1) * fraction
    f = math.floor(k)
    c = math.ceil(k)
    if f == c:
        return float(sorted_vals[int(k)])
    d0 = sorted_vals[int(f)] * (c - k)
    d1 = sorted_vals[int(c)] * (k - f)
    return float(d0 + d1)


class MetricsTracker:
    """Accumulates the scored (post warm-up) population of a run."""

    def __init__(self) -> None:
        self.wait_times: List[float] = []
        self.journey_times: List[float] = []
        self.service_times: List[float] = []
        self._utilization_total = 0.0
        self._utilization_samples = 0

    def record_served(self, passenger: Passenger) -> None:
        self.wait_times.append(passenger.wait_time)
        self.journey_times.append(passenger.transit_time)
        self.service_times.append(passenger.service_time)

    def sample_utilization(self, ratio: float) -> None:
        self._utilization_total += ratio
        self._utilization_samples += 1

    @property
    def served(self) -> int:
        return len(self.journey_times)

    @property
    def average_wait(self) -> float:
        return self._average(self.wait_times)

    @property
    def average_journey(self) -> float:
        return self._average(self.journey_times)

    @property
    def average_service(self) -> float:
        return self._average(self.service_times)

    @property
    def average_utilization(self) -> float:
        if not self._utilization_samples:
            return 0.0
        return self._utilization_total / self._utilization_samples

    @staticmethod
    def _average(values: List[float]) -> float:
        if not values:
            return 0.0
        return sum(values) / len(values)

    def statistics(
        self,
        settings: SimulationSettings,
        give_ups: int,
        warmup_active: bool,
        warmup_time_left: float,
        scored_give_ups: Optional[int] = None,
    ) -> SimulationStatistics:
        """``give_ups`` is the run total shown to users; the score only counts
        ``scored_give_ups`` (abandonments after warm-up), defaulting to the total.
        """
        if scored_give_ups is None:
            scored_give_ups = give_ups
        score = 0
        if not warmup_active:
            score = compute_efficiency_score(
                self.average_wait,
                self.average_journey,
                scored_give_ups,
                self.average_utilization,
                settings,
                self.served,
            )
        return SimulationStatistics(
            warmup_active=warmup_active,
            warmup_time_left=warmup_time_left,
            average_wait_time=self.average_wait,
            average_journey_time=self.average_journey,
            average_service_time=self.average_service,
            total_people_served=self.served,
            people_who_gave_up=give_ups,
            efficiency_score=score,
            wait_p95=percentile(self.wait_times, 0.95),
            journey_p95=percentile(self.journey_times, 0.95),
            average_utilization=self.average_utilization,
        )
