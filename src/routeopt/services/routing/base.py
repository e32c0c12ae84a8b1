"""Shared problem shape and the optimizer strategy interface."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Protocol, Sequence

from ...models.domain import Constraints, Location
from .distance import DistanceOracle
from .evaluator import SolutionEvaluator
from .models import OptimizationOptions, Solution


@dataclass(slots=True)
class RoutingProblem:
    """A route split into pinned ends and the free ``body`` the optimizers permute.

    ``head`` holds the start pin, ``tail`` the end pin. Pins found in the input
    set (matched by id) are taken out of the body; pins outside it are extra
    stops.
    """

    head: list[Location]
    body: list[Location]
    tail: list[Location]

    def assemble(self, body: Sequence[Location]) -> list[Location]:
        return [*self.head, *body, *self.tail]

    @property
    def size(self) -> int:
        return len(self.head) + len(self.body) + len(self.tail)


def build_problem(locations: Sequence[Location], constraints: Constraints | None) -> RoutingProblem:
    by_id = {location.id: location for location in locations}
    start = constraints.start_location if constraints else None
    end = constraints.end_location if constraints else None

    head: list[Location] = []
    tail: list[Location] = []
    pinned: set[str] = set()
    if start is not None:
        head.append(by_id.get(start.id, start))
        pinned.add(start.id)
    if end is not None:
        tail.append(by_id.get(end.id, end))
        pinned.add(end.id)

    body = [location for location in locations if location.id not in pinned]
    return RoutingProblem(head=head, body=body, tail=tail)


class Deadline:
    """Advisory wall-clock budget checked between iterations."""

    def __init__(self, seconds: float | None) -> None:
        self._expires_at = time.monotonic() + seconds if seconds else None

    def expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at


class RouteOptimizerStrategy(Protocol):
    name: str

    def optimize(
        self,
        locations: Sequence[Location],
        constraints: Constraints,
        options: OptimizationOptions,
        oracle: DistanceOracle,
        evaluator: SolutionEvaluator,
        rng: random.Random,
    ) -> Solution:
        ...
