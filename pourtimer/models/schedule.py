"""Pour schedule: the ordered steps of a recipe plus dose and ratio.

Aggregates are never stored. The module-level helpers take any step sequence
so the timer can run them against the immutable snapshot it was handed; the
Schedule methods delegate to them for the live, editable list.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel

from pourtimer.models.step import Step, StepKind, new_step_id

logger = logging.getLogger(__name__)

DEFAULT_COFFEE_GRAMS = 15.0
DEFAULT_RATIO = 16.0

NEW_STEP_WATER = 50
NEW_STEP_TIME = 30


def default_steps() -> List[Step]:
    return [
        Step(kind=StepKind.BLOOM, name="Bloom", water=30, time=30,
             description="Wet all the grounds and let the gas escape"),
        Step(kind=StepKind.POUR, name="Pour 1", water=90, time=30,
             description="Pour in circles from the center"),
        Step(kind=StepKind.POUR, name="Pour 2", water=120, time=45,
             description="Keep the water level steady while pouring"),
    ]


class Aggregates(BaseModel):
    target_water: int
    total_water_scheduled: float
    total_time_scheduled: int


def target_water(coffee_grams: float, ratio: float) -> int:
    # halves round up, so 15.5 g at 1:15 targets 233 ml
    return int(math.floor(coffee_grams * ratio + 0.5))


def total_water(steps: Sequence[Step]) -> float:
    return sum(s.water for s in steps)


def total_time(steps: Sequence[Step]) -> int:
    return sum(s.time for s in steps)


def cumulative_water_before(steps: Sequence[Step], index: int) -> float:
    """Water poured over steps [0, index)."""
    return sum(s.water for s in steps[:max(index, 0)])


def cumulative_time_before(steps: Sequence[Step], index: int) -> int:
    """Seconds spent in steps [0, index)."""
    return sum(s.time for s in steps[:max(index, 0)])


def cumulative_water_through(steps: Sequence[Step], index: int) -> float:
    """Running total the user should have poured by the end of step `index`."""
    return cumulative_water_before(steps, index + 1)


class Schedule:
    """Editable recipe held in memory for the lifetime of the app."""

    def __init__(
        self,
        steps: Optional[Sequence[Step]] = None,
        coffee_grams: float = DEFAULT_COFFEE_GRAMS,
        ratio: float = DEFAULT_RATIO,
    ):
        self._steps: List[Step] = []
        self.coffee_grams = DEFAULT_COFFEE_GRAMS
        self.ratio = DEFAULT_RATIO
        self.set_coffee_grams(coffee_grams)
        self.set_ratio(ratio)
        for step in steps if steps is not None else default_steps():
            self.add_step(step)

    @property
    def steps(self) -> Tuple[Step, ...]:
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def snapshot(self) -> Tuple[Step, ...]:
        """Immutable view of the steps for the timer; later edits do not leak in."""
        return tuple(self._steps)

    # --- settings ---

    def set_coffee_grams(self, grams: float) -> None:
        if not grams > 0:
            raise ValueError(f"coffee grams must be positive (got {grams})")
        self.coffee_grams = float(grams)

    def set_ratio(self, ratio: float) -> None:
        if not ratio > 0:
            raise ValueError(f"ratio must be positive (got {ratio})")
        self.ratio = float(ratio)

    # --- steps ---

    def get_step(self, step_id: str) -> Optional[Step]:
        for s in self._steps:
            if s.id == step_id:
                return s
        return None

    def index_of(self, step_id: str) -> Optional[int]:
        for i, s in enumerate(self._steps):
            if s.id == step_id:
                return i
        return None

    def add_step(self, step: Step | Mapping[str, Any]) -> Step:
        data = step.model_dump() if isinstance(step, Step) else dict(step)
        data["id"] = new_step_id()
        stored = Step.model_validate(data)
        self._steps.append(stored)
        logger.debug("Added step %s (%s) at index %d", stored.name, stored.id, len(self._steps) - 1)
        return stored

    def update_step(self, step_id: str, patch: Mapping[str, Any]) -> Optional[Step]:
        """Replace the step with `step_id` by its patched copy; None when absent.

        The patch is re-validated, so an invalid value raises pydantic's
        ValidationError and leaves the schedule untouched.
        """
        index = self.index_of(step_id)
        if index is None:
            logger.debug("update_step: no step with id %s", step_id)
            return None
        data = self._steps[index].model_dump()
        data.update({k: v for k, v in patch.items() if k != "id"})
        updated = Step.model_validate(data)
        self._steps[index] = updated
        return updated

    def remove_step(self, step_id: str) -> None:
        before = len(self._steps)
        self._steps = [s for s in self._steps if s.id != step_id]
        if len(self._steps) == before:
            logger.debug("remove_step: no step with id %s", step_id)

    def reset_to_default(self) -> None:
        self.coffee_grams = DEFAULT_COFFEE_GRAMS
        self.ratio = DEFAULT_RATIO
        self._steps = []
        for step in default_steps():
            self.add_step(step)
        logger.info("Schedule reset to the default recipe")

    def new_step_draft(self) -> Dict[str, Any]:
        """Field values the builder pre-fills for a fresh pour."""
        pours = sum(1 for s in self._steps if s.kind == StepKind.POUR)
        return {
            "kind": StepKind.POUR,
            "name": f"Pour {pours + 1}",
            "water": NEW_STEP_WATER,
            "time": NEW_STEP_TIME,
            "description": "",
        }

    # --- derived values ---

    def aggregates(self) -> Aggregates:
        return Aggregates(
            target_water=target_water(self.coffee_grams, self.ratio),
            total_water_scheduled=total_water(self._steps),
            total_time_scheduled=total_time(self._steps),
        )

    def cumulative_water_before(self, index: int) -> float:
        return cumulative_water_before(self._steps, index)

    def cumulative_time_before(self, index: int) -> int:
        return cumulative_time_before(self._steps, index)

    def cumulative_water_through(self, index: int) -> float:
        return cumulative_water_through(self._steps, index)

    def water_progress(self) -> float:
        """Share of the target water already scheduled, capped at 1."""
        agg = self.aggregates()
        if agg.target_water <= 0:
            return 0.0
        return min(agg.total_water_scheduled / agg.target_water, 1.0)
