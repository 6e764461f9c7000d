"""Run-to-completion driver for the stepwise generator.

The generator itself only ever does one unit of work per call; batch callers
(the CLI, the ``/run`` endpoint, diagnostics) go through ``run_to_completion``
which steps until ``done`` while timing each stage and folding events into
metrics.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ..logging_utils import get_logger
from .events import GenEvent
from .generator import DungeonGenerator
from .metrics import init_metrics, record_event, record_tiles
from .models import STAGE_ORDER

log = get_logger("dungeon_designer.pipeline")


@dataclass
class GenerationReport:
    seed: str
    completed: bool
    steps: int
    final_event: Optional[GenEvent]
    stage_steps: Dict[str, int] = field(default_factory=dict)
    phase_ms: Dict[str, int] = field(default_factory=dict)
    metrics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self):
        return {
            "seed": self.seed,
            "completed": self.completed,
            "steps": self.steps,
            "finalEvent": self.final_event.to_dict() if self.final_event is not None else None,
            "stageSteps": dict(self.stage_steps),
            "phaseMs": dict(self.phase_ms),
            "metrics": dict(self.metrics),
        }


def run_to_completion(
    generator: DungeonGenerator,
    max_steps: Optional[int] = None,
    on_event: Optional[Callable[[GenEvent], None]] = None,
) -> GenerationReport:
    """Step ``generator`` until it reports done (or ``max_steps`` is hit).

    Events are handed to ``on_event`` as they are produced and are not kept.
    Steps are attributed to the stage the generator was in when the step
    began, so a transition step counts towards the stage it leaves.
    """
    metrics = init_metrics()
    stage_steps = {stage.value: 0 for stage in STAGE_ORDER}
    stage_seconds = {stage.value: 0.0 for stage in STAGE_ORDER}
    steps = 0
    last: Optional[GenEvent] = None
    start = time.perf_counter()

    while not generator.is_done():
        if max_steps is not None and steps >= max_steps:
            break
        stage = generator.stage.value
        ps = time.perf_counter()
        last = generator.next_step()
        stage_seconds[stage] += time.perf_counter() - ps
        stage_steps[stage] += 1
        steps += 1
        record_event(metrics, last)
        if on_event is not None:
            on_event(last)

    completed = generator.is_done()
    if completed and last is None:
        # already finished before this call; report the terminal event without advancing
        last = generator.next_step()
    record_tiles(metrics, generator.get_state().tiles)
    metrics["runtime_ms"] = int((time.perf_counter() - start) * 1000)
    phase_ms = {stage: int(sec * 1000) for stage, sec in stage_seconds.items() if stage_steps[stage]}

    log.info(
        event="generation_complete" if completed else "generation_paused",
        seed=generator.seed,
        steps=steps,
        rooms=len(generator.get_state().rooms),
        corridors=metrics["corridors_planned"],
        runtime_ms=metrics["runtime_ms"],
    )
    return GenerationReport(
        seed=generator.seed,
        completed=completed,
        steps=steps,
        final_event=last,
        stage_steps={k: v for k, v in stage_steps.items() if v},
        phase_ms=phase_ms,
        metrics=metrics,
    )


__all__ = ["GenerationReport", "run_to_completion"]
