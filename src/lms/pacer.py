# -----------------------------------------------------------------------------
# Pacer: blocking playback loop for a StepSequencer
# Purpose:
#   Reference driver that sleeps for next_delay() and ticks, one request at a
#   time. Every tick carries the generation captured when playback started, so
#   a reset or operand change from a callback stops the loop instead of
#   mutating the new timeline.
# -----------------------------------------------------------------------------

from __future__ import annotations
import time
from typing import Callable, List, Optional

from .sequencer import StepSequencer
from .view import StepDelta

class Pacer:
    def __init__(self, sequencer: StepSequencer,
                 sleep: Callable[[float], None] = time.sleep,
                 on_delta: Optional[Callable[[StepDelta], None]] = None):
        self.sequencer = sequencer
        self.sleep = sleep
        self.on_delta = on_delta

    def run(self, max_ticks: Optional[int] = None) -> List[StepDelta]:
        """Play until the end, a generation change, or max_ticks ticks."""
        seq = self.sequencer
        generation = seq.generation
        deltas: List[StepDelta] = []
        while max_ticks is None or len(deltas) < max_ticks:
            delay = seq.next_delay()
            if delay is None:
                break
            self.sleep(delay)
            delta = seq.tick(generation)
            if delta is None:
                break
            deltas.append(delta)
            if self.on_delta:
                self.on_delta(delta)
        return deltas
