# -----------------------------------------------------------------------------
# Step sequencer: cursor-driven playback over a generated timeline
# Responsibilities:
#   • Own the current timeline and the single playback cursor
#   • Staged reveal per step (highlight -> reveal -> clear) driven by tick()
#   • Generation counter so ticks scheduled for an older (A, B) are ignored
#   • Pacing delays scaled by a speed factor (content is speed-independent)
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
import os
from enum import Enum
from typing import Optional

from .digits import Operand
from .timeline import StepTimeline, build_timeline
from .tracer import Tracer
from .types import DividerMarker
from .view import StepDelta, StepPhase, ViewState, apply, diff, phases_for

# Base playback durations, in milliseconds at speed 1x.
# Read on every call so a .env loaded after import still applies.
def _delay_ms(name: str, default: str) -> float:
    return float(os.getenv(name, default))

def step_delay_ms() -> float: return _delay_ms("LMS_STEP_DELAY_MS", "2000")
def reveal_delay_ms() -> float: return _delay_ms("LMS_REVEAL_DELAY_MS", "800")
def clear_delay_ms() -> float: return _delay_ms("LMS_CLEAR_DELAY_MS", "500")

# Trace entries kept per sequencer; older ones are dropped.
TRACE_LIMIT = int(os.getenv("LMS_TRACE_LIMIT", "1000"))


class SequencerState(str, Enum):
    """
    Position of the cursor in the timeline. The addition-done transition and
    the finished state share k = total_steps (the closing divider is the only
    entry after the last addition step), so both are reported as FINISHED.
    """
    NOT_STARTED = "not_started"
    MULTIPLYING = "multiplying"
    MULTIPLICATION_DONE = "multiplication_done"
    ADDING = "adding"
    FINISHED = "finished"


class StepSequencer:
    """
    Playback state machine over a StepTimeline.

    Position is (cursor, phase): cursor k in [0, total_steps] counts entries
    applied, phase is how far the entry at k has been revealed. advance() moves
    a whole entry at a time; tick() moves one sub-phase at a time and is what a
    timer-driven pacer should call, passing the generation it was scheduled
    under.
    """

    def __init__(self, a: Operand, b: Operand, speed_factor: float = 1.0,
                 tracer: Optional[Tracer] = None):
        self.trace = tracer if tracer is not None else Tracer(limit=TRACE_LIMIT)
        self._speed = 1.0
        self.set_speed_factor(speed_factor)
        self.generation = 0
        build_trace = Tracer()
        self._install(build_timeline(a, b, build_trace), a, b, build_trace)

    # ---------------- internal helpers ----------------

    def _install(self, timeline: StepTimeline, a: Operand, b: Operand, build_trace: Tracer):
        """
        Swap in a freshly generated timeline and rewind; bumps the generation.
        The trace restarts with the new timeline's generation events.
        """
        self.trace.clear()
        self.trace.extend(build_trace)
        self._a, self._b = a, b
        self.timeline = timeline
        self.cursor = 0
        self.phase = StepPhase.CLEARED
        self.view = ViewState()
        self.generation += 1

    def _entry_settled(self) -> bool:
        if self.cursor == 0:
            return True
        return self.phase is phases_for(self.timeline.entry(self.cursor))[-1]

    def _next_phase(self) -> StepDelta:
        entry = self.timeline.entry(self.cursor)
        phases = phases_for(entry)
        nxt = phases[phases.index(self.phase) + 1]
        prev = self.view
        self.view = apply(self.view, entry, nxt, self.timeline)
        self.phase = nxt
        self.trace.add("phase", {"cursor": self.cursor, "phase": nxt.value})
        return diff(prev, self.view, self.cursor, nxt, entry.kind)

    def _enter_next(self) -> StepDelta:
        self.cursor += 1
        entry = self.timeline.entry(self.cursor)
        first = phases_for(entry)[0]
        prev = self.view
        self.view = apply(self.view, entry, first, self.timeline)
        self.phase = first
        self.trace.add("advance", {"cursor": self.cursor, "kind": entry.kind})
        return diff(prev, self.view, self.cursor, first, entry.kind)

    # ---------------- playback control surface ----------------

    @property
    def total_steps(self) -> int:
        return self.timeline.total_steps

    @property
    def at_end(self) -> bool:
        return self.cursor == self.total_steps and self._entry_settled()

    @property
    def state(self) -> SequencerState:
        k = self.cursor
        m = len(self.timeline.multiplication_steps)
        if k == 0:
            return SequencerState.NOT_STARTED
        if k <= m:
            return SequencerState.MULTIPLYING
        if k == m + 1:
            return SequencerState.MULTIPLICATION_DONE
        if k < self.total_steps:
            return SequencerState.ADDING
        return SequencerState.FINISHED

    def tick(self, generation: Optional[int] = None) -> Optional[StepDelta]:
        """
        Move forward by one sub-phase. Returns None when already at the end or
        when `generation` belongs to a timeline that has since been replaced.
        """
        if generation is not None and generation != self.generation:
            self.trace.add("stale_tick", {"generation": generation, "current": self.generation})
            return None
        if not self._entry_settled():
            return self._next_phase()
        if self.cursor == self.total_steps:
            return None
        return self._enter_next()

    def advance(self) -> Optional[StepDelta]:
        """
        Move the cursor forward by exactly one entry, applied in full. Any
        sub-phases still pending on the current entry are completed first.
        No-op (None) at the end.
        """
        before = self.view
        while not self._entry_settled():
            self._next_phase()
        if self.cursor == self.total_steps:
            return None
        self._enter_next()
        while not self._entry_settled():
            self._next_phase()
        entry = self.timeline.entry(self.cursor)
        return diff(before, self.view, self.cursor, self.phase, entry.kind)

    def reset(self):
        # Regenerates from scratch; pending ticks of the old generation become stale.
        build_trace = Tracer()
        self._install(build_timeline(self._a, self._b, build_trace), self._a, self._b, build_trace)
        self.trace.add("reset", {"generation": self.generation})

    def set_operands(self, a: Operand, b: Operand):
        # Build first so invalid operands leave the current playback untouched.
        build_trace = Tracer()
        timeline = build_timeline(a, b, build_trace)
        self._install(timeline, a, b, build_trace)
        self.trace.add("operands_set", {"a": timeline.a, "b": timeline.b, "generation": self.generation})

    @property
    def speed_factor(self) -> float:
        return self._speed

    def set_speed_factor(self, factor: float):
        if isinstance(factor, bool) or not isinstance(factor, (int, float)):
            raise ValueError(f"speed factor must be a number, got {factor!r}")
        if not math.isfinite(factor) or factor <= 0:
            raise ValueError(f"speed factor must be a positive real, got {factor!r}")
        self._speed = float(factor)
        self.trace.add("speed", {"factor": self._speed})

    def next_delay(self) -> Optional[float]:
        """
        Seconds a pacer should wait before the next tick(), or None at the end.
        Schedule: a new entry every LMS_STEP_DELAY_MS, its
        digit LMS_REVEAL_DELAY_MS after the highlight, the clear LMS_CLEAR_DELAY_MS later.
        """
        if self.at_end:
            return None
        if self.phase is StepPhase.HIGHLIGHTING:
            ms = reveal_delay_ms()
        elif self.phase is StepPhase.REVEALING:
            ms = clear_delay_ms()
        elif self.cursor and not isinstance(self.timeline.entry(self.cursor), DividerMarker):
            ms = max(0.0, step_delay_ms() - reveal_delay_ms() - clear_delay_ms())
        else:
            ms = step_delay_ms()
        return ms / 1000.0 / self._speed

    def snapshot(self) -> dict:
        return {
            "generation": self.generation,
            "cursor": self.cursor,
            "phase": self.phase.value,
            "state": self.state.value,
            "total_steps": self.total_steps,
            "speed_factor": self._speed,
            "view": self.view.to_dict(),
        }
