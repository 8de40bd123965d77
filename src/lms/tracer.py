# -----------------------------------------------------------------------------
# Tracing utility
# Purpose:
#   Lightweight, append-only trace collector to record structured events
#   (generation stages, cursor moves, rejected ticks) while building and
#   replaying a timeline. Produces a JSON-friendly list suitable for API
#   responses and debugging. An optional limit keeps only the newest records.
# -----------------------------------------------------------------------------

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Dict, Any, Optional

@dataclass
class TraceStep:
    # One trace record with a short 'kind' label and free-form structured detail.
    kind: str
    detail: Dict[str, Any]

class Tracer:
    def __init__(self, limit: Optional[int] = None):
        self._steps: Deque[TraceStep] = deque(maxlen=limit)
    def add(self, kind: str, detail: Dict[str, Any]): self._steps.append(TraceStep(kind, detail))
    def extend(self, other: "Tracer"): self._steps.extend(other._steps)
    def kinds(self) -> List[str]: return [s.kind for s in self._steps]
    def clear(self): self._steps.clear()
    def __len__(self) -> int: return len(self._steps)
    def steps(self) -> List[Dict[str, Any]]:
        # Export in plain dict form for easy JSON serialization.
        return [{"kind": s.kind, "detail": s.detail} for s in self._steps]
