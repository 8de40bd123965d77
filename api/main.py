# --- Long Multiplication Stepper: Timeline & Playback API (FastAPI) -----------
# Purpose: Minimal API that (1) generates the step timeline for a x b, (2) folds
# the view state at any cursor position, and (3) hosts server-side playback
# sessions a UI timer can tick.
# ------------------------------------------------------------------------------

from __future__ import annotations
import os
import platform
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Union
from dotenv import find_dotenv, load_dotenv

# Load .env (searched from the working directory) before the core reads its
# configuration: delays, trace limit and trace dir.
load_dotenv(find_dotenv(usecwd=True))

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from lms.digits import InvalidOperand
from lms.sequencer import StepSequencer
from lms.timeline import build_timeline
from lms.tracer import Tracer
from lms.view import StepPhase, view_at
from api.tracing import save_trace

APP_VERSION = os.getenv("LMS_VERSION", "1.0.0")
MAX_SESSIONS = int(os.getenv("LMS_MAX_SESSIONS", "256"))


def _user_input_error(e: Exception, trace: Tracer) -> dict:
    """
    Uniform failure payload for bad operands. Mirrors the solver API shape:
    ok=False plus a coarse error_kind so the UI can tell user errors apart.
    """
    trace.add("error", {"kind": "user_input", "message": str(e)})
    return {
        "ok": False,
        "error": str(e),
        "error_kind": "user_input",
        "trace": trace.steps(),
    }

# FastAPI app: stateless /timeline and /view, stateful /session/*
app = FastAPI(title="Long Multiplication Stepper API")

@dataclass
class _Session:
    # One sequencer plus the lock that serializes every request touching it.
    sequencer: StepSequencer
    lock: threading.Lock = field(default_factory=threading.Lock)

# Live playback sessions keyed by id (in-process only). Routes run in the
# threadpool, so the registry and each session are guarded by locks.
_sessions: Dict[str, _Session] = {}
_sessions_lock = threading.Lock()

# ----------------------------- Schemas ----------------------------------------
class OperandsRequest(BaseModel):
    # Multiplicand and multiplier; ints or decimal strings.
    a: Union[int, str]
    b: Union[int, str]

class TimelineRequest(OperandsRequest):
    save_trace: bool = False

class ViewRequest(OperandsRequest):
    cursor: int = Field(ge=0)
    phase: StepPhase = StepPhase.CLEARED

class SessionRequest(OperandsRequest):
    speed: float = Field(default=1.0, gt=0, allow_inf_nan=False)

class SpeedRequest(BaseModel):
    factor: float = Field(gt=0, allow_inf_nan=False)

class TickRequest(BaseModel):
    # Generation the tick was scheduled under; stale ticks are ignored.
    generation: Optional[int] = None

# ----------------------------- Helpers ----------------------------------------
@contextmanager
def _locked(session_id: str) -> Iterator[StepSequencer]:
    # Hold the session's lock for the whole request; 404 if it does not exist.
    with _sessions_lock:
        session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    with session.lock:
        yield session.sequencer

def _session_payload(session_id: str, seq: StepSequencer, delta=None) -> dict:
    return {
        "ok": True,
        "session_id": session_id,
        **seq.snapshot(),
        "next_delay": seq.next_delay(),
        "delta": delta.to_dict() if delta else None,
    }

# ----------------------------- Routes -----------------------------------------
@app.get("/health")
def health(): return {"ok": True}

@app.post("/timeline")
def timeline(req: TimelineRequest):
    """
    Generate the full timeline for a x b.
    - Bad operands → ok=False with error_kind 'user_input' (nothing generated).
    - save_trace=True also writes the run to TRACE_DIR as JSON.
    """
    trace = Tracer()
    try:
        tl = build_timeline(req.a, req.b, trace)
    except InvalidOperand as e:
        return _user_input_error(e, trace)

    payload = {"ok": True, **tl.to_dict(), "trace": trace.steps()}
    if req.save_trace:
        meta = {"version": APP_VERSION, "platform": platform.platform()}
        payload["trace_path"] = save_trace(meta, {"a": tl.a, "b": tl.b}, tl.to_dict(), trace.steps())
    return payload

@app.post("/view")
def view(req: ViewRequest):
    """
    Stateless view: fold the timeline from scratch to (cursor, phase).
    A cursor past the end is a client error (422).
    """
    trace = Tracer()
    try:
        tl = build_timeline(req.a, req.b, trace)
    except InvalidOperand as e:
        return _user_input_error(e, trace)
    if req.cursor > tl.total_steps:
        raise HTTPException(status_code=422, detail=f"cursor must be <= {tl.total_steps}")
    v = view_at(tl, req.cursor, req.phase)
    return {
        "ok": True,
        "cursor": req.cursor,
        "phase": req.phase.value,
        "total_steps": tl.total_steps,
        "view": v.to_dict(),
    }

@app.post("/session")
def create_session(req: SessionRequest):
    try:
        seq = StepSequencer(req.a, req.b, speed_factor=req.speed)
    except InvalidOperand as e:
        return _user_input_error(e, Tracer())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    session_id = uuid.uuid4().hex
    payload = _session_payload(session_id, seq)
    with _sessions_lock:
        while len(_sessions) >= MAX_SESSIONS:
            # Drop the oldest session (dicts keep insertion order)
            _sessions.pop(next(iter(_sessions)), None)
        _sessions[session_id] = _Session(seq)
    return payload

@app.get("/session/{session_id}")
def get_session(session_id: str):
    with _locked(session_id) as seq:
        return _session_payload(session_id, seq)

@app.post("/session/{session_id}/tick")
def tick(session_id: str, req: TickRequest = TickRequest()):
    with _locked(session_id) as seq:
        delta = seq.tick(req.generation)
        return _session_payload(session_id, seq, delta)

@app.post("/session/{session_id}/advance")
def advance(session_id: str):
    with _locked(session_id) as seq:
        delta = seq.advance()
        return _session_payload(session_id, seq, delta)

@app.post("/session/{session_id}/reset")
def reset(session_id: str):
    with _locked(session_id) as seq:
        seq.reset()
        return _session_payload(session_id, seq)

@app.post("/session/{session_id}/operands")
def set_operands(session_id: str, req: OperandsRequest):
    with _locked(session_id) as seq:
        try:
            seq.set_operands(req.a, req.b)
        except InvalidOperand as e:
            return _user_input_error(e, Tracer())
        return _session_payload(session_id, seq)

@app.post("/session/{session_id}/speed")
def speed(session_id: str, req: SpeedRequest):
    with _locked(session_id) as seq:
        try:
            seq.set_speed_factor(req.factor)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return _session_payload(session_id, seq)

@app.get("/session/{session_id}/trace")
def session_trace(session_id: str):
    with _locked(session_id) as seq:
        return {"ok": True, "trace": seq.trace.steps()}
