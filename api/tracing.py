from __future__ import annotations
import os
import json
import time
from typing import Any, Dict, List

DEFAULT_TRACE_DIR = "traces"

def trace_dir() -> str:
    # Resolved per call so TRACE_DIR from a late-loaded .env applies.
    return os.getenv("TRACE_DIR", DEFAULT_TRACE_DIR)

def ts() -> str:
    return time.strftime("%Y%m%d_%H%M%SZ", time.gmtime())

def save_trace(meta: Dict[str, Any], user_input: Dict[str, Any],
               timeline: Dict[str, Any], events: List[Dict[str, Any]]) -> str:
    data = {
        "meta": meta,
        "input": user_input,
        "timeline": timeline,
        "trace": events,
    }
    out_dir = trace_dir()
    os.makedirs(out_dir, exist_ok=True)
    fname = f"run_{ts()}_{user_input.get('a')}x{user_input.get('b')}.json"
    fpath = os.path.join(out_dir, fname)
    with open(fpath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    return fpath
