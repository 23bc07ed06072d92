"""
Debug routes: thread stack dump and process variables.
"""

import gc
import os
import platform
import sys
import threading
import time
import traceback
from typing import Any, Dict, Optional, Sequence

from fastapi import APIRouter, params
from fastapi.responses import JSONResponse, PlainTextResponse

_STARTED_AT = time.monotonic()


def thread_dump() -> str:
    """Stack of every live thread, innermost frame last."""
    frames = sys._current_frames()
    parts = []
    for thread in threading.enumerate():
        parts.append(
            f"Thread {thread.name!r} (ident={thread.ident}, daemon={thread.daemon}):\n"
        )
        frame = frames.get(thread.ident)
        if frame is not None:
            parts.extend(traceback.format_stack(frame))
        parts.append("\n")
    return "".join(parts)


def process_vars() -> Dict[str, Any]:
    """Process-wide variables in the spirit of an expvar endpoint."""
    return {
        "pid": os.getpid(),
        "cmdline": list(sys.argv),
        "python": platform.python_version(),
        "threads": threading.active_count(),
        "gc": {
            "counts": list(gc.get_count()),
            "collections": [stat["collections"] for stat in gc.get_stats()],
            "enabled": gc.isenabled(),
        },
        "uptime_seconds": round(time.monotonic() - _STARTED_AT, 3),
    }


def build_debug_router(
    prefix: str = "",
    dependencies: Optional[Sequence[params.Depends]] = None,
) -> APIRouter:
    """
    Router with ``<prefix>/debug/threads`` and ``<prefix>/debug/vars``.

    ``dependencies`` guard every route (e.g. an admin token check).
    """
    router = APIRouter(prefix=f"{prefix}/debug", dependencies=list(dependencies or ()))

    @router.get("/threads", include_in_schema=False)
    def get_threads() -> PlainTextResponse:
        return PlainTextResponse(thread_dump())

    @router.get("/vars", include_in_schema=False)
    def get_vars() -> JSONResponse:
        return JSONResponse(process_vars())

    return router
