"""Structured logging for trace-inspector using loguru."""

from __future__ import annotations
import os
import secrets
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Generator
from loguru import logger

DEBUG_ENV = "TRACE_INSPECTOR_DEBUG"
LOG_LEVEL_ENV = "TRACE_INSPECTOR_LOG_LEVEL"
LOG_CONSOLE_ENV = "TRACE_INSPECTOR_LOG_CONSOLE"
LOG_DIR_ENV = "TRACE_INSPECTOR_LOG_DIR"

_req_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_trace_id: ContextVar[str | None] = ContextVar("trace_id", default=None)
FMT = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | <cyan>{file}:{line}</cyan> | {message}{extra[context]}"


def _patch(r: dict) -> None:
    req, trace = _req_id.get(), _trace_id.get()
    p = ([f"req={req}"] if req else []) + ([f"trace={trace}"] if trace else [])
    r["extra"]["context"] = f" [{', '.join(p)}]" if p else ""
    r["extra"]["request_id"], r["extra"]["trace_id"] = req, trace


def get_log_dir() -> Path | None:
    raw = os.getenv(LOG_DIR_ENV, "").strip()
    return Path(raw).expanduser() if raw else None


def setup_logging() -> None:
    dbg = os.getenv(DEBUG_ENV, "").lower() in ("1", "true")
    lvl = os.getenv(LOG_LEVEL_ENV, "DEBUG" if dbg else "INFO").upper()
    logger.remove()
    logger.configure(patcher=_patch)
    if os.getenv(LOG_CONSOLE_ENV, "1" if dbg else "0") == "1":
        logger.add(sys.stderr, format=FMT, level=lvl, colorize=True, diagnose=False)
    log_dir = get_log_dir()
    if log_dir is None:
        return
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / "trace-inspector.log",
        format=FMT,
        level=lvl,
        rotation="10 MB",
        retention=5,
        compression="gz",
        diagnose=False,
    )
    logger.add(
        log_dir / "trace-inspector.json",
        level=lvl,
        rotation="20 MB",
        retention=3,
        compression="gz",
        serialize=True,
        diagnose=False,
    )


setup_logging()


@contextmanager
def log_context(
    request_id: str | None = None,
    trace_id: str | None = None,
    auto_request_id: bool = False,
) -> Generator[dict[str, str | None], None, None]:
    req = request_id or (secrets.token_hex(4) if auto_request_id else None)
    rt = _req_id.set(req) if req else None
    tt = _trace_id.set(trace_id) if trace_id else None
    try:
        yield {"request_id": req, "trace_id": trace_id}
    finally:
        if rt:
            _req_id.reset(rt)
        if tt:
            _trace_id.reset(tt)


def get_request_id() -> str | None:
    return _req_id.get()


def get_trace_id() -> str | None:
    return _trace_id.get()


def get_logger(name: str | None = None) -> Any:
    return logger.bind(component=name) if name else logger


def debug(msg: str, *a: Any, **k: Any) -> None:
    logger.opt(depth=1).debug(msg, *a, **k)


def info(msg: str, *a: Any, **k: Any) -> None:
    logger.opt(depth=1).info(msg, *a, **k)


def warn(msg: str, *a: Any, **k: Any) -> None:
    logger.opt(depth=1).warning(msg, *a, **k)


def warning(msg: str, *a: Any, **k: Any) -> None:
    logger.opt(depth=1).warning(msg, *a, **k)


def error(msg: str, *a: Any, **k: Any) -> None:
    logger.opt(depth=1).error(msg, *a, **k)


def critical(msg: str, *a: Any, **k: Any) -> None:
    logger.opt(depth=1).critical(msg, *a, **k)


def exception(msg: str, *a: Any, **k: Any) -> None:
    logger.opt(depth=1, exception=True).error(msg, *a, **k)


log = logger
__all__ = [
    "debug",
    "info",
    "warn",
    "warning",
    "error",
    "critical",
    "exception",
    "setup_logging",
    "get_logger",
    "get_log_dir",
    "log_context",
    "get_request_id",
    "get_trace_id",
    "logger",
    "log",
]
