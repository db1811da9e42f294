"""
Hierarchical runtime tracing for framerender.

Provides structured, nested logging with timing information so a render can
be followed stage by stage without stepping through code. Span depth is kept
per thread, renders running on a thread pool each get their own indentation.
"""

import functools
import hashlib
import json
import sys
import threading
import time
from contextlib import contextmanager
from datetime import datetime

import numpy as np
from pydantic import BaseModel


class TracerConfig:
    """Configuration for the tracer."""

    def __init__(self):
        self.enabled = False
        self.level = "INFO"
        self.file_path = None
        self.json_output = False
        self._file_handle = None
        self._lock = threading.Lock()

    def configure(self, enabled=False, level="INFO", file_path=None, json_output=False):
        """Configure tracer settings."""
        self.enabled = enabled
        self.level = level.upper()
        self.file_path = file_path
        self.json_output = json_output

        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None

        if file_path and enabled:
            self._file_handle = open(file_path, "w", encoding="utf-8")

    def close(self):
        """Close file handle if open."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None


class Tracer:
    """
    Hierarchical tracer for structured render logging.

    Supports nested spans with timing, argument summarization, and
    multiple output formats (text, JSON).
    """

    LEVELS = {"ERROR": 0, "WARN": 1, "INFO": 2, "DEBUG": 3}

    def __init__(self):
        self.config = TracerConfig()
        self._local = threading.local()

    @property
    def _depth(self):
        return getattr(self._local, "depth", 0)

    @_depth.setter
    def _depth(self, value):
        self._local.depth = value

    @property
    def _span_stack(self):
        stack = getattr(self._local, "span_stack", None)
        if stack is None:
            stack = []
            self._local.span_stack = stack
        return stack

    def _should_log(self, level):
        """Check if this level should be logged."""
        if not self.config.enabled:
            return False
        return self.LEVELS.get(level, 2) <= self.LEVELS.get(self.config.level, 2)

    def _format_timestamp(self):
        """Format current time as HH:MM:SS.mmm."""
        now = datetime.now()
        return now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"

    def _indent(self):
        """Get indentation string based on depth."""
        return "  " * self._depth

    def _write(self, level, module, func, message, meta=None):
        """Write a log line."""
        if not self._should_log(level):
            return

        timestamp = self._format_timestamp()
        indent = self._indent()
        location = f"{module}:{func}" if func else module

        text_line = f"{timestamp} {level:<5} {indent}{location}  {message}"

        json_line = None
        if self.config.json_output:
            json_record = {
                "timestamp": timestamp,
                "level": level,
                "depth": self._depth,
                "thread": threading.current_thread().name,
                "module": module,
                "function": func,
                "message": message,
                "meta": {k: summarize(v) for k, v in (meta or {}).items()},
            }
            json_line = json.dumps(json_record)

        with self.config._lock:
            print(text_line, file=sys.stderr)
            if json_line:
                print(json_line, file=sys.stderr)

            if self.config._file_handle:
                self.config._file_handle.write(text_line + "\n")
                if json_line:
                    self.config._file_handle.write(json_line + "\n")
                self.config._file_handle.flush()

    @contextmanager
    def span(self, name, module="", **meta):
        """
        Context manager for a traced span.

        Logs start and end with timing information.
        """
        if not self.config.enabled:
            yield
            return

        start_time = time.perf_counter()
        meta_str = " ".join(f"{k}={summarize(v)}" for k, v in meta.items())
        self._write("INFO", module, name, f"start {meta_str}".strip())
        self._depth += 1
        self._span_stack.append((name, module, start_time))

        try:
            yield
        except Exception as e:
            elapsed = (time.perf_counter() - start_time) * 1000
            self._depth -= 1
            self._span_stack.pop()
            self._write("ERROR", module, name, f"failed dt={elapsed:.0f}ms error={type(e).__name__}: {str(e)[:100]}")
            raise
        else:
            elapsed = (time.perf_counter() - start_time) * 1000
            self._depth -= 1
            self._span_stack.pop()
            self._write("INFO", module, name, f"end ok dt={elapsed:.0f}ms")

    def event(self, message, level="INFO", **meta):
        """Log a one-off event within the current span."""
        if not self._should_log(level):
            return

        module = ""
        func = ""
        if self._span_stack:
            func, module, _ = self._span_stack[-1]

        meta_str = " ".join(f"{k}={summarize(v)}" for k, v in meta.items())
        full_message = f"{message} {meta_str}".strip()
        self._write(level, module, func, full_message, meta)


def summarize(obj, max_len=200):
    """Compact one-line description of a traced value, at most max_len chars."""
    try:
        text = _describe(obj)
    except Exception:
        text = f"<{type(obj).__name__}>"
    return text if len(text) <= max_len else text[:max_len - 3] + "..."


def _digest(data):
    return hashlib.md5(data).hexdigest()[:8]


def _describe(obj):
    name = type(obj).__name__

    if obj is None or isinstance(obj, (bool, int, float)):
        return str(obj)

    if isinstance(obj, np.ndarray):
        # only small arrays are hashed by content
        payload = obj.tobytes() if 0 < obj.size < 1000 else str(obj.shape).encode()
        shape = "x".join(str(s) for s in obj.shape)
        return f"ndarray({obj.dtype},{shape},h={_digest(payload)})"

    if hasattr(obj, "pixels") and hasattr(obj, "stage"):
        return f"{name}({obj.width}x{obj.height},stage={obj.stage.value})"

    if isinstance(obj, BaseModel):
        return f"{name}(fields={list(type(obj).model_fields)[:3]}...)"

    if isinstance(obj, str):
        return repr(obj) if len(obj) <= 50 else f"str(len={len(obj)},h={_digest(obj.encode())})"

    if isinstance(obj, bytes):
        return f"bytes(len={len(obj)},h={_digest(obj)})"

    if isinstance(obj, (list, tuple)):
        if len(obj) <= 4 and all(isinstance(v, (int, float)) for v in obj):
            # colours and bounding boxes print in full
            return f"{name}({', '.join(f'{v:g}' for v in obj)})"
        first = type(obj[0]).__name__ if obj else "-"
        return f"{name}(len={len(obj)},first={first})"

    if isinstance(obj, dict):
        return f"dict(len={len(obj)},keys=[{','.join(str(k) for k in list(obj)[:5])}])"

    return f"<{name}>"


def trace(label=None, arg_names=None):
    """
    Decorator to trace function execution.

    Wraps a function in a span that logs start/end with timing.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _tracer.config.enabled:
                return func(*args, **kwargs)

            func_module = func.__module__.split(".")[-1] if func.__module__ else ""
            func_name = label or func.__name__

            meta = {}
            if arg_names:
                for name in arg_names:
                    if name in kwargs:
                        meta[name] = kwargs[name]

            with _tracer.span(func_name, module=func_module, **meta):
                result = func(*args, **kwargs)
                return result

        return wrapper
    return decorator


# Global tracer instance
_tracer = Tracer()


def get_tracer():
    """Get the global tracer instance."""
    return _tracer


def configure_tracer(enabled=False, level="INFO", file_path=None, json_output=False):
    """Configure the global tracer."""
    _tracer.config.configure(
        enabled=enabled,
        level=level,
        file_path=file_path,
        json_output=json_output,
    )
