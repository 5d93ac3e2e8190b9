"""Queued debouncing for viewport relayout events.

Plotly emits many ``xaxis.range`` changes during a single drag. The figure
queues them here and applies at most one per tick, normally only the latest.
Ticks run on the active asyncio loop when there is one (Jupyter kernels) and on
a daemon ``threading.Timer`` otherwise.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional, Tuple

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_Call = Tuple[Tuple[Any, ...], Dict[str, Any]]


class QueuedDebouncer:
    """Run queued calls of ``callback`` no more often than every ``execute_every_ms``.

    Parameters
    ----------
    callback:
        Function receiving the queued positional and keyword arguments.
    execute_every_ms:
        Tick length in milliseconds; must be positive.
    drop_overflow:
        If ``True``, a tick runs only the newest queued call and discards the
        older ones. Otherwise every call runs, one per tick, in order.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        *,
        execute_every_ms: int,
        drop_overflow: bool = True,
    ) -> None:
        if execute_every_ms <= 0:
            raise ValueError("execute_every_ms must be > 0")
        self._callback = callback
        self._interval_s = execute_every_ms / 1000.0
        self._keep_last_only = bool(drop_overflow)
        self._pending: Deque[_Call] = deque()
        self._lock = threading.Lock()
        self._handle: Optional[Any] = None

    @property
    def pending(self) -> int:
        """Number of calls waiting for a tick."""
        with self._lock:
            return len(self._pending)

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._pending.append((args, dict(kwargs)))
            if self._handle is None:
                self._arm()

    def flush(self) -> None:
        """Run the newest queued call immediately and discard the rest."""
        with self._lock:
            self._disarm()
            latest = self._pending.pop() if self._pending else None
            self._pending.clear()
        if latest is not None:
            self._invoke(latest)

    def cancel(self) -> None:
        """Discard queued calls without running them."""
        with self._lock:
            self._disarm()
            self._pending.clear()

    def _arm(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            timer = threading.Timer(self._interval_s, self._tick)
            timer.daemon = True
            self._handle = timer
            timer.start()
        else:
            self._handle = loop.call_later(self._interval_s, self._tick)

    def _disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        with self._lock:
            self._handle = None
            if not self._pending:
                return
            if self._keep_last_only:
                call = self._pending.pop()
                self._pending.clear()
            else:
                call = self._pending.popleft()
                if self._pending:
                    self._arm()
        self._invoke(call)

    def _invoke(self, call: _Call) -> None:
        args, kwargs = call
        try:
            self._callback(*args, **kwargs)
        except Exception:
            logger.exception("QueuedDebouncer callback failed")
