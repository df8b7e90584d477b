"""Interaction-mode decisions and stale-result bookkeeping.

``InteractionModeController`` is the only stateful piece of the pipeline. It
looks at request timestamps alone (never at plotting cost) and answers
whether the next evaluation should run in reduced-density interactive mode.

``GenerationCounter`` hands out monotonically increasing generation tokens so
a caller can discard results computed for a superseded request.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .config import DEFAULT_CONFIG, PlotConfig
from .domain import Mode

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def next_mode(
    now: float,
    last_viewport_change: Optional[float],
    last_evaluation: Optional[float],
    window_s: float,
) -> Mode:
    """Return the mode for a request arriving at ``now`` (seconds).

    The request is interactive when either the viewport changed or the
    previous evaluation was requested less than ``window_s`` ago.
    """
    for stamp in (last_viewport_change, last_evaluation):
        if stamp is not None and 0.0 <= now - stamp < window_s:
            return Mode.INTERACTIVE
    return Mode.SETTLED


class InteractionModeController:
    """Settled/interactive state machine driven by request timestamps.

    Parameters
    ----------
    window_ms : float, optional
        Requests closer together than this are interactive. Defaults to
        ``config.interaction_window_ms``.
    clock : callable, optional
        Monotonic clock returning seconds; used when ``now`` is omitted.

    Examples
    --------
    >>> ctl = InteractionModeController(window_ms=300)
    >>> ctl.request(now=0.0).value
    'settled'
    >>> ctl.request(now=0.1).value
    'interactive'
    >>> ctl.request(now=1.0).value
    'settled'
    """

    def __init__(
        self,
        *,
        window_ms: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        config: PlotConfig = DEFAULT_CONFIG,
    ) -> None:
        window_ms = config.interaction_window_ms if window_ms is None else float(window_ms)
        if window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        self._window_s = window_ms / 1000.0
        self._clock = clock
        self._lock = threading.Lock()
        self._last_request: Optional[float] = None
        self._last_viewport_change: Optional[float] = None
        self._mode = Mode.SETTLED

    @property
    def mode(self) -> Mode:
        """Return the mode decided by the most recent request."""
        return self._mode

    @property
    def window_ms(self) -> float:
        return self._window_s * 1000.0

    def _stamp(self, now: Optional[float], previous: Optional[float]) -> float:
        stamp = self._clock() if now is None else float(now)
        if previous is not None and stamp < previous:
            raise ValueError(f"timestamps must be monotonic: {stamp} < {previous}")
        return stamp

    def viewport_changed(self, now: Optional[float] = None) -> None:
        """Record a viewport change (pan or zoom) at ``now``."""
        with self._lock:
            self._last_viewport_change = self._stamp(now, self._last_viewport_change)

    def request(self, now: Optional[float] = None) -> Mode:
        """Decide the mode for a plot request arriving at ``now`` and record it."""
        with self._lock:
            latest = max(
                (s for s in (self._last_request, self._last_viewport_change) if s is not None),
                default=None,
            )
            stamp = self._stamp(now, latest)
            mode = next_mode(stamp, self._last_viewport_change, self._last_request, self._window_s)
            if mode is not self._mode:
                logger.debug("interaction mode %s -> %s", self._mode.value, mode.value)
            self._last_request = stamp
            self._mode = mode
            return mode

    def reset(self) -> None:
        """Forget all timestamps; the next request is settled."""
        with self._lock:
            self._last_request = None
            self._last_viewport_change = None
            self._mode = Mode.SETTLED


class GenerationCounter:
    """Thread-safe source of generation tokens for plot requests."""

    def __init__(self, start: int = 0) -> None:
        self._lock = threading.Lock()
        self._current = int(start)

    @property
    def current(self) -> int:
        return self._current

    def next(self) -> int:
        """Allocate and return a new, larger generation."""
        with self._lock:
            self._current += 1
            return self._current

    def is_current(self, generation: int) -> bool:
        """Return True when ``generation`` is the latest one handed out."""
        return generation == self._current


__all__ = ["GenerationCounter", "InteractionModeController", "next_mode"]
