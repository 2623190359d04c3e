from __future__ import annotations
from collections.abc import Callable
import threading
import time
import structlog


logger = structlog.get_logger()



class PausableTimer:
    '''A single-shot delayed callback that can be paused and resumed.

    'start()' arms the timer with the remaining delay; 'pause()' stops
    it and keeps the rest of the delay. Calling either twice in a row
    changes nothing. After the callback has fired the timer is spent,
    and further calls only log a warning.'''


    def __init__(self, callback: Callable[[], object], delay: float):
        if delay < 0:
            raise ValueError(f'The delay must not be negative: {delay}')

        self._callback: Callable[[], object] | None = callback
        self._remaining = float(delay)
        self._started_at: float | None = None
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()


    @property
    def remaining(self) -> float:
        '''Seconds left before the callback fires.'''

        with self._lock:
            if self._started_at is None:
                return self._remaining
            return max(0.0, self._remaining - (time.monotonic() - self._started_at))


    @property
    def is_running(self) -> bool:
        return self._timer is not None


    @property
    def is_spent(self) -> bool:
        return self._callback is None


    def start(self) -> None:
        '''Starts or resumes the timer.'''

        with self._lock:
            if self._callback is None:
                logger.warning('timer_already_destroyed', action='start')
                return
            if self._timer is not None:
                return

            self._started_at = time.monotonic()
            self._timer = threading.Timer(self._remaining, self._on_timeout)
            self._timer.daemon = True
            self._timer.start()


    def pause(self) -> None:
        '''Pauses the timer and keeps the remaining delay.'''

        with self._lock:
            if self._callback is None:
                logger.warning('timer_already_destroyed', action='pause')
                return
            if self._timer is None:
                return

            self._timer.cancel()
            self._timer = None
            assert self._started_at is not None
            self._remaining = max(0.0, self._remaining - (time.monotonic() - self._started_at))
            self._started_at = None


    def _on_timeout(self) -> None:
        with self._lock:
            callback = self._callback
            if callback is None or threading.current_thread() is not self._timer:
                # Paused (and maybe restarted) while this timer thread
                # was already running.
                return
            self._callback = None
            self._timer = None
            self._started_at = None
            self._remaining = 0.0

        callback()
