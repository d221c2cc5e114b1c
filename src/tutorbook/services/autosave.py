"""
Debounced autosave with retry.

Used by editors that persist as the user types: every change restarts
a short timer and only the last state is saved. Failed saves are
retried with exponential backoff, except validation errors (HTTP 400),
which retrying cannot fix.
"""

import json
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


DEFAULT_DELAY = 0.5
DEFAULT_MAX_RETRIES = 3


def _canonical(data: Any) -> str:
    return json.dumps(data, sort_keys=True, default=str)


class Autosaver:
    """
    Debounced saver for one piece of editable data.

    Attributes:
        is_saving: A save is running
        last_saved: When the last successful save finished
        error: Last error after retries were exhausted (None after a success)

    Examples:
        >>> saver = Autosaver(lambda data: api.update_lesson(lesson_id, data),
        ...                   initial_data={"subject": "Math"})
        >>> saver.update({"subject": "Physics"})   # saved ~0.5s later
        True
        >>> saver.update({"subject": "Physics"})   # unchanged, ignored
        False
        >>> saver.close()
    """

    def __init__(
        self,
        save_function: Callable[[Any], Any],
        initial_data: Any = None,
        delay: float = DEFAULT_DELAY,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_base: float = 1.0
    ):
        """
        Initialize Autosaver.

        Args:
            save_function: Persists the data; raises on failure
            initial_data: Data already persisted (changes are compared to it)
            delay: Debounce delay in seconds
            max_retries: Attempts per save, including the first
            backoff_base: First retry delay in seconds; doubles per retry
        """
        self.save_function = save_function
        self.delay = delay
        self.max_retries = max(1, max_retries)
        self.backoff_base = backoff_base

        self.is_saving = False
        self.last_saved: Optional[datetime] = None
        self.error: Optional[Exception] = None

        self._lock = threading.Lock()
        self._previous = _canonical(initial_data)
        self._pending: Any = initial_data
        self._timer: Optional[threading.Timer] = None
        self._stop = threading.Event()

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    def update(self, data: Any) -> bool:
        """
        Register new data and (re)start the debounce timer.

        Returns:
            False if the data equals what was last saved (nothing scheduled)
        """
        if self.closed:
            logger.debug("Autosave closed, ignoring update")
            return False

        with self._lock:
            if _canonical(data) == self._previous:
                # Reverted to the saved state: drop the scheduled save
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None
                self._pending = data
                return False

            self._pending = data
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._on_timer)
            self._timer.daemon = True
            self._timer.start()
        return True

    def save_now(self, data: Any = None) -> Optional[bool]:
        """
        Save immediately, bypassing the debounce.

        Args:
            data: Data to save (defaults to the latest update)

        Returns:
            True when saved, False when stopped by close(), None when
            skipped because another save is running

        Raises:
            Exception: The save error, once retries are exhausted or on HTTP 400
        """
        if self.closed:
            logger.debug("Autosave closed, skipping save")
            return False

        with self._lock:
            if self.is_saving:
                logger.debug("Autosave already in progress, skipping")
                return None
            self.is_saving = True
            if data is None:
                data = self._pending
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

        try:
            return self._save_with_retry(data)
        finally:
            with self._lock:
                self.is_saving = False

    def close(self):
        """Stop the timer and any pending retry. Nothing is saved afterwards."""
        self._stop.set()
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        logger.debug("Autosave closed, all timers cleared")

    def _on_timer(self):
        try:
            self.save_now()
        except Exception as e:
            # Already recorded in self.error; the timer thread has no caller
            logger.error(f"Autosave failed after retries: {e}")

    def _save_with_retry(self, data: Any) -> bool:
        retry = 0
        while True:
            if self.closed:
                logger.debug("Autosave closed, cancelling save")
                return False

            try:
                self.save_function(data)
            except Exception as e:
                logger.warning(f"Autosave attempt {retry + 1} failed: {e}")

                if self.closed:
                    return False

                if getattr(e, "status", None) == 400:
                    logger.error("Bad request, data validation error, not retrying")
                    self.error = e
                    raise

                if retry >= self.max_retries - 1:
                    logger.error("Autosave max retries reached")
                    self.error = e
                    raise

                wait = (2 ** retry) * self.backoff_base
                logger.info(f"Retrying autosave in {wait:.1f}s")
                if self._stop.wait(wait):
                    logger.debug("Autosave retry cancelled")
                    return False
                retry += 1
                continue

            if self.closed:
                return False

            self.last_saved = datetime.now()
            self.error = None
            self._previous = _canonical(data)
            return True


class AutosaverFactory:
    """
    Builds Autosavers with the configured debounce and retry limits.

    Examples:
        >>> factory = AutosaverFactory(delay=config.autosave_delay,
        ...                            max_retries=config.autosave_max_retries)
        >>> saver = factory.create(save_text, initial_data="Read chapter 3")
    """

    def __init__(self, delay: float = DEFAULT_DELAY, max_retries: int = DEFAULT_MAX_RETRIES):
        self.delay = delay
        self.max_retries = max_retries

    def create(self, save_function: Callable[[Any], Any], initial_data: Any = None) -> Autosaver:
        return Autosaver(save_function, initial_data=initial_data,
                         delay=self.delay, max_retries=self.max_retries)
