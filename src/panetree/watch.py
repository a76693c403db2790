"""Debounced filesystem watching.

Change notifications arrive on watchdog's observer thread and are handed to
the asyncio loop, where a single timer is re-armed on every event. The
callback therefore runs on the loop, once per burst, after the burst has
been quiet for the debounce delay. When a recursive watch cannot be set up
the callback is instead run on a fixed interval.
"""
import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# Emitted when files are merely read, including by our own tree walk
_READ_ONLY_EVENTS = frozenset({"opened", "closed_no_write"})


class _ChangeHandler(FileSystemEventHandler):
    """Forward watchdog events to the debouncer on its loop."""

    def __init__(self, debouncer: "WatchDebouncer"):
        super().__init__()
        self.debouncer = debouncer

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in _READ_ONLY_EVENTS:
            return
        self.debouncer.notify_threadsafe()


class WatchDebouncer:
    """Run ``callback`` at most once per quiet period of changes under ``root``."""

    def __init__(
        self,
        root: Union[str, Path],
        callback: Callable[[], None],
        delay: float = 0.3,
        poll_interval: float = 2.0,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        """Initialize the debouncer.

        Args:
            root: Directory watched recursively
            callback: Rebuild action, invoked on the event loop
            delay: Quiet period in seconds before ``callback`` fires
            poll_interval: Seconds between calls when native watching fails
            observer_factory: Creates the watchdog observer
        """
        self.root = Path(root)
        self.callback = callback
        self.delay = delay
        self.poll_interval = poll_interval
        self.observer_factory = observer_factory

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._observer = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._poll: Optional[asyncio.TimerHandle] = None
        self._running = False

    @property
    def polling(self) -> bool:
        """True when running on the fixed-interval fallback."""
        return self._poll is not None

    def start(self) -> bool:
        """Start watching. Must be called from the running event loop.

        Returns:
            True if native change notification is active, False if polling
        """
        self._loop = asyncio.get_running_loop()
        self._running = True

        observer = self.observer_factory()
        try:
            observer.schedule(_ChangeHandler(self), str(self.root), recursive=True)
            observer.start()
        except Exception as e:
            logger.warning(f"Cannot watch {self.root} ({e}), polling every {self.poll_interval}s")
            self._schedule_poll()
            return False

        self._observer = observer
        logger.debug(f"Watching {self.root}")
        return True

    def notify(self) -> None:
        """Record one change: restart the quiet-period timer."""
        if not self._running:
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._loop.call_later(self.delay, self._fire)

    def notify_threadsafe(self) -> None:
        """Record one change from any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self.notify)
        except RuntimeError:
            # Loop closed between the check and the call
            pass

    def _fire(self) -> None:
        self._timer = None
        if self._running:
            self.callback()

    def _schedule_poll(self) -> None:
        self._poll = self._loop.call_later(self.poll_interval, self._poll_tick)

    def _poll_tick(self) -> None:
        if not self._running:
            return
        self._schedule_poll()
        self.callback()

    def stop(self) -> None:
        """Cancel any pending timer and release the watch. Safe to call twice."""
        self._running = False

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._poll is not None:
            self._poll.cancel()
            self._poll = None

        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=1.0)
            logger.debug(f"Stopped watching {self.root}")
