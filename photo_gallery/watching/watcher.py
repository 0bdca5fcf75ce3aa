import logging
import queue
import time
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .. import config

# Opened/closed events are ignored; the pipeline itself opens every source
WATCHED_EVENT_TYPES = {'created', 'modified', 'deleted', 'moved'}


class _QueueingEventHandler(FileSystemEventHandler):
    """Collect file change events into a queue for the watch loop."""

    def __init__(self, event_queue: "queue.Queue[str]"):
        super().__init__()
        self._queue = event_queue

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in WATCHED_EVENT_TYPES:
            return
        logging.debug(f"Queued {event.event_type} event for {event.src_path}")
        self._queue.put(event.src_path)


class WatchLoop:
    """
    Re-runs the gallery build whenever the input directory changes.

    Events are coalesced: after the first one the loop waits until no new
    event has arrived for `settle` seconds, then runs once. A burst that
    never settles is cut off after `max_wait` seconds. Events that
    arrive during a run stay queued and trigger the next run.
    """

    def __init__(self,
                 input_dir: Path,
                 on_change: Callable[[], object],
                 settle: float = config.WATCH_SETTLE_SECONDS,
                 max_wait: float = config.WATCH_MAX_WAIT_SECONDS):
        self.input_dir = input_dir
        self.on_change = on_change
        self.settle = settle
        self.max_wait = max_wait
        self._queue: "queue.Queue[str]" = queue.Queue()
        self._handler = _QueueingEventHandler(self._queue)
        self._observer = None

    def __enter__(self) -> "WatchLoop":
        self._observer = Observer()
        self._observer.schedule(self._handler, str(self.input_dir), recursive=False)
        self._observer.start()
        logging.info(f"Watching {self.input_dir}")
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._observer is not None:
            logging.debug("Stopping watchdog observer")
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def wait_for_changes(self) -> int:
        """Blocks until a burst of events has settled; returns how many arrived."""
        self._queue.get()
        deadline = time.monotonic() + self.max_wait
        count = 1
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logging.debug(f"Still changing after {self.max_wait}s; rebuilding anyway")
                break
            try:
                self._queue.get(timeout=min(self.settle, remaining))
            except queue.Empty:
                break
            count += 1
        return count

    def run_forever(self):
        while True:
            count = self.wait_for_changes()
            logging.info(f"Detected {count} change(s) in {self.input_dir}; regenerating")
            self.on_change()
