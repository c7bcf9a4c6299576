"""Debounced background rendering for interactive previews.

Example Usage
-------------

    scheduler = PreviewScheduler(render=apply_adjustments, on_result=show)
    scheduler.request(image, 20, 1.1, 1.0)   # slider moved
    scheduler.request(image, 25, 1.1, 1.0)   # replaces the pending request
    ...
    scheduler.deliver()                      # on the controlling thread

Workers never touch shared state: each result is posted to a queue together
with the generation number of its request, and the controlling thread applies
it through :meth:`PreviewScheduler.deliver`.  A result is applied only if no
newer request has been made since, so a slow render that finishes late can
never overwrite a fresher preview.
"""
from __future__ import annotations

import concurrent.futures
import logging
import queue
import threading
from typing import Any, Callable, Optional, Set, Tuple

LOGGER = logging.getLogger("raster_studio")
WORKER_LOGGER = LOGGER.getChild("worker")

DEFAULT_DEBOUNCE_MS = 50
DEFAULT_WORKERS = 2


class PreviewScheduler:
    """Runs ``render`` on a thread pool with debounce and stale-result dropping.

    Args:
        render: Pure function producing a preview from the request arguments.
        on_result: Called with each fresh result, on the thread calling
            :meth:`deliver`.
        workers: Size of the worker pool.
        debounce_ms: Quiet period before a request starts.  Zero submits
            immediately.
        on_error: Called with exceptions raised by ``render``.  Without it
            :meth:`deliver` re-raises them.
    """

    def __init__(
        self,
        render: Callable[..., Any],
        on_result: Callable[[Any], None],
        *,
        workers: int = DEFAULT_WORKERS,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        if debounce_ms < 0:
            raise ValueError(f"debounce_ms must be non-negative, got {debounce_ms}")
        self._render = render
        self._on_result = on_result
        self._on_error = on_error
        self._debounce = debounce_ms / 1000.0
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="raster-studio-preview"
        )
        self._results: "queue.Queue[Tuple[int, Any, Optional[BaseException]]]" = queue.Queue()
        self._lock = threading.Lock()
        self._generation = 0
        self._delivered = 0
        self._timer: Optional[threading.Timer] = None
        self._futures: Set[concurrent.futures.Future] = set()
        self._closed = False

    @property
    def generation(self) -> int:
        """Number of the most recent request."""

        return self._generation

    def request(self, *args: Any) -> int:
        """Schedule a render, superseding any request that has not started."""

        with self._lock:
            if self._closed:
                raise RuntimeError("PreviewScheduler has been shut down")
            self._generation += 1
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._debounce > 0:
                timer = threading.Timer(self._debounce, self._submit, args=(generation, args))
                timer.daemon = True
                self._timer = timer
                timer.start()
                return generation
        self._submit(generation, args)
        return generation

    def _submit(self, generation: int, args: Tuple[Any, ...]) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                LOGGER.debug("Preview request %s superseded before start", generation)
                return
            future = self._executor.submit(self._run, generation, args)
            self._futures.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future: concurrent.futures.Future) -> None:
        with self._lock:
            self._futures.discard(future)

    def _run(self, generation: int, args: Tuple[Any, ...]) -> None:
        try:
            result = self._render(*args)
        except Exception as exc:  # pylint: disable=broad-except
            WORKER_LOGGER.exception("Preview render %s failed", generation)
            self._results.put((generation, None, exc))
            return
        WORKER_LOGGER.debug("Preview render %s finished", generation)
        self._results.put((generation, result, None))

    def deliver(self, block: bool = False, timeout: Optional[float] = None) -> int:
        """Apply queued results on the calling thread.

        Args:
            block: Wait for the first result when the queue is empty.
            timeout: Upper bound for that wait, in seconds.

        Returns:
            How many results reached ``on_result``/``on_error``.
        """

        delivered = 0
        try:
            item = self._results.get(block=block, timeout=timeout)
        except queue.Empty:
            return 0
        while True:
            generation, result, error = item
            if generation < self._generation or generation <= self._delivered:
                LOGGER.debug("Discarding stale preview %s (latest %s)", generation, self._generation)
            else:
                self._delivered = generation
                delivered += 1
                if error is not None:
                    if self._on_error is None:
                        raise error
                    self._on_error(error)
                else:
                    self._on_result(result)
            try:
                item = self._results.get_nowait()
            except queue.Empty:
                return delivered

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no request is pending or rendering."""

        with self._lock:
            timer = self._timer
        if timer is not None:
            timer.join(timeout)
        with self._lock:
            futures = set(self._futures)
        _, not_done = concurrent.futures.wait(futures, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "PreviewScheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.shutdown()
        return False


__all__ = ["DEFAULT_DEBOUNCE_MS", "DEFAULT_WORKERS", "PreviewScheduler"]
