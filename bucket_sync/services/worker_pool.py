"""
Bounded fan-out/fan-in worker pool used by the upload and delete phases.
"""
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

from loguru import logger


T = TypeVar('T')
R = TypeVar('R')

_CLOSED = object()


class WorkerPool(Generic[T, R]):
    """
    Fixed number of worker threads pulling tasks from a shared bounded queue.

    The producer feeds items into the queue and closes it with one sentinel
    per worker once the input is exhausted; workers drain the queue and
    exit, and run() returns after every worker has finished.

    When the cancel event is set, the producer stops dispatching and the
    workers discard whatever is still queued. Tasks already running are
    allowed to finish.
    """

    def __init__(self, workers: int, cancel_event: Optional[threading.Event] = None, name: str = 'worker'):
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.workers = workers
        self.cancel_event = cancel_event or threading.Event()
        self.name = name
        self.dispatched = 0
        self.discarded = 0

    def run(
        self,
        items: Iterable[T],
        handler: Callable[[T], R],
        on_error: Optional[Callable[[T, Exception], R]] = None
    ) -> List[R]:
        """
        Execute handler once for each item.

        Args:
            items: Tasks to run; consumed lazily by the producer
            handler: Called from a worker thread; should return a result rather than raise
            on_error: Builds the result for an item whose handler raised; without it
                the item yields no result

        Returns:
            Results of every dispatched item that produced one, in completion order
        """
        tasks: queue.Queue = queue.Queue(maxsize=self.workers * 2)
        results: List[R] = []
        results_lock = threading.Lock()
        counter_lock = threading.Lock()
        self.dispatched = 0
        self.discarded = 0

        def worker() -> None:
            while True:
                item = tasks.get()
                try:
                    if item is _CLOSED:
                        return
                    if self.cancel_event.is_set():
                        with counter_lock:
                            self.discarded += 1
                        continue
                    try:
                        result = handler(item)
                    except Exception as e:
                        logger.exception(f"Unhandled error in {self.name} task {item!r}: {e}")
                        if on_error is None:
                            continue
                        result = on_error(item, e)
                    with results_lock:
                        results.append(result)
                finally:
                    tasks.task_done()

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix=self.name) as executor:
            futures = [executor.submit(worker) for _ in range(self.workers)]
            try:
                for item in items:
                    if self.cancel_event.is_set():
                        logger.warning(f"Cancellation requested, no further {self.name} tasks will be dispatched")
                        break
                    tasks.put(item)
                    self.dispatched += 1
            finally:
                for _ in futures:
                    tasks.put(_CLOSED)
            for future in futures:
                future.result()

        return results
