"""
Scheduler for word count runs.

One runner drives every concurrency strategy. The strategies differ only in
how work units reach the unit counter and when local tables are merged; they
all share the partitioner, the unit counter, the merge engine and the run
ledger, so they produce identical tables for identical input.

Dispatch strategies:
    sequential  count every unit in the calling thread
    pool        flat fan-out onto a bounded executor, merged by the coordinator thread
    futures     one future per unit, merged from completion callbacks
    threads     materialize the input, one thread per contiguous partition
    recursive   divide-and-conquer over the materialized input with a split threshold

Merge strategies (pool, futures, threads):
    incremental merge each local table as soon as its unit finishes
    batched     keep every local table and merge after all units finish
"""

import logging
import threading
import time
import uuid
from collections import Counter
from concurrent.futures import (
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
    FIRST_COMPLETED,
    FIRST_EXCEPTION,
)
from dataclasses import dataclass
from itertools import islice
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from wikicount.common.config import WordCountConfig
from wikicount.common.documents import Document, PageSource, iter_documents
from wikicount.common.errors import CountingError, WordCountError
from wikicount.coordinator.job_manager import RunLedger, RunState
from wikicount.coordinator.metrics import MetricsCollector, RunMetrics
from wikicount.coordinator.partitioner import WorkUnit, partition, split_evenly, split_in_half
from wikicount.worker.count_executor import UnitResult, count_unit
from wikicount.worker.merge_engine import GlobalTable, merge_into

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of a completed run"""
    counts: Mapping[str, int]
    documents_processed: int
    units_counted: int
    elapsed_ms: int
    state: RunState
    metrics: Optional[RunMetrics] = None


class DispatchStrategy:
    """How work units are handed to counters and when their tables are merged"""

    name = ""
    uses_executor = True

    def __init__(self, runner: "WordCountRunner"):
        self.runner = runner
        self.config = runner.config

    def execute(self, documents: Iterator[Document], executor: Optional[Executor]):
        raise NotImplementedError


class SequentialDispatch(DispatchStrategy):
    """No concurrency: count and merge unit by unit in the calling thread"""

    name = "sequential"
    uses_executor = False

    def execute(self, documents, executor):
        for unit in self.runner.units(documents):
            self.runner.complete(self.runner.count_inline(unit))


class PoolDispatch(DispatchStrategy):
    """Flat fan-out onto a fixed-size pool; only the coordinator thread merges"""

    name = "pool"

    def execute(self, documents, executor):
        if self.config.merge == "incremental":
            self._execute_incremental(documents, executor)
        else:
            self._execute_batched(documents, executor)

    def _execute_incremental(self, documents, executor):
        in_flight: Dict[Future, int] = {}
        limit = self.config.in_flight_limit

        for unit in self.runner.units(documents):
            if len(in_flight) >= limit:
                self._drain(in_flight, FIRST_COMPLETED)
            in_flight[self.runner.submit(executor, unit)] = unit.unit_id

        while in_flight:
            self._drain(in_flight, FIRST_COMPLETED)

    def _drain(self, in_flight: Dict[Future, int], return_when: str):
        done, _ = wait(in_flight, return_when=return_when)
        for future in done:
            unit_id = in_flight.pop(future)
            self.runner.complete(self.runner.collect(future, unit_id))

    def _execute_batched(self, documents, executor):
        futures: List[Future] = []
        unit_ids: List[int] = []
        for unit in self.runner.units(documents):
            futures.append(self.runner.submit(executor, unit))
            unit_ids.append(unit.unit_id)

        logger.info(f"Dispatched {len(futures)} units, waiting for all of them")
        results = [self.runner.collect(future, unit_id) for future, unit_id in zip(futures, unit_ids)]
        for result in results:
            self.runner.complete(result)


class FuturesDispatch(DispatchStrategy):
    """
    Future composition: each unit is a future and merging hangs off its
    completion. Incremental mode merges from the completion callbacks under
    the global table lock; batched mode joins all futures and then folds the
    tables in submission order.
    """

    name = "futures"

    def execute(self, documents, executor):
        if self.config.merge == "incremental":
            self._execute_incremental(documents, executor)
        else:
            self._execute_batched(documents, executor)

    def _execute_incremental(self, documents, executor):
        limit = self.config.in_flight_limit
        slots = threading.BoundedSemaphore(limit)
        submitted = 0

        for unit in self.runner.units(documents):
            slots.acquire()
            if self.runner.failed:
                slots.release()
                break
            future = self.runner.submit(executor, unit)
            future.add_done_callback(self._merge_callback(unit.unit_id, slots))
            submitted += 1

        # wait() can return before done-callbacks have run; holding every
        # slot means every callback has finished merging
        for _ in range(limit):
            slots.acquire()
        logger.info(f"All {submitted} futures merged")
        self.runner.raise_if_failed()

    def _merge_callback(self, unit_id: int, slots: threading.BoundedSemaphore):
        def on_done(future: Future):
            try:
                if future.cancelled():
                    return
                self.runner.complete(self.runner.collect(future, unit_id))
            except BaseException as e:
                # Callback exceptions are swallowed by concurrent.futures; hand it to the coordinator
                self.runner.record_failure(e)
            finally:
                slots.release()
        return on_done

    def _execute_batched(self, documents, executor):
        futures: Dict[Future, int] = {}
        for unit in self.runner.units(documents):
            futures[self.runner.submit(executor, unit)] = unit.unit_id

        done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        for future in done:
            if future.exception() is not None:
                self.runner.collect(future, futures[future])

        results = [self.runner.collect(future, futures[future]) for future in futures]
        logger.info(f"All {len(results)} futures completed, merging")
        for result in results:
            self.runner.complete(result)


class ThreadSplitDispatch(DispatchStrategy):
    """
    Manual split: read the whole input, cut it into worker_count contiguous
    partitions and start one thread per partition.
    """

    name = "threads"
    uses_executor = False

    def execute(self, documents, executor):
        document_list = list(documents)
        self.runner.sample_memory()
        units = split_evenly(document_list, self.config.worker_count)
        for unit in units:
            self.runner.register(unit)
        self.runner.ledger.start_counting()
        logger.info(f"Split {len(document_list)} documents into {len(units)} thread partitions")

        results: List[Optional[UnitResult]] = [None] * len(units)
        threads = []
        for index, unit in enumerate(units):
            thread = threading.Thread(
                target=self._run_partition,
                args=(unit, results, index),
                name=f"wikicount-partition-{unit.unit_id}",
            )
            threads.append(thread)

        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.runner.raise_if_failed()
        if self.config.merge == "batched":
            for result in results:
                self.runner.complete(result)

    def _run_partition(self, unit: WorkUnit, results: List[Optional[UnitResult]], index: int):
        try:
            result = self.runner.count_inline(unit)
            if self.config.merge == "incremental":
                self.runner.complete(result)
            else:
                results[index] = result
        except BaseException as e:
            self.runner.record_failure(e)


@dataclass
class _Split:
    """Inner node of the recursion tree: the two halves of a slice"""
    left: object
    right: object


class RecursiveDispatch(DispatchStrategy):
    """
    Divide-and-conquer: any slice longer than threshold is halved until the
    halves fit. The coordinator thread does the splitting and submits every
    leaf slice to the pool as its own unit, so leaves run in parallel on
    either executor kind. The leaf tables are then merged pairwise up the
    same tree and the root table goes into the global table once.
    """

    name = "recursive"

    def execute(self, documents, executor):
        document_list = list(documents)
        self.runner.sample_memory()
        self.runner.ledger.start_counting()
        if not document_list:
            return
        tree = self._fork(executor, document_list, 0)
        logger.info(f"Forked {len(self.runner.ledger.units)} leaf units at threshold {self.config.threshold}")
        self.runner.table.merge(self._join(tree))

    def _fork(self, executor: Executor, documents: Sequence[Document], offset: int):
        self.runner.raise_if_failed()
        if len(documents) > self.config.threshold:
            left, right = split_in_half(documents)
            return _Split(
                left=self._fork(executor, left, offset),
                right=self._fork(executor, right, offset + len(left)),
            )

        # Leaf ids are document offsets, unique because slices never overlap
        unit = WorkUnit(unit_id=offset, documents=list(documents))
        self.runner.register(unit)
        return self.runner.submit(executor, unit), unit.unit_id

    def _join(self, node) -> Counter:
        if isinstance(node, _Split):
            return merge_into(self._join(node.left), self._join(node.right))

        future, unit_id = node
        result = self.runner.collect(future, unit_id)
        self.runner.ledger.mark_completed(result.unit_id, result.execution_time_ms)
        return result.counts


STRATEGIES = {
    strategy.name: strategy
    for strategy in (SequentialDispatch, PoolDispatch, FuturesDispatch, ThreadSplitDispatch, RecursiveDispatch)
}


class WordCountRunner:
    """Runs one word count over a document source with the configured strategy"""

    def __init__(self, config: WordCountConfig, metrics_collector: Optional[MetricsCollector] = None):
        self.config = config
        self.metrics_collector = metrics_collector or MetricsCollector()
        self.ledger = RunLedger()
        self.table = GlobalTable()
        self.run_id = ""
        self._failure: Optional[BaseException] = None
        self._failure_lock = threading.Lock()

    def run(self, source: Optional[Iterable[Optional[Document]]] = None) -> RunResult:
        """
        Count words across the source

        Args:
            source: Any iterable of Documents, None marking end-of-stream;
                defaults to a PageSource over config.source_path

        Returns:
            RunResult with the finalized global table

        Raises:
            WordCountError: On a fatal source or counting failure; no partial table is returned
        """
        config = self.config.validate()
        if source is None:
            source = PageSource(config.source_path, config.max_documents)

        self.ledger = RunLedger()
        self.table = GlobalTable()
        self._failure = None
        self.run_id = uuid.uuid4().hex[:8]

        strategy = STRATEGIES[config.dispatch](self)
        metrics = self.metrics_collector.start_run(self.run_id, config)
        logger.info(f"Run {self.run_id}: dispatch={config.dispatch} merge={config.merge} "
                    f"executor={config.executor} workers={config.worker_count} unit_size={config.unit_size}")

        start_time = time.time()
        executor = self._new_executor() if strategy.uses_executor else None
        try:
            strategy.execute(self._documents(source), executor)
            self.raise_if_failed()
        except BaseException as e:
            self._abort(executor, e)
            if isinstance(e, WordCountError) or not isinstance(e, Exception):
                raise
            raise CountingError(f"Run {self.run_id} aborted: {e}") from e
        finally:
            close = getattr(source, 'close', None)
            if callable(close):
                close()

        self._shutdown(executor)
        counts = self.table.finalize()
        self.ledger.start_counting()
        self.ledger.mark_done()
        elapsed_ms = int((time.time() - start_time) * 1000)

        status = self.ledger.get_status()
        self.metrics_collector.end_run(
            self.run_id, status['documents_counted'], status['units_completed'], len(counts)
        )
        if config.metrics_file:
            metrics.save_to_file(config.metrics_file)
        logger.info(f"Run {self.run_id}: {status['documents_counted']} documents in "
                    f"{status['units_completed']} units, {elapsed_ms}ms")

        return RunResult(
            counts=counts,
            documents_processed=status['documents_counted'],
            units_counted=status['units_completed'],
            elapsed_ms=elapsed_ms,
            state=self.ledger.state,
            metrics=metrics,
        )

    def _documents(self, source: Iterable[Optional[Document]]) -> Iterator[Document]:
        # Reading stays on the coordinator thread; islice stops pulling at the bound
        documents = islice(iter_documents(source), self.config.max_documents)
        count = 0
        for document in documents:
            count += 1
            yield document
        self.metrics_collector.end_collecting(self.run_id)
        logger.info(f"Run {self.run_id}: collected {count} documents")

    def _new_executor(self) -> Executor:
        if self.config.executor == "process":
            return ProcessPoolExecutor(max_workers=self.config.worker_count)
        return ThreadPoolExecutor(max_workers=self.config.worker_count, thread_name_prefix="wikicount")

    def _shutdown(self, executor: Optional[Executor]):
        """Release pool threads; all results are already merged, so the grace period is advisory"""
        if executor is None:
            return
        if self.config.grace_period > 0:
            closer = threading.Thread(target=executor.shutdown, kwargs={'wait': True}, daemon=True)
            closer.start()
            closer.join(self.config.grace_period)
            if closer.is_alive():
                logger.warning(f"Worker pool still shutting down after {self.config.grace_period}s grace period")
        else:
            executor.shutdown(wait=True)

    def _abort(self, executor: Optional[Executor], error: BaseException):
        self.record_failure(error)
        unit_id = getattr(error, 'unit_id', None)
        self.ledger.mark_failed(str(error) or type(error).__name__, unit_id=unit_id)
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)

    # Hooks shared by the strategies

    def register(self, unit: WorkUnit):
        self.ledger.register_unit(unit.unit_id, len(unit))

    def units(self, documents: Iterable[Document]) -> Iterator[WorkUnit]:
        """Partition the stream, registering each unit as it is cut"""
        for unit in partition(documents, self.config.unit_size):
            self.raise_if_failed()
            self.register(unit)
            self.ledger.start_counting()
            if unit.unit_id % 64 == 0:
                self.sample_memory()
            yield unit

    def sample_memory(self):
        self.metrics_collector.sample_memory(self.run_id)

    def submit(self, executor: Executor, unit: WorkUnit) -> Future:
        self.ledger.mark_assigned(unit.unit_id)
        return executor.submit(count_unit, unit)

    def count_inline(self, unit: WorkUnit) -> UnitResult:
        self.ledger.mark_assigned(unit.unit_id)
        try:
            return count_unit(unit)
        except Exception as e:
            raise CountingError(f"Unit {unit.unit_id} failed: {e}", unit_id=unit.unit_id) from e

    def collect(self, future: Future, unit_id: int) -> UnitResult:
        """Result of a submitted unit, with worker failures turned into CountingError"""
        try:
            return future.result()
        except WordCountError:
            raise
        except Exception as e:
            raise CountingError(f"Unit {unit_id} failed: {e}", unit_id=unit_id) from e

    def complete(self, result: UnitResult):
        """Merge a unit's local table and mark the unit done"""
        self.table.merge(result.counts, unit_id=result.unit_id)
        self.ledger.mark_completed(result.unit_id, result.execution_time_ms)

    def record_failure(self, error: BaseException):
        with self._failure_lock:
            if self._failure is None:
                self._failure = error

    @property
    def failed(self) -> bool:
        return self._failure is not None

    def raise_if_failed(self):
        failure = self._failure
        if failure is None:
            return
        if isinstance(failure, WordCountError):
            raise failure
        raise CountingError(f"Run {self.run_id} aborted: {failure}") from failure
