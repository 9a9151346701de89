"""
Monitoring loop: turns market ticks into scored arbitrage opportunities.

Lifecycle is IDLE -> RUNNING -> STOPPED. While running, ticks are queued on
a bounded queue and processed one at a time. Each tick has three phases:

1. Refresh: fetch every watched pair concurrently (bounded by
   max_concurrency) and, once all fetches have settled, write the fresh
   snapshots into the PairStore. A failed fetch keeps that pair's previous
   snapshot and produces one "market_data" error event.
2. Fee: read the network fee rate once. If that fails the tick emits one
   "fee_estimate" error event and skips evaluation entirely; no cycle is
   ever reported without its cost netted out.
3. Search and evaluate: enumerate cycles from the base asset and run each
   through the evaluator. Any per-path failure, including one raised by a
   plugged-in cost model, becomes an error event and only that path is
   dropped.

Nothing raised inside a tick escapes it.
"""

import asyncio
import inspect
import time
from enum import Enum
from typing import AsyncIterator, Callable, List, Optional, Tuple

from .config import MonitorConfig
from .costs import CostModel
from .evaluator import ArbitrageEvaluator
from .exceptions import (
    ConfigurationError,
    DataError,
    DegeneratePairError,
    MarketDataUnavailable,
    MonitorStateError,
)
from .interfaces import FeeEstimator, MarketDataSource, SystemTimeProvider, TimeProvider
from .metrics import MonitorMetrics
from .pair_store import PairStore
from .path_finder import PathFinder
from .simulator import TradeSimulator
from .types import Asset, DataErrorEvent, Opportunity, Pair, TickEvent, pair_key
from .utils import format_duration, get_logger

logger = get_logger(__name__)

OpportunityListener = Callable[[Opportunity], object]
ErrorListener = Callable[[DataErrorEvent], object]


class MonitorState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class MonitorLoop:
    """
    Owns the token graph and pair store for one monitoring session.

    Collaborators are injected: a MarketDataSource for reserves, a
    FeeEstimator for the network fee rate and an optional cost model,
    clock and metrics sink.
    """

    def __init__(
        self,
        config: MonitorConfig,
        market_data: MarketDataSource,
        fee_estimator: FeeEstimator,
        cost_model: Optional[CostModel] = None,
        time_provider: Optional[TimeProvider] = None,
        metrics: Optional[MonitorMetrics] = None,
    ):
        self.config = config
        self.market_data = market_data
        self.fee_estimator = fee_estimator
        self.cost_model = cost_model or config.gas.cost_model()
        self.time_provider = time_provider or SystemTimeProvider()
        self.metrics = metrics or MonitorMetrics()

        self.pair_store = PairStore()
        self.path_finder = PathFinder(self.pair_store.graph)
        self.simulator = TradeSimulator(self.pair_store)
        self.evaluator = ArbitrageEvaluator(
            self.simulator, config.slippage_tolerance, self.time_provider
        )

        self.state = MonitorState.IDLE
        self._listeners: List[OpportunityListener] = []
        self._error_listeners: List[ErrorListener] = []

        self._base: Optional[Asset] = None
        self._watched: List[Tuple[Asset, Asset]] = []
        self._amount_in = 0
        self._min_profit = 0

        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._tick_lock = asyncio.Lock()
        self._tick_task: Optional[asyncio.Task] = None
        self._stop_pending = False

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, callback: OpportunityListener) -> None:
        """
        Register a callback for every emitted opportunity.

        Coroutine results are awaited inside the tick. A returned Task or Future
        is left running in the background.
        """
        self._listeners.append(callback)

    def remove_listener(self, callback: OpportunityListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def add_error_listener(self, callback: ErrorListener) -> None:
        """Register a sync or async callback for non-fatal data errors."""
        self._error_listeners.append(callback)

    async def _notify(self, listeners, event) -> None:
        for callback in list(listeners):
            try:
                result = callback(event)
                # A returned Task or Future runs on its own; only coroutines are awaited
                if inspect.isawaitable(result) and not isinstance(
                    result, asyncio.Future
                ):
                    await result
            except Exception as e:
                logger.error(f"Listener {callback!r} failed: {e}", exc_info=True)

    async def _report(self, event: DataErrorEvent) -> None:
        logger.warning(f"[{event.kind}] {event.message}")
        self.metrics.record_data_error(event.kind)
        await self._notify(self._error_listeners, event)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def base_asset(self) -> Optional[Asset]:
        return self._base

    @property
    def watched_pairs(self) -> List[Tuple[Asset, Asset]]:
        return list(self._watched)

    def _configure(self) -> None:
        registry = self.config.registry()
        if len(registry) == 0:
            raise ConfigurationError("Monitor not configured: empty token universe")
        base = registry.get(self.config.base_asset)
        if base is None:
            raise ConfigurationError(
                f"Monitor not configured: base asset '{self.config.base_asset}' unknown"
            )

        if self.config.pairs:
            watched = registry.select_pairs(self.config.pairs)
        else:
            watched = registry.all_pairs()
        if not watched:
            raise ConfigurationError("Monitor not configured: no pairs to watch")

        self._base = base
        self._watched = watched
        self._amount_in = self.config.trade_amount_units()
        self._min_profit = self.config.min_profit_units()
        if self._amount_in <= 0:
            raise ConfigurationError(
                f"trade_amount {self.config.trade_amount} is below one base unit "
                f"of {base.symbol}"
            )

    async def start(self) -> None:
        """
        IDLE -> RUNNING.

        Raises:
            ConfigurationError: If no base asset or token universe is set up
            MonitorStateError: If the monitor was already stopped
        """
        if self.state is MonitorState.RUNNING:
            return
        if self.state is MonitorState.STOPPED:
            raise MonitorStateError(
                "Monitor cannot be restarted", state=self.state.value
            )

        self._configure()
        self._queue = asyncio.Queue(maxsize=self.config.tick_queue_size)
        self.state = MonitorState.RUNNING
        self._worker = asyncio.create_task(self._drain_ticks())

        logger.info(
            f"Monitor started: base {self._base.symbol}, {len(self._watched)} pairs, "
            f"max {self.config.max_hops} hops, size {self.config.trade_amount} "
            f"{self._base.symbol}"
        )

    async def stop(self) -> None:
        """
        RUNNING -> STOPPED, letting an in-flight tick finish first.

        Pending ticks are discarded and the graph and pair store cleared.
        Calling stop again is a no-op. When called from inside a tick (for
        example by a listener) the tick stops notifying and the cleanup runs
        as soon as it returns.
        """
        if self.state is MonitorState.STOPPED:
            return
        self.state = MonitorState.STOPPED

        if self._tick_task is not None and self._tick_task is asyncio.current_task():
            self._stop_pending = True
            logger.info("Monitor stopping after the current tick")
            return

        async with self._tick_lock:
            await self._shutdown()

    async def _shutdown(self) -> None:
        self._stop_pending = False
        worker, self._worker = self._worker, None
        if worker is not None and worker is not asyncio.current_task():
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass

        # Release wait_idle() callers blocked on ticks that will never run
        if self._queue is not None:
            while not self._queue.empty():
                self._queue.get_nowait()
                self._queue.task_done()

        self.pair_store.clear()
        logger.info("Monitor stopped")

    # ------------------------------------------------------------------
    # Tick intake
    # ------------------------------------------------------------------

    def submit_tick(self, tick: TickEvent) -> bool:
        """
        Queue a tick for processing.

        When the queue is full the oldest pending tick is dropped, since a
        newer market snapshot supersedes it.

        Returns:
            False if the monitor is not running
        """
        if self.state is not MonitorState.RUNNING or self._queue is None:
            logger.debug(f"Ignoring tick {tick.reference}: monitor {self.state.value}")
            return False

        if self._queue.full():
            dropped = self._queue.get_nowait()
            self._queue.task_done()
            self.metrics.ticks_dropped_total.inc()
            logger.warning(f"Tick queue full, dropped {dropped.reference}")

        self._queue.put_nowait(tick)
        return True

    async def wait_idle(self) -> None:
        """Wait until every queued tick has been processed."""
        if self._queue is not None:
            await self._queue.join()

    async def _drain_ticks(self) -> None:
        while self.state is MonitorState.RUNNING:
            tick = await self._queue.get()
            try:
                await self.process_tick(tick)
            except Exception as e:
                logger.error(f"Tick {tick.reference} aborted: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    async def run_forever(self, ticks: AsyncIterator[TickEvent]) -> None:
        """Start, feed ticks from an async iterator until it ends, then stop."""
        await self.start()
        try:
            async for tick in ticks:
                if self.state is not MonitorState.RUNNING:
                    break
                self.submit_tick(tick)
            await self.wait_idle()
        finally:
            await self.stop()

    # ------------------------------------------------------------------
    # Tick processing
    # ------------------------------------------------------------------

    async def process_tick(self, tick: TickEvent) -> List[Opportunity]:
        """
        Run refresh, fee, search and evaluate phases for one tick.

        Returns:
            Opportunities emitted for this tick

        Raises:
            MonitorStateError: If the monitor was never started
        """
        if self.state is MonitorState.IDLE:
            raise MonitorStateError("Monitor not started", state=self.state.value)

        async with self._tick_lock:
            if self.state is MonitorState.STOPPED:
                return []

            self._tick_task = asyncio.current_task()
            try:
                opportunities = await self._run_tick(tick)
            finally:
                self._tick_task = None

            if self._stop_pending:
                await self._shutdown()
        return opportunities

    async def _run_tick(self, tick: TickEvent) -> List[Opportunity]:
        started = time.perf_counter()
        ref = tick.reference

        await self._refresh_pairs(ref)
        if self.state is not MonitorState.RUNNING:
            return []

        try:
            fee_rate = await self.fee_estimator.current_rate()
        except Exception as e:
            await self._report(
                DataErrorEvent(
                    kind="fee_estimate",
                    message=f"Fee estimate failed, skipping evaluation: {e}",
                    tick_reference=ref,
                )
            )
            opportunities = []
        else:
            opportunities = await self._evaluate_cycles(fee_rate, ref)

        duration = time.perf_counter() - started
        self.metrics.record_tick(duration, len(self.pair_store))
        logger.debug(
            f"Tick {ref}: {len(opportunities)} opportunities "
            f"in {format_duration(duration)}"
        )
        return opportunities

    async def _fetch(
        self, semaphore: asyncio.Semaphore, asset_a: Asset, asset_b: Asset, ref: str
    ) -> Optional[Pair]:
        key = pair_key(asset_a, asset_b)
        async with semaphore:
            try:
                pair = await self.market_data.fetch_pair(asset_a, asset_b)
                if pair.key != key:
                    raise MarketDataUnavailable(
                        f"Source returned {pair.name} for "
                        f"{asset_a.symbol}/{asset_b.symbol}",
                        source="monitor",
                        pair=key,
                    )
            except Exception as e:
                await self._report(
                    DataErrorEvent(
                        kind="market_data",
                        message=(
                            f"Fetching {asset_a.symbol}/{asset_b.symbol} failed "
                            f"({type(e).__name__}: {e}); keeping previous snapshot"
                        ),
                        pair_key=key,
                        tick_reference=ref,
                    )
                )
                return None
        return pair

    async def _refresh_pairs(self, ref: str) -> None:
        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        results = await asyncio.gather(
            *(self._fetch(semaphore, a, b, ref) for a, b in self._watched)
        )
        # Writes only after every fetch settled, so search never sees a partial round
        for pair in results:
            if pair is not None:
                self.pair_store.upsert(pair)

    async def _evaluate_cycles(self, fee_rate: int, ref: str) -> List[Opportunity]:
        cycles = self.path_finder.find_cycles(self._base, self.config.max_hops)
        opportunities: List[Opportunity] = []

        for path in cycles:
            self.metrics.paths_evaluated_total.inc()
            try:
                cost = self.cost_model.estimate(path.hops, fee_rate)
                opportunity = self.evaluator.evaluate(
                    path, self._amount_in, cost, self._min_profit, ref
                )
            except DegeneratePairError as e:
                await self._report(
                    DataErrorEvent(
                        kind="degenerate_pair",
                        message=f"Dropped {path.describe()}: {e}",
                        path=path.describe(),
                        tick_reference=ref,
                    )
                )
                continue
            except DataError as e:
                await self._report(
                    DataErrorEvent(
                        kind="missing_pair",
                        message=f"Dropped {path.describe()}: {e}",
                        path=path.describe(),
                        tick_reference=ref,
                    )
                )
                continue
            except Exception as e:
                await self._report(
                    DataErrorEvent(
                        kind="evaluation",
                        message=f"Dropped {path.describe()}: {e}",
                        path=path.describe(),
                        tick_reference=ref,
                    )
                )
                continue

            if opportunity is None:
                continue

            logger.info(f"Opportunity {opportunity.format_log()}")
            self.metrics.record_opportunity(path.hops)
            opportunities.append(opportunity)
            await self._notify(self._listeners, opportunity)
            if self.state is not MonitorState.RUNNING:
                logger.info(f"Monitor stopped during tick {ref}, skipping other paths")
                break

        return opportunities
