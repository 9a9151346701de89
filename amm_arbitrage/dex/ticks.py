"""
Tick sources: async iterators of TickEvent that drive the monitor.
"""

import asyncio
from typing import AsyncIterator, Optional

from web3 import Web3

from ..interfaces import SystemTimeProvider, TimeProvider
from ..types import TickEvent
from ..utils import get_logger

logger = get_logger(__name__)


class BlockTickSource:
    """
    Polls the node for the latest block number and yields one tick per new block.

    Blocks skipped between two polls produce a single tick for the newest one.
    """

    def __init__(
        self,
        web3: Web3,
        poll_sec: float = 2.0,
        time_provider: Optional[TimeProvider] = None,
        max_ticks: Optional[int] = None,
    ):
        self.web3 = web3
        self.poll_sec = poll_sec
        self.time_provider = time_provider or SystemTimeProvider()
        self.max_ticks = max_ticks
        self.last_block: Optional[int] = None

    async def _block_number(self) -> int:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self.web3.eth.block_number)

    async def __aiter__(self) -> AsyncIterator[TickEvent]:
        emitted = 0
        while self.max_ticks is None or emitted < self.max_ticks:
            try:
                block = await self._block_number()
            except Exception as e:
                logger.warning(f"block_number poll failed: {e}")
            else:
                if self.last_block is None or block > self.last_block:
                    self.last_block = block
                    emitted += 1
                    yield TickEvent(block, self.time_provider.current_timestamp())
            await asyncio.sleep(self.poll_sec)


class IntervalTickSource:
    """Yields a time-referenced tick every interval_sec."""

    def __init__(
        self,
        interval_sec: float,
        time_provider: Optional[TimeProvider] = None,
        max_ticks: Optional[int] = None,
    ):
        if interval_sec < 0:
            raise ValueError(f"interval_sec must be non-negative: {interval_sec}")
        self.interval_sec = interval_sec
        self.time_provider = time_provider or SystemTimeProvider()
        self.max_ticks = max_ticks

    async def __aiter__(self) -> AsyncIterator[TickEvent]:
        emitted = 0
        while self.max_ticks is None or emitted < self.max_ticks:
            if emitted:
                await asyncio.sleep(self.interval_sec)
            emitted += 1
            yield TickEvent(None, self.time_provider.current_timestamp())
