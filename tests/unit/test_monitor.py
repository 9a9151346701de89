"""Unit tests for the MonitorLoop lifecycle and tick intake."""

import pytest

from amm_arbitrage.config import parse_config
from amm_arbitrage.dex.market_data import StaticFeeEstimator, StaticMarketDataSource
from amm_arbitrage.exceptions import ConfigurationError, MonitorStateError
from amm_arbitrage.monitor import MonitorLoop, MonitorState
from amm_arbitrage.types import Asset, Pair, TickEvent

E = 10**18

WETH = Asset("0x" + "0" * 39 + "1", 18, "WETH")
USDC = Asset("0x" + "0" * 39 + "2", 18, "USDC")
DAI = Asset("0x" + "0" * 39 + "3", 18, "DAI")


def make_config(**overrides):
    config = {
        "base_asset": "WETH",
        "trade_amount": 1,
        "tokens": [
            {"symbol": a.symbol, "address": a.address, "decimals": a.decimals}
            for a in (WETH, USDC, DAI)
        ],
    }
    config.update(overrides)
    return parse_config(config)


def make_source():
    return StaticMarketDataSource(
        [
            Pair(WETH, USDC, 1000 * E, 2000 * E),
            Pair(USDC, DAI, 1000 * E, 1000 * E),
            Pair(DAI, WETH, 1000 * E, 1000 * E),
        ]
    )


def make_monitor(config=None, source=None, fees=None):
    return MonitorLoop(
        config or make_config(),
        source or make_source(),
        fees or StaticFeeEstimator(0),
    )


@pytest.mark.asyncio
async def test_start_and_stop():
    monitor = make_monitor()
    assert monitor.state is MonitorState.IDLE

    await monitor.start()
    assert monitor.state is MonitorState.RUNNING
    assert monitor.base_asset == WETH
    assert len(monitor.watched_pairs) == 3

    await monitor.process_tick(TickEvent(1, 0.0))
    assert len(monitor.pair_store) == 3

    await monitor.stop()
    assert monitor.state is MonitorState.STOPPED
    assert len(monitor.pair_store) == 0
    assert len(monitor.pair_store.graph) == 0

    # Idempotent
    await monitor.stop()
    assert monitor.state is MonitorState.STOPPED


@pytest.mark.asyncio
async def test_start_twice_is_a_no_op():
    monitor = make_monitor()
    await monitor.start()
    worker = monitor._worker
    await monitor.start()
    assert monitor._worker is worker
    await monitor.stop()


@pytest.mark.asyncio
async def test_cannot_restart_after_stop():
    monitor = make_monitor()
    await monitor.start()
    await monitor.stop()
    with pytest.raises(MonitorStateError):
        await monitor.start()


@pytest.mark.asyncio
async def test_stop_from_idle():
    monitor = make_monitor()
    await monitor.stop()
    assert monitor.state is MonitorState.STOPPED


@pytest.mark.asyncio
async def test_empty_token_universe_refuses_to_start():
    monitor = make_monitor(config=parse_config({"base_asset": "WETH", "trade_amount": 1}))
    with pytest.raises(ConfigurationError):
        await monitor.start()
    assert monitor.state is MonitorState.IDLE


@pytest.mark.asyncio
async def test_trade_amount_below_one_unit_refuses_to_start():
    config = make_config(
        tokens=[
            {"symbol": "WETH", "address": WETH.address, "decimals": 0},
            {"symbol": "USDC", "address": USDC.address, "decimals": 0},
        ],
        trade_amount="0.5",
    )
    with pytest.raises(ConfigurationError):
        await make_monitor(config=config).start()


@pytest.mark.asyncio
async def test_process_tick_requires_start():
    with pytest.raises(MonitorStateError):
        await make_monitor().process_tick(TickEvent(1, 0.0))


@pytest.mark.asyncio
async def test_process_tick_after_stop_returns_nothing():
    monitor = make_monitor()
    await monitor.start()
    await monitor.stop()
    assert await monitor.process_tick(TickEvent(1, 0.0)) == []


@pytest.mark.asyncio
async def test_explicit_pairs_limit_fetches():
    source = make_source()
    monitor = make_monitor(config=make_config(pairs=[["WETH", "USDC"]]), source=source)
    await monitor.start()
    await monitor.process_tick(TickEvent(1, 0.0))
    assert source.fetch_count == 1
    await monitor.stop()


@pytest.mark.asyncio
async def test_submit_tick_ignored_when_not_running():
    monitor = make_monitor()
    assert monitor.submit_tick(TickEvent(1, 0.0)) is False


@pytest.mark.asyncio
async def test_queued_ticks_are_processed():
    monitor = make_monitor()
    await monitor.start()
    for block in range(3):
        assert monitor.submit_tick(TickEvent(block, 0.0))
    await monitor.wait_idle()

    registry = monitor.metrics.registry
    assert registry.get_sample_value("amm_arbitrage_ticks_processed_total") == 3
    await monitor.stop()


@pytest.mark.asyncio
async def test_full_queue_drops_oldest_tick():
    monitor = make_monitor(config=make_config(tick_queue_size=1))
    seen = []
    monitor.add_listener(lambda opp: seen.append(opp.tick_reference))

    await monitor.start()
    for block in (1, 2, 3):
        monitor.submit_tick(TickEvent(block, 0.0))
    await monitor.wait_idle()

    registry = monitor.metrics.registry
    assert registry.get_sample_value("amm_arbitrage_ticks_dropped_total") == 2
    assert registry.get_sample_value("amm_arbitrage_ticks_processed_total") == 1
    assert seen == ["block:3"]
    await monitor.stop()
