"""
On-chain execution of cycle opportunities through a Uniswap V2 style router.

Handles:
- Safety checks before submission
- ERC20 allowance for the router
- Building, signing and sending swapExactTokensForTokens
- Dry-run mode
- Serialising submissions so one account never has two swaps in flight
"""

import asyncio
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Set, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import TransactionNotFound
from web3.types import TxParams, Wei

from ..exceptions import ExecutionError
from ..interfaces import SystemTimeProvider, TimeProvider
from ..types import Asset, Opportunity
from ..utils import get_logger
from .abi import ERC20_ABI, MAX_UINT256, UNISWAP_V2_ROUTER_ABI

logger = get_logger(__name__)


@dataclass
class ExecutionConfig:
    """
    Configuration for opportunity execution.

    Attributes:
        private_key: Private key for signing transactions (keep secure!)
        router_address: Router contract the swap is sent to
        max_gas_price_gwei: Maximum gas price willing to pay
        gas_limit: Gas limit for the swap transaction
        deadline_sec: Swap deadline relative to submission time
        dry_run_mode: If True, log but don't submit transactions
        min_net_profit: Minimum net profit to execute, base asset base units
        receipt_timeout_sec: How long to wait for a receipt
    """

    private_key: Optional[str] = None
    router_address: Optional[str] = None
    max_gas_price_gwei: float = 50.0
    gas_limit: int = 500_000
    deadline_sec: int = 300
    dry_run_mode: bool = True
    min_net_profit: int = 0
    receipt_timeout_sec: int = 120


@dataclass
class ExecutionResult:
    """
    Result of an execution attempt.

    Attributes:
        success: Whether execution succeeded
        path: Cycle that was executed, as "A -> B -> A"
        tx_hash: Transaction hash (if submitted)
        amount_in: Input amount in base units
        min_amount_out: Output floor passed to the router
        expected_net_profit: Net profit the monitor predicted
        gas_used: Gas consumed
        execution_time_ms: Time from submission to confirmation
        dry_run: True when nothing was sent
        error: Error message (if failed)
    """

    success: bool
    path: Optional[str] = None
    tx_hash: Optional[str] = None
    amount_in: Optional[int] = None
    min_amount_out: Optional[int] = None
    expected_net_profit: Optional[Decimal] = None
    gas_used: Optional[int] = None
    execution_time_ms: Optional[float] = None
    dry_run: bool = False
    error: Optional[str] = None


class DexExecutor:
    """
    Executes cycle opportunities as a single router swap.

    The router's swapExactTokensForTokens walks the whole cycle path in one
    transaction and reverts if the final output is below min_amount_out.
    """

    def __init__(
        self,
        web3: Web3,
        config: ExecutionConfig,
        time_provider: Optional[TimeProvider] = None,
    ):
        self.web3 = web3
        self.config = config
        self.time_provider = time_provider or SystemTimeProvider()
        self.router_address = (
            Web3.to_checksum_address(config.router_address)
            if config.router_address
            else None
        )

        self.account: Optional[LocalAccount] = None
        if config.private_key:
            try:
                self.account = Account.from_key(config.private_key)
                logger.info(f"Loaded account: {self.account.address}")
            except Exception as e:
                logger.error(f"Failed to load private key: {e}")
                raise

        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()

        # Execution statistics
        self.executions_attempted = 0
        self.executions_successful = 0
        self.executions_skipped = 0
        self.total_expected_profit = Decimal(0)
        self.total_gas_used = 0

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def can_execute(self, opportunity: Opportunity) -> Tuple[bool, str]:
        """
        Check if opportunity meets execution criteria.

        Returns:
            Tuple of (can_execute: bool, reason: str)
        """
        if opportunity.net_profit <= 0:
            return False, f"Net profit {opportunity.net_profit} <= 0"

        if opportunity.net_profit < self.config.min_net_profit:
            return (
                False,
                f"Net profit {opportunity.net_profit} < threshold "
                f"{self.config.min_net_profit}",
            )

        if not self.config.dry_run_mode:
            if not self.account:
                return False, "No account loaded (missing private key)"
            if not self.router_address:
                return False, "No router address configured"

        return True, "OK"

    async def execute_opportunity(self, opportunity: Opportunity) -> ExecutionResult:
        """
        Execute one opportunity.

        A call made while another submission is outstanding returns a failed
        "busy" result immediately instead of queueing behind it.
        """
        path = opportunity.path.describe()
        if self._lock.locked():
            self.executions_skipped += 1
            logger.warning(f"Execution already in progress, skipping {path}")
            return ExecutionResult(success=False, path=path, error="Executor busy")

        async with self._lock:
            return await self._execute(opportunity)

    async def _execute(self, opportunity: Opportunity) -> ExecutionResult:
        start_time = time.time()
        path = opportunity.path.describe()
        amount_in = int(opportunity.amount_in)
        self.executions_attempted += 1

        can_execute, reason = self.can_execute(opportunity)
        if not can_execute:
            logger.warning(f"Execution blocked: {reason}")
            return ExecutionResult(success=False, path=path, error=reason)

        if self.config.dry_run_mode:
            logger.info(f"[DRY RUN] Would execute: {opportunity.format_log()}")
            self.executions_successful += 1
            self.total_expected_profit += opportunity.net_profit
            return ExecutionResult(
                success=True,
                path=path,
                amount_in=amount_in,
                min_amount_out=opportunity.min_amount_out,
                expected_net_profit=opportunity.net_profit,
                execution_time_ms=(time.time() - start_time) * 1000,
                dry_run=True,
            )

        try:
            await self._ensure_allowance(opportunity.base_asset, amount_in)

            logger.info(f"Building swap for {path}...")
            tx_params = await self._build_swap_transaction(opportunity)
            tx_hash = await self._submit(tx_params)

            logger.info(f"Waiting for tx {tx_hash}...")
            receipt = await self._wait_for_transaction(
                tx_hash, self.config.receipt_timeout_sec
            )
            if receipt.get("status", 1) != 1:
                raise ExecutionError("Swap reverted", path=path, tx_hash=tx_hash)

            execution_time_ms = (time.time() - start_time) * 1000
            gas_used = int(receipt["gasUsed"])

            self.executions_successful += 1
            self.total_expected_profit += opportunity.net_profit
            self.total_gas_used += gas_used

            logger.info(
                f"Execution succeeded: {path}, tx {tx_hash}, gas {gas_used}, "
                f"time {execution_time_ms:.0f}ms"
            )
            return ExecutionResult(
                success=True,
                path=path,
                tx_hash=tx_hash,
                amount_in=amount_in,
                min_amount_out=opportunity.min_amount_out,
                expected_net_profit=opportunity.net_profit,
                gas_used=gas_used,
                execution_time_ms=execution_time_ms,
            )

        except Exception as e:
            execution_time_ms = (time.time() - start_time) * 1000
            logger.error(f"Execution failed after {execution_time_ms:.0f}ms: {e}")
            return ExecutionResult(
                success=False,
                path=path,
                tx_hash=getattr(e, "tx_hash", None),
                amount_in=amount_in,
                min_amount_out=opportunity.min_amount_out,
                expected_net_profit=opportunity.net_profit,
                execution_time_ms=execution_time_ms,
                error=str(e),
            )

    def submit(self, opportunity: Opportunity) -> asyncio.Task:
        """
        Schedule execute_opportunity in the background.

        Suitable as a monitor listener: the tick is not held up while the
        transaction confirms.
        """
        task = asyncio.create_task(self.execute_opportunity(opportunity))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for background submissions to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def _get_gas_price(self) -> Wei:
        """Get current gas price with ceiling."""
        current_gas_price = self.web3.eth.gas_price
        max_gas_price = Web3.to_wei(self.config.max_gas_price_gwei, "gwei")

        gas_price = min(current_gas_price, max_gas_price)

        logger.debug(
            f"Gas price: {Web3.from_wei(gas_price, 'gwei'):.2f} gwei "
            f"(current: {Web3.from_wei(current_gas_price, 'gwei'):.2f})"
        )
        return gas_price

    def _base_tx(self, gas_price: Wei, gas: int) -> TxParams:
        return {
            "from": self.account.address,
            "gas": gas,
            "gasPrice": gas_price,
            "nonce": self.web3.eth.get_transaction_count(self.account.address),
            "chainId": self.web3.eth.chain_id,
        }

    async def _ensure_allowance(self, asset: Asset, amount: int) -> None:
        """Approve the router for asset if its allowance is below amount."""
        token = self.web3.eth.contract(
            address=Web3.to_checksum_address(asset.address), abi=ERC20_ABI
        )
        allowance = token.functions.allowance(
            self.account.address, self.router_address
        ).call()
        if allowance >= amount:
            return

        logger.info(f"Approving {asset.symbol} for router {self.router_address}")
        gas_price = await self._get_gas_price()
        approve = token.functions.approve(self.router_address, MAX_UINT256)
        tx = approve.build_transaction(self._base_tx(gas_price, 100_000))
        tx_hash = await self._submit(tx)
        receipt = await self._wait_for_transaction(
            tx_hash, self.config.receipt_timeout_sec
        )
        if receipt.get("status", 1) != 1:
            raise ExecutionError(
                f"Approval of {asset.symbol} reverted", tx_hash=tx_hash
            )
        logger.info(f"{asset.symbol} approved in tx {tx_hash}")

    async def _build_swap_transaction(self, opportunity: Opportunity) -> TxParams:
        gas_price = await self._get_gas_price()
        router = self.web3.eth.contract(
            address=self.router_address, abi=UNISWAP_V2_ROUTER_ABI
        )
        now = int(self.time_provider.current_timestamp())
        deadline = now + self.config.deadline_sec
        route = [Web3.to_checksum_address(a) for a in opportunity.path.addresses()]

        return router.functions.swapExactTokensForTokens(
            int(opportunity.amount_in),
            opportunity.min_amount_out,
            route,
            self.account.address,
            deadline,
        ).build_transaction(self._base_tx(gas_price, self.config.gas_limit))

    async def _submit(self, tx_params: TxParams) -> str:
        """Sign and send directly to the mempool."""
        signed_tx = self.account.sign_transaction(tx_params)
        tx_hash = self.web3.eth.send_raw_transaction(signed_tx.raw_transaction)
        return self.web3.to_hex(tx_hash)

    async def _wait_for_transaction(self, tx_hash: str, timeout: int = 60) -> Dict:
        """
        Wait for transaction confirmation.

        Raises:
            TimeoutError: If transaction not confirmed within timeout
        """
        start = time.time()

        while time.time() - start < timeout:
            try:
                receipt = self.web3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                receipt = None
            if receipt:
                return receipt

            await asyncio.sleep(1)

        raise TimeoutError(f"Transaction {tx_hash} not confirmed after {timeout}s")

    def get_stats(self) -> Dict:
        """Get execution statistics."""
        success_rate = (
            self.executions_successful / self.executions_attempted * 100
            if self.executions_attempted > 0
            else 0.0
        )

        return {
            "executions_attempted": self.executions_attempted,
            "executions_successful": self.executions_successful,
            "executions_skipped": self.executions_skipped,
            "success_rate_pct": success_rate,
            "total_expected_profit": str(self.total_expected_profit),
            "total_gas_used": self.total_gas_used,
        }
