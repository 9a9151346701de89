"""
Profitability gates for simulated cycles.

A path is reported only if it passes two gates:

1. Gross: the cycle returns more of the base asset than it consumed.
2. Net: gross profit minus the estimated transaction cost strictly exceeds
   the minimum profit threshold.

Both gates compare base-asset base units, which is valid because every
evaluated path is a cycle. Evaluations never touch shared state, so any
number of them may run concurrently against the same PairStore.
"""

from decimal import Decimal
from typing import Iterable, List, Optional, Union

from .interfaces import SystemTimeProvider, TimeProvider
from .simulator import TradeSimulator
from .types import Opportunity, Path
from .utils import get_logger

logger = get_logger(__name__)

Amount = Union[int, Decimal]

DEFAULT_SLIPPAGE_TOLERANCE = Decimal("0.005")  # 0.5%


class ArbitrageEvaluator:
    """Turns simulated cycles into opportunities."""

    def __init__(
        self,
        simulator: TradeSimulator,
        slippage_tolerance: Amount = DEFAULT_SLIPPAGE_TOLERANCE,
        time_provider: Optional[TimeProvider] = None,
    ):
        slippage_tolerance = Decimal(str(slippage_tolerance))
        if not Decimal(0) <= slippage_tolerance < Decimal(1):
            raise ValueError(
                f"Slippage tolerance must be in [0, 1): {slippage_tolerance}"
            )
        self.simulator = simulator
        self.slippage_tolerance = slippage_tolerance
        self.time_provider = time_provider or SystemTimeProvider()

    def evaluate(
        self,
        path: Path,
        input_amount: Amount,
        estimated_cost: Amount,
        min_profit_threshold: Amount,
        tick_reference: Optional[str] = None,
    ) -> Optional[Opportunity]:
        """
        Simulate path and apply the gross and net gates.

        Returns:
            Opportunity, or None when the path is not currently profitable

        Raises:
            ValueError: If path is not a cycle or input_amount is not positive
            MissingPairError / DegeneratePairError: From the simulator
        """
        if not path.is_cycle:
            raise ValueError(f"Only cycles can be evaluated: {path.describe()}")

        trade = self.simulator.simulate(path, input_amount)
        amount_in = trade.amount_in
        cost = Decimal(estimated_cost)
        threshold = Decimal(min_profit_threshold)

        if trade.amount_out <= amount_in:
            logger.debug(
                f"Rejected {path.describe()}: gross output {trade.amount_out:.0f} "
                f"<= input {amount_in:.0f}"
            )
            return None

        net_profit = (trade.amount_out - amount_in) - cost
        if net_profit <= threshold:
            logger.debug(
                f"Rejected {path.describe()}: net {net_profit:.0f} "
                f"<= threshold {threshold:.0f} (cost {cost:.0f})"
            )
            return None

        return Opportunity(
            path=path,
            amount_in=amount_in,
            expected_gross_output=trade.amount_out,
            estimated_cost=cost,
            net_profit=net_profit,
            min_amount_out=trade.minimum_amount_out(self.slippage_tolerance),
            tick_reference=tick_reference,
            discovered_at=self.time_provider.current_timestamp(),
            trade=trade,
        )

    def evaluate_against(
        self,
        path: Path,
        baseline_path: Path,
        input_amount: Amount,
        estimated_cost: Amount,
        min_profit_threshold: Amount,
        tick_reference: Optional[str] = None,
    ) -> Optional[Opportunity]:
        """
        Evaluate path, but only report it if it also beats a baseline route.

        The cycle must return more than the baseline's output plus the
        cycle's estimated cost, e.g. a triangle versus the direct
        there-and-back through one pool.
        """
        opportunity = self.evaluate(
            path, input_amount, estimated_cost, min_profit_threshold, tick_reference
        )
        if opportunity is None:
            return None

        baseline = self.simulator.simulate(baseline_path, input_amount)
        hurdle = baseline.amount_out + opportunity.estimated_cost
        if opportunity.expected_gross_output <= hurdle:
            logger.debug(
                f"Rejected {path.describe()}: does not beat "
                f"{baseline_path.describe()} ({baseline.amount_out:.0f})"
            )
            return None
        return opportunity

    @staticmethod
    def rank(opportunities: Iterable[Opportunity]) -> List[Opportunity]:
        """Highest net profit first; ties go to fewer hops, then path name."""
        return sorted(
            opportunities,
            key=lambda o: (-o.net_profit, o.path.hops, o.path.describe()),
        )

    @classmethod
    def best(cls, opportunities: Iterable[Opportunity]) -> Optional[Opportunity]:
        ranked = cls.rank(opportunities)
        return ranked[0] if ranked else None
