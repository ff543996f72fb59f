# poolarb/main.py
"""
Arbitrage Bot Main Loop

THIS IS THE ENTRY POINT - Run with: python -m poolarb.main

Each cycle is one strictly sequential pipeline:
read pool state -> detect -> size search -> encode -> estimate gas
(pre-flight simulation) -> profitability gate -> submit -> confirm.
Every stage either hands its value on or ends the cycle with a tagged
CycleResult. A failed cycle is retried by the next one, from fresh state.
"""

import argparse
import logging
import re
import signal
import sys
import time
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from poolarb.config import LOG_DIR, MAX_CONSECUTIVE_ERRORS, Settings, load_settings
from poolarb.decision import detect_opportunity, profit_guard
from poolarb.dex.routers import ArbTx, encode_arb_tx
from poolarb.exceptions import ConfigurationError, GasEstimationError
from poolarb.executor import ChainClient
from poolarb.gas import GasCost, estimate_gas_cost
from poolarb.pairs import ChainContext, to_ether
from poolarb.pool_state import PoolStateReader
from poolarb.quote_engine import QuoteEngine
from poolarb.rpc import BatchRpcClient
from poolarb.rpc_health import RPCHealth
from poolarb.size_search import OptimalSizeSearch

logger = logging.getLogger(__name__)


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(level: str = "INFO") -> None:
    LOG_DIR.mkdir(exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s | %(levelname)-8s | %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(LOG_DIR / f"bot_{datetime.now().strftime('%Y%m%d')}.log"),
        ],
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)


def mask_rpc_url(url: str) -> str:
    return re.sub(r"//.*@", "//***@", url)


# =============================================================================
# CYCLE OUTCOMES & STATE
# =============================================================================

class CycleStatus(Enum):
    NO_OPPORTUNITY = "no_opportunity"
    NO_PROFITABLE_SIZE = "no_profitable_size"
    WOULD_REVERT = "would_revert"
    BELOW_MIN_PROFIT = "below_min_profit"
    DRY_RUN = "dry_run"
    SUCCESS = "success"
    REVERTED = "reverted"
    ERROR = "error"


@dataclass
class CycleResult:
    status: CycleStatus
    tx_hash: Optional[str] = None
    net_profit_wei: int = 0
    error: str = ""

    @property
    def executed(self) -> bool:
        return self.status is CycleStatus.SUCCESS


@dataclass
class OrchestratorState:
    """
    Long-lived loop state, reset on every restart.

    Only ArbitrageBot.poll() reads or writes these fields and cycles never
    overlap, so there is exactly one writer and no locking.
    current_nonce is None whenever the next send must re-read it on-chain.
    """
    consecutive_errors: int = 0
    current_nonce: Optional[int] = None


class StatisticsTracker:
    """Track bot performance statistics"""

    def __init__(self):
        self.start_time = datetime.now()
        self.cycles = 0
        self.opportunities = 0
        self.profitable_sizes = 0
        self.submitted = 0
        self.successful = 0
        self.reverted = 0
        self.errors = 0
        self.expected_profit_wei = 0

    def record_cycle(self, result: CycleResult):
        self.cycles += 1
        if result.status is not CycleStatus.NO_OPPORTUNITY and result.status is not CycleStatus.ERROR:
            self.opportunities += 1
        if result.status in (
            CycleStatus.WOULD_REVERT,
            CycleStatus.BELOW_MIN_PROFIT,
            CycleStatus.DRY_RUN,
            CycleStatus.SUCCESS,
            CycleStatus.REVERTED,
        ):
            self.profitable_sizes += 1
        if result.status in (CycleStatus.SUCCESS, CycleStatus.REVERTED):
            self.submitted += 1
        if result.status is CycleStatus.SUCCESS:
            self.successful += 1
            self.expected_profit_wei += result.net_profit_wei
        elif result.status is CycleStatus.REVERTED:
            self.reverted += 1
        elif result.status is CycleStatus.ERROR:
            self.errors += 1

    def get_summary(self) -> str:
        runtime = datetime.now() - self.start_time
        return (
            f"\n{'='*60}\n"
            f"BOT STATISTICS\n"
            f"{'='*60}\n"
            f"Runtime: {runtime}\n"
            f"Cycles: {self.cycles}\n"
            f"Opportunities: {self.opportunities}\n"
            f"Profitable sizes found: {self.profitable_sizes}\n"
            f"Transactions sent: {self.submitted}\n"
            f"Successful: {self.successful}\n"
            f"Reverted: {self.reverted}\n"
            f"Cycle errors: {self.errors}\n"
            f"Expected net profit: {to_ether(self.expected_profit_wei)} ETH\n"
            f"{'='*60}\n"
        )


# =============================================================================
# MAIN BOT CLASS
# =============================================================================

class ArbitrageBot:
    """
    Cross-pool arbitrage bot.
    Collaborators are injected so the loop can be driven without a node.
    """

    def __init__(
        self,
        settings: Settings,
        context: ChainContext,
        rpc: BatchRpcClient,
        chain: ChainClient,
        pool_reader: PoolStateReader,
        search: OptimalSizeSearch,
        detector: Callable = detect_opportunity,
        encoder: Callable[..., ArbTx] = encode_arb_tx,
        gas_estimator: Callable[..., GasCost] = estimate_gas_cost,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.context = context
        self.rpc = rpc
        self.chain = chain
        self.pool_reader = pool_reader
        self.search = search
        self.detector = detector
        self.encoder = encoder
        self.gas_estimator = gas_estimator
        self.sleep = sleep
        self.clock = clock

        self.state = OrchestratorState()
        self.stats = StatisticsTracker()
        self.running = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ArbitrageBot":
        """Build every component once; the context is shared by reference"""
        context = ChainContext.for_chain(settings.chain_id)
        rpc = BatchRpcClient(settings.rpc_url, timeout=settings.rpc_timeout_seconds)
        chain = ChainClient.from_rpc_url(
            settings.rpc_url,
            settings.private_key,
            settings.chain_id,
            timeout=settings.rpc_timeout_seconds,
            receipt_timeout=settings.receipt_timeout_seconds,
        )
        return cls(
            settings=settings,
            context=context,
            rpc=rpc,
            chain=chain,
            pool_reader=PoolStateReader(rpc, context),
            search=OptimalSizeSearch(QuoteEngine(rpc, context)),
        )

    def install_signal_handlers(self):
        signal.signal(signal.SIGINT, self._handle_shutdown)
        signal.signal(signal.SIGTERM, self._handle_shutdown)

    def _handle_shutdown(self, signum, frame):
        logger.info("Shutdown signal received...")
        self.running = False

    def check_prerequisites(self) -> bool:
        """Log the configuration, verify the RPC and report the balance"""
        s = self.settings
        logger.info("=" * 60)
        logger.info("CROSS-POOL ARB BOT STARTING")
        logger.info(f"Bot address: {self.chain.address}")
        logger.info(f"Chain: {s.chain_id}")
        logger.info(f"Poll interval: {s.poll_interval_ms}ms")
        logger.info(f"Min profit: {to_ether(s.min_profit_wei)} ETH")
        logger.info(f"Slippage: {s.slippage_bps} bps")
        logger.info(f"RPC: {mask_rpc_url(s.rpc_url)}")
        if s.dry_run:
            logger.info("DRY RUN - transactions will not be sent")
        logger.info("=" * 60)

        ok, status = RPCHealth(self.rpc, s.chain_id).check()
        if not ok:
            logger.error(f"RPC unhealthy: {status}")
            return False
        logger.info(f"RPC healthy: {status}")

        try:
            balance = self.chain.get_balance()
        except Exception as e:
            logger.error(f"Balance check failed: {e}")
            return False
        logger.info(f"Balance: {to_ether(balance)} ETH")
        if balance == 0:
            logger.warning("Bot has zero ETH balance - gas estimation only, sends will fail")

        return True

    # -------------------------------------------------------------------------
    # One cycle
    # -------------------------------------------------------------------------

    def poll(self) -> CycleResult:
        """
        Run one cycle. Never raises for ordinary failures: an exception
        counts toward the error ceiling and invalidates the cached nonce.
        """
        try:
            result = self._run_cycle()
        except Exception as e:
            self.state.consecutive_errors += 1
            self.state.current_nonce = None
            logger.error(
                f"Poll error ({self.state.consecutive_errors}/{MAX_CONSECUTIVE_ERRORS}): {e}"
            )
            result = CycleResult(CycleStatus.ERROR, error=str(e))
        else:
            self.state.consecutive_errors = 0

        self.stats.record_cycle(result)
        return result

    def _run_cycle(self) -> CycleResult:
        states = self.pool_reader.read_pool_states()
        logger.debug(
            f"Direct sqrtPrice={states.direct.sqrt_price_x96} tick={states.direct.tick} | "
            f"Legacy sqrtPrice={states.legacy.sqrt_price_x96} tick={states.legacy.tick}"
        )

        opportunity = self.detector(states.direct, states.legacy, self.context)
        if opportunity is None:
            logger.debug("No price divergence detected")
            return CycleResult(CycleStatus.NO_OPPORTUNITY)
        logger.info(f"Arb opportunity: {opportunity}")

        arb = self.search.find_optimal_size(opportunity.direction)
        if arb is None:
            logger.info("No profitable arb found after search")
            return CycleResult(CycleStatus.NO_PROFITABLE_SIZE)
        logger.info(
            f"Optimal arb: {to_ether(arb.amount_in)} WETH -> {to_ether(arb.leg1_out)} "
            f"intermediate -> {to_ether(arb.leg2_out)} WETH (profit: {to_ether(arb.profit)} WETH)"
        )

        deadline = int(self.clock()) + self.settings.tx_deadline_seconds
        tx = self.encoder(
            self.context,
            arb.direction,
            arb.amount_in,
            arb.leg1_out,
            arb.leg2_out,
            deadline,
            self.settings.slippage_bps,
        )

        # Doubles as the pre-flight simulation
        try:
            gas = self.gas_estimator(self.rpc, tx, self.chain.address)
        except GasEstimationError as e:
            logger.warning(f"Gas estimation failed (tx would revert): {e}")
            return CycleResult(CycleStatus.WOULD_REVERT, error=str(e))

        check = profit_guard(arb.profit, gas.estimated_cost_wei, self.settings.min_profit_wei)
        if not check.ok:
            logger.info(
                f"Profit {to_ether(arb.profit)} - gas {to_ether(gas.estimated_cost_wei)} = "
                f"{to_ether(check.net_profit_wei)} ETH (below min {to_ether(check.min_profit_wei)})"
            )
            return CycleResult(CycleStatus.BELOW_MIN_PROFIT, net_profit_wei=check.net_profit_wei)

        logger.info(
            f"Net profit: {to_ether(check.net_profit_wei)} ETH "
            f"(after gas {to_ether(gas.estimated_cost_wei)})"
        )

        if self.settings.dry_run:
            logger.info("DRY RUN - skipping submission")
            return CycleResult(CycleStatus.DRY_RUN, net_profit_wei=check.net_profit_wei)

        return self._submit(tx, gas, check.net_profit_wei)

    def _submit(self, tx: ArbTx, gas: GasCost, net_profit_wei: int) -> CycleResult:
        logger.info("Sending arb transaction...")

        if self.state.current_nonce is None:
            self.state.current_nonce = self.chain.get_transaction_count()

        tx_hash = self.chain.send_transaction(tx, self.state.current_nonce, gas)
        logger.info(f"Tx sent: {tx_hash}")
        self.state.current_nonce += 1

        receipt = self.chain.wait_for_receipt(tx_hash)

        if receipt.success:
            logger.info(
                f"ARB SUCCESS! Tx: {tx_hash} | Gas used: {to_ether(receipt.fee_wei)} ETH | "
                f"Expected net profit: {to_ether(net_profit_wei)} ETH"
            )
            return CycleResult(CycleStatus.SUCCESS, tx_hash=tx_hash, net_profit_wei=net_profit_wei)

        logger.error(f"Tx reverted: {tx_hash}")
        # Nonce may be out of sync after a revert
        self.state.current_nonce = None
        return CycleResult(CycleStatus.REVERTED, tx_hash=tx_hash)

    # -------------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------------

    def run(self, max_cycles: Optional[int] = None):
        """
        Poll until stopped. Exits the process with status 1 once the
        consecutive-error ceiling is reached.
        """
        self.running = True
        cycles = 0

        try:
            while self.running:
                result = self.poll()
                cycles += 1

                if self.state.consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
                    logger.error("Too many consecutive errors, exiting")
                    raise SystemExit(1)

                if max_cycles is not None and cycles >= max_cycles:
                    break

                # Pool state just changed after a success: look again immediately
                if not result.executed:
                    self.sleep(self.settings.poll_interval_seconds)
        finally:
            logger.info(self.stats.get_summary())
            logger.info("Bot stopped.")


# =============================================================================
# ENTRY POINT
# =============================================================================

def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Cross-pool arbitrage bot")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument("--dry-run", action="store_true", help="Never send transactions")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        setup_logging()
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    if args.dry_run:
        settings = replace(settings, dry_run=True)

    setup_logging("DEBUG" if args.debug else settings.log_level)

    bot = ArbitrageBot.from_settings(settings)

    if not bot.check_prerequisites():
        logger.error("Prerequisites check failed. Exiting.")
        sys.exit(1)

    bot.install_signal_handlers()
    bot.run(max_cycles=1 if args.once else None)


if __name__ == "__main__":
    main()
