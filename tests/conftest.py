import pytest

from poolarb.config import Settings
from poolarb.pairs import ChainContext


@pytest.fixture
def context():
    return ChainContext.for_chain(8453)


@pytest.fixture
def settings():
    return Settings(
        private_key="0x" + "11" * 32,
        rpc_url="http://localhost:8545",
        chain_id=8453,
        poll_interval_ms=2000,
        min_profit_wei=500,
        slippage_bps=30,
    )
