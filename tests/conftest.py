import logging

import pytest
from pool_helpers import funded_ledger, make_pool

from rangeswap.concentrated.pool import ConcentratedLiquidityPool
from rangeswap.ledger import TokenLedger
from rangeswap.logging import logger


@pytest.fixture(scope="session", autouse=True)
def _set_rangeswap_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)


@pytest.fixture
def ledger() -> TokenLedger:
    return funded_ledger()


@pytest.fixture
def pool(ledger: TokenLedger) -> ConcentratedLiquidityPool:
    return make_pool(ledger)
