"""
Shared fixtures for the safeguard test suite.

Keys are fixed so signatures, addresses and every derived amount are
deterministic. All pools live at ``POOL_ADDRESS`` on ``CHAIN_ID`` and are
initialised at ``NOW``.
"""

import pytest
from eth_account import Account

from safeguard.constants import ONE
from safeguard.crypto.encoding import encode_join_init
from safeguard.kinds import SwapKind
from safeguard.pool import OracleParams, QuoteSigner, SafeguardPool, StaticOracle
from safeguard.types import PoolParameters, SwapData

CHAIN_ID = 31337
NOW = 1_700_000_000
DAY = 24 * 3600
YEAR = 365 * DAY
DEADLINE = NOW + 30 * DAY

SIGNER_KEY = "0x" + "11" * 32
OTHER_KEY = "0x" + "22" * 32
TRADER_KEY = "0x" + "33" * 32
LP_KEY = "0x" + "44" * 32

SIGNER = Account.from_key(SIGNER_KEY).address
OTHER = Account.from_key(OTHER_KEY).address
TRADER = Account.from_key(TRADER_KEY).address
LP = Account.from_key(LP_KEY).address

POOL_ADDRESS = "0x" + "5a" * 20
ORACLE_ONE = 10 ** 8  # 1.0 at 8 decimals

INIT_BALANCES = (15 * ONE, 15 * ONE)


def make_params(**overrides) -> PoolParameters:
    values = dict(
        signer=SIGNER,
        max_perf_dev=97 * ONE // 100,
        max_target_dev=75 * ONE // 100,
        max_price_dev=97 * ONE // 100,
        perf_update_interval=DAY,
    )
    values.update(overrides)
    return PoolParameters(**values)


def make_swap_data(**overrides) -> SwapData:
    """Quote at price 1.0 against the initial balances, no penalties."""
    values = dict(
        expected_origin=TRADER,
        origin_based_slippage=0,
        quote_amount_in_per_out=ONE,
        max_swap_amount=10 * ONE,
        quote_balance_in=15 * ONE,
        quote_balance_out=15 * ONE,
        max_balance_change_tolerance=ONE // 10,
        balance_based_slippage=0,
        start_time=NOW,
        time_based_slippage=0,
    )
    values.update(overrides)
    return SwapData(**values)


def make_oracles(price0=ORACLE_ONE, price1=ORACLE_ONE, updated_at=NOW):
    return StaticOracle(price0, 8, updated_at), StaticOracle(price1, 8, updated_at)


def make_pool(
    params=None,
    oracles=None,
    balances=INIT_BALANCES,
    token_decimals=(18, 18),
    stable=(False, False),
    flexible=(False, False),
) -> SafeguardPool:
    """Pool initialised with ``balances`` at ``NOW``; pass ``balances=None`` to skip the init join."""
    oracles = oracles or make_oracles()
    pool = SafeguardPool(
        POOL_ADDRESS,
        CHAIN_ID,
        params or make_params(),
        [
            OracleParams.for_oracle(oracle, is_stable=is_stable, is_flexible_oracle=is_flexible)
            for oracle, is_stable, is_flexible in zip(oracles, stable, flexible)
        ],
        token_decimals=token_decimals,
        clock=lambda: NOW,
    )
    if balances is not None:
        pool.on_join(LP, LP, encode_join_init(balances), now=NOW)
    return pool


@pytest.fixture
def signer():
    return QuoteSigner(SIGNER_KEY, CHAIN_ID, POOL_ADDRESS)


@pytest.fixture
def rogue_signer():
    return QuoteSigner(OTHER_KEY, CHAIN_ID, POOL_ADDRESS)


@pytest.fixture
def oracles():
    return make_oracles()


@pytest.fixture
def pool(oracles):
    return make_pool(oracles=oracles)


@pytest.fixture
def quote(signer):
    """Factory for signed swap user data from TRADER to TRADER."""

    def _quote(
        quote_index=1,
        kind=SwapKind.GIVEN_IN,
        is_token_in_token0=True,
        deadline=DEADLINE,
        sender=TRADER,
        recipient=TRADER,
        **swap_data_overrides,
    ) -> bytes:
        return signer.swap_user_data(
            kind,
            is_token_in_token0,
            sender,
            recipient,
            make_swap_data(**swap_data_overrides),
            quote_index,
            deadline,
        )

    return _quote
