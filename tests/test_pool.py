"""
Test suite for the Safeguard pool engine

Covers:
  - Initialization and parameter validation
  - Signed-quote swaps: penalties, bounds, replay, oracle freshness
  - Atomicity of rejected and concurrent operations
  - Joins and exits, including the internal swap of unbalanced ones
  - Allowlisted liquidity providers
  - Management: fees, signer rotation, risk parameters, performance
    checkpoint, peg evaluation
"""

import threading

import pytest

from safeguard.constants import ONE
from safeguard.crypto.encoding import (
    encode_exit_bpt_in_for_exact_tokens_out,
    encode_exit_exact_bpt_in_for_tokens_out,
    encode_join_all_tokens_in_for_exact_bpt_out,
    encode_join_exact_tokens_in_for_bpt_out,
    encode_join_init,
)
from safeguard.exceptions import (
    ConfigurationError,
    ErrorKind,
    OracleError,
    PayloadError,
    ReplayError,
    SafeguardError,
    SignatureError,
)
from safeguard.kinds import SwapKind
from safeguard.math.fixed_point import div_down, mul_down
from safeguard.pool import OracleParams, SafeguardPool, StaticOracle
from safeguard.types import ZERO_ADDRESS

from conftest import (
    CHAIN_ID,
    DAY,
    DEADLINE,
    INIT_BALANCES,
    LP,
    NOW,
    ORACLE_ONE,
    OTHER,
    POOL_ADDRESS,
    TRADER,
    YEAR,
    make_oracles,
    make_params,
    make_pool,
    make_swap_data,
)

TIME_SLIPPAGE = 10 ** 14       # 0.01% per second
ORIGIN_SLIPPAGE = 5 * 10 ** 14  # 0.05%
HALF = ONE // 2


def swap_in(pool, user_data, amount=HALF, is_token_in_token0=True, now=NOW, **kwargs):
    return pool.on_swap(
        SwapKind.GIVEN_IN, is_token_in_token0, amount, TRADER, TRADER, user_data, now=now, **kwargs
    )


def swap_out(pool, user_data, amount, is_token_in_token0=True, now=NOW, **kwargs):
    return pool.on_swap(
        SwapKind.GIVEN_OUT, is_token_in_token0, amount, TRADER, TRADER, user_data, now=now, **kwargs
    )


def fee_share(minted, supply):
    return div_down(minted, supply + minted)


# ============================================================================
#  INITIALIZATION
# ============================================================================

class TestInitialization:
    """Pool creation and the INIT join."""

    def test_initial_state(self, pool):
        assert pool.initialized
        assert pool.total_supply == 100 * ONE
        assert pool.balances == INIT_BALANCES
        snapshot = pool.snapshot()
        assert snapshot.hodl_balances_per_pt == (15 * ONE // 100, 15 * ONE // 100)
        assert snapshot.last_perf_update == NOW

    def test_init_twice(self, pool):
        with pytest.raises(PayloadError) as exc:
            pool.on_join(LP, LP, encode_join_init([ONE, ONE]), now=NOW)
        assert exc.value.code == "BAL#310"
        assert pool.total_supply == 100 * ONE

    def test_init_wrong_token_count(self):
        pool = make_pool(balances=None)
        with pytest.raises(SafeguardError) as exc:
            pool.on_join(LP, LP, encode_join_init([ONE]), now=NOW)
        assert exc.value.code == "BAL#103"
        assert not pool.initialized

    def test_init_zero_balance(self):
        pool = make_pool(balances=None)
        with pytest.raises(PayloadError) as exc:
            pool.on_join(LP, LP, encode_join_init([ONE, 0]), now=NOW)
        assert exc.value.kind is ErrorKind.MALFORMED_USER_DATA

    def test_swap_before_init(self, quote):
        pool = make_pool(balances=None)
        with pytest.raises(SafeguardError) as exc:
            swap_in(pool, quote())
        assert exc.value.code == "SWAAP#21"

    def test_join_and_exit_before_init(self):
        pool = make_pool(balances=None)
        with pytest.raises(SafeguardError) as exc:
            pool.on_join(LP, LP, encode_join_all_tokens_in_for_exact_bpt_out(ONE), now=NOW)
        assert exc.value.kind is ErrorKind.UNINITIALIZED
        with pytest.raises(SafeguardError) as exc:
            pool.on_exit(LP, LP, encode_exit_exact_bpt_in_for_tokens_out(ONE), now=NOW)
        assert exc.value.kind is ErrorKind.UNINITIALIZED

    @pytest.mark.parametrize(
        "overrides,code",
        [
            ({"signer": ZERO_ADDRESS}, "SWAAP#07"),
            ({"perf_update_interval": 60}, "SWAAP#08"),
            ({"max_perf_dev": 0}, "SWAAP#09"),
            ({"max_target_dev": ONE + 1}, "SWAAP#10"),
            ({"max_price_dev": 0}, "SWAAP#11"),
            ({"yearly_fees": 6 * ONE // 10}, "SWAAP#14"),
        ],
    )
    def test_invalid_parameters(self, overrides, code):
        with pytest.raises(ConfigurationError) as exc:
            make_pool(params=make_params(**overrides), balances=None)
        assert exc.value.code == code

    def test_pool_holds_two_tokens(self):
        with pytest.raises(SafeguardError) as exc:
            make_pool(token_decimals=(18,), balances=None)
        assert exc.value.kind is ErrorKind.INPUT_LENGTH_MISMATCH


# ============================================================================
#  SWAPS
# ============================================================================

class TestSwap:
    """Signed-quote swaps and their penalties."""

    @pytest.mark.parametrize("elapsed", [0, 1, 10, 100])
    def test_time_and_origin_penalty(self, pool, quote, elapsed):
        user_data = quote(time_based_slippage=TIME_SLIPPAGE, origin_based_slippage=ORIGIN_SLIPPAGE)
        result = swap_in(pool, user_data, now=NOW + elapsed, tx_origin=OTHER)

        penalty = TIME_SLIPPAGE * elapsed + ORIGIN_SLIPPAGE
        expected_out = HALF * ONE // (ONE + penalty)
        assert result.amount_in == HALF
        assert result.amount_out == expected_out
        assert result.penalty == penalty
        assert pool.balances == (15 * ONE + HALF, 15 * ONE - expected_out)

    @pytest.mark.parametrize("elapsed", [0, 10])
    def test_expected_origin_pays_no_origin_penalty(self, pool, quote, elapsed):
        user_data = quote(time_based_slippage=TIME_SLIPPAGE, origin_based_slippage=ORIGIN_SLIPPAGE)
        result = swap_in(pool, user_data, now=NOW + elapsed)
        assert result.amount_out == HALF * ONE // (ONE + TIME_SLIPPAGE * elapsed)

    def test_later_execution_never_pays_more(self, quote):
        outs = []
        for elapsed in (0, 5, 50, 500):
            pool = make_pool()
            user_data = quote(time_based_slippage=TIME_SLIPPAGE)
            outs.append(swap_in(pool, user_data, now=NOW + elapsed).amount_out)
        assert outs == sorted(outs, reverse=True)

    def test_given_out(self, pool, quote):
        user_data = quote(kind=SwapKind.GIVEN_OUT, origin_based_slippage=ORIGIN_SLIPPAGE)
        result = swap_out(pool, user_data, ONE, tx_origin=OTHER)
        assert result.amount_out == ONE
        assert result.amount_in == ONE + ORIGIN_SLIPPAGE
        assert pool.balances == (16 * ONE + ORIGIN_SLIPPAGE, 14 * ONE)

    def test_token1_to_token0(self, pool, quote):
        result = swap_in(pool, quote(is_token_in_token0=False), is_token_in_token0=False)
        assert result.amount_out == HALF
        assert pool.balances == (15 * ONE - HALF, 15 * ONE + HALF)

    def test_quoted_price(self, pool, quote):
        # 1.02 token in per token out
        result = swap_in(pool, quote(quote_amount_in_per_out=102 * ONE // 100))
        assert result.amount_out == div_down(HALF, 102 * ONE // 100)

    def test_token_decimals(self, quote):
        pool = make_pool(token_decimals=(18, 6), balances=(15 * ONE, 15 * 10 ** 6))
        result = swap_in(pool, quote(origin_based_slippage=ORIGIN_SLIPPAGE), tx_origin=OTHER)
        # 0.5 / 1.0005 = 0.499750124...
        assert result.amount_out == 499_750
        assert pool.balances == (15 * ONE + HALF, 15 * 10 ** 6 - 499_750)

    def test_hex_user_data(self, pool, quote):
        result = swap_in(pool, "0x" + quote().hex())
        assert result.amount_out == HALF

    def test_non_positive_amount(self, pool, quote):
        with pytest.raises(ValueError):
            swap_in(pool, quote(), amount=0)

    def test_unknown_kind(self, pool, quote):
        with pytest.raises(PayloadError):
            pool.on_swap(2, True, HALF, TRADER, TRADER, quote(), now=NOW)


class TestSwapAuthorization:
    """Signature, expiry and replay checks."""

    def test_quote_consumed(self, pool, quote):
        user_data = quote(quote_index=5)
        swap_in(pool, user_data)
        assert pool.is_quote_used(5)
        assert pool.get_quote_bitmap_word(0) == 1 << 5
        with pytest.raises(ReplayError) as exc:
            swap_in(pool, user_data)
        assert exc.value.code == "SWAAP#18"

    def test_expired(self, pool, quote):
        with pytest.raises(ReplayError) as exc:
            swap_in(pool, quote(deadline=NOW + 5), now=NOW + 6)
        assert exc.value.code == "SWAAP#16"

    def test_at_deadline(self, pool, quote):
        swap_in(pool, quote(deadline=NOW + 5), now=NOW + 5)

    def test_wrong_signer(self, pool, rogue_signer):
        user_data = rogue_signer.swap_user_data(
            SwapKind.GIVEN_IN, True, TRADER, TRADER, make_swap_data(), 1, DEADLINE
        )
        with pytest.raises(SignatureError) as exc:
            swap_in(pool, user_data)
        assert exc.value.code == "SWAAP#17"

    def test_other_direction(self, pool, quote):
        with pytest.raises(SignatureError):
            swap_in(pool, quote(is_token_in_token0=False))

    def test_other_kind(self, pool, quote):
        with pytest.raises(SignatureError):
            swap_out(pool, quote(), HALF)

    def test_other_sender(self, pool, quote):
        with pytest.raises(SignatureError):
            pool.on_swap(SwapKind.GIVEN_IN, True, HALF, OTHER, TRADER, quote(), now=NOW)

    def test_other_recipient(self, pool, quote):
        with pytest.raises(SignatureError):
            pool.on_swap(SwapKind.GIVEN_IN, True, HALF, TRADER, OTHER, quote(), now=NOW)

    def test_malformed_user_data(self, pool):
        with pytest.raises(PayloadError) as exc:
            swap_in(pool, b"\x01\x02\x03")
        assert exc.value.code == "SWAAP#15"


class TestSwapBounds:
    """Amount caps, price fairness, token-out floor, performance."""

    def test_exceeded_amount_in(self, pool, quote):
        with pytest.raises(SafeguardError) as exc:
            swap_in(pool, quote(max_swap_amount=ONE // 10))
        assert exc.value.code == "SWAAP#00"

    def test_exceeded_amount_out(self, pool, quote):
        with pytest.raises(SafeguardError) as exc:
            swap_out(pool, quote(kind=SwapKind.GIVEN_OUT, max_swap_amount=ONE // 10), HALF)
        assert exc.value.code == "SWAAP#01"

    def test_unfair_price(self, pool, quote):
        with pytest.raises(SafeguardError) as exc:
            swap_in(pool, quote(quote_amount_in_per_out=HALF))
        assert exc.value.code == "SWAAP#02"

    def test_unfair_against_oracle_move(self, quote):
        # token 1 doubled in value since the quote was signed at 1:1
        oracles = make_oracles(price1=2 * ORACLE_ONE)
        pool = make_pool(oracles=oracles)
        with pytest.raises(SafeguardError) as exc:
            swap_in(pool, quote())
        assert exc.value.kind is ErrorKind.UNFAIR_PRICE

    def test_min_balance_out(self, pool, quote):
        with pytest.raises(SafeguardError) as exc:
            swap_out(pool, quote(kind=SwapKind.GIVEN_OUT), 5 * ONE)
        assert exc.value.code == "SWAAP#04"

    def test_low_performance(self, quote):
        params = make_params(
            max_price_dev=ONE // 2,
            max_target_dev=ONE // 10,
            max_perf_dev=99 * ONE // 100,
        )
        pool = make_pool(params=params)
        with pytest.raises(SafeguardError) as exc:
            swap_in(pool, quote(quote_amount_in_per_out=6 * ONE // 10), amount=5 * ONE)
        assert exc.value.code == "SWAAP#03"

    def test_balance_tolerance(self, pool, quote):
        with pytest.raises(SafeguardError) as exc:
            swap_in(pool, quote(quote_balance_in=20 * ONE))
        assert exc.value.code == "SWAAP#20"

    def test_balance_drift_penalty(self, pool, quote):
        # pool holds 15 of token in, quote expected 16: (16 - 15) / 15
        user_data = quote(quote_balance_in=16 * ONE, balance_based_slippage=ONE // 10)
        result = swap_in(pool, user_data)
        assert result.penalty == mul_down(ONE // 10, div_down(ONE, 15 * ONE))

    def test_stale_oracle(self, pool, quote):
        with pytest.raises(OracleError) as exc:
            swap_in(pool, quote(), now=NOW + DAY + 1)
        assert exc.value.code == "SWAAP#23"

    def test_pegged_stable_ignores_oracle(self, quote):
        # stale 1.01 report for a stable token priced at its peg
        oracles = (StaticOracle(101_000_000, 8, NOW - 10 * DAY), StaticOracle(ORACLE_ONE, 8, NOW))
        pool = make_pool(oracles=oracles, stable=(True, False))
        assert swap_in(pool, quote()).amount_out == HALF


class TestAtomicity:
    """A rejected operation leaves no trace."""

    def test_failed_swap_keeps_quote_and_state(self, pool, quote):
        before = pool.snapshot()
        with pytest.raises(SafeguardError):
            swap_in(pool, quote(quote_index=3, quote_amount_in_per_out=HALF))
        assert not pool.is_quote_used(3)
        assert pool.snapshot() == before

        result = swap_in(pool, quote(quote_index=3))
        assert result.quote_index == 3
        assert pool.is_quote_used(3)

    def test_failed_join_keeps_quote(self, pool, quote):
        swap_user_data = quote(quote_index=9, sender=LP, recipient=LP)
        user_data = encode_join_exact_tokens_in_for_bpt_out(7 * ONE, [2 * ONE, 0], swap_user_data)
        with pytest.raises(SafeguardError) as exc:
            pool.on_join(LP, LP, user_data, now=NOW)
        assert exc.value.code == "SWAAP#05"
        assert not pool.is_quote_used(9)
        assert pool.total_supply == 100 * ONE

    def test_concurrent_swaps_consume_quote_once(self, pool, quote):
        user_data = quote(quote_index=11)
        outcomes = []

        def submit():
            try:
                swap_in(pool, user_data)
                outcomes.append("executed")
            except ReplayError:
                outcomes.append("replayed")

        threads = [threading.Thread(target=submit) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(outcomes) == ["executed"] + ["replayed"] * 7
        assert pool.balances == (INIT_BALANCES[0] + HALF, INIT_BALANCES[1] - HALF)


# ============================================================================
#  JOINS
# ============================================================================

class TestJoin:
    """Proportional and single-sided joins."""

    def test_all_tokens_in(self, pool):
        result = pool.on_join(LP, LP, encode_join_all_tokens_in_for_exact_bpt_out(10 * ONE), now=NOW)
        assert result.bpt_amount_out == 10 * ONE
        assert result.amounts_in == [15 * ONE // 10, 15 * ONE // 10]
        assert result.swap is None
        assert pool.total_supply == 110 * ONE
        assert pool.balances == (165 * ONE // 10, 165 * ONE // 10)

    def test_exact_tokens_in_balanced(self, pool):
        user_data = encode_join_exact_tokens_in_for_bpt_out(0, [3 * ONE, 3 * ONE], b"")
        result = pool.on_join(LP, LP, user_data, now=NOW)
        assert result.bpt_amount_out == 20 * ONE
        assert result.swap is None

    def test_exact_tokens_in_single_sided(self, pool, quote):
        swap_user_data = quote(quote_index=9, sender=LP, recipient=LP)
        user_data = encode_join_exact_tokens_in_for_bpt_out(6 * ONE, [2 * ONE, 0], swap_user_data)
        result = pool.on_join(LP, LP, user_data, now=NOW)

        # internal swap of 0.9375 token 0 for 0.9375 token 1 leaves a 1/15 share
        assert result.swap.amount_in == 9375 * 10 ** 14
        assert result.swap.amount_out == 9375 * 10 ** 14
        assert result.swap.quote_index == 9
        assert result.bpt_amount_out == mul_down(ONE // 15, 100 * ONE)
        assert result.amounts_in == [2 * ONE, 0]
        assert pool.balances == (17 * ONE, 15 * ONE)
        assert pool.total_supply == 100 * ONE + result.bpt_amount_out
        assert pool.is_quote_used(9)

    def test_single_sided_needs_matching_direction(self, pool, quote):
        swap_user_data = quote(is_token_in_token0=False, sender=LP, recipient=LP)
        user_data = encode_join_exact_tokens_in_for_bpt_out(0, [2 * ONE, 0], swap_user_data)
        with pytest.raises(SignatureError):
            pool.on_join(LP, LP, user_data, now=NOW)

    def test_management_fees_accrue_first(self, oracles):
        pool = make_pool(params=make_params(yearly_fees=2 * ONE // 100), oracles=oracles)
        user_data = encode_join_all_tokens_in_for_exact_bpt_out(10 * ONE)
        result = pool.on_join(LP, LP, user_data, now=NOW + YEAR)

        minted = result.protocol_fee_amount
        assert abs(fee_share(minted, 100 * ONE) - 2 * ONE // 100) <= 10 ** 9
        assert pool.total_supply == 100 * ONE + minted + 10 * ONE
        assert pool.snapshot().last_fee_accrual == NOW + YEAR


class TestAllowlist:
    """Joins restricted to signed-off liquidity providers."""

    @pytest.fixture
    def gated_pool(self):
        return make_pool(params=make_params(must_allowlist_lps=True), balances=None)

    def test_allowlisted_init(self, gated_pool, signer):
        user_data = signer.allowlist_user_data(LP, NOW + 10, encode_join_init(INIT_BALANCES))
        result = gated_pool.on_join(LP, LP, user_data, now=NOW)
        assert result.bpt_amount_out == 100 * ONE
        assert gated_pool.initialized

    def test_wrong_signer(self, gated_pool, rogue_signer):
        user_data = rogue_signer.allowlist_user_data(LP, NOW + 10, encode_join_init(INIT_BALANCES))
        with pytest.raises(SignatureError) as exc:
            gated_pool.on_join(LP, LP, user_data, now=NOW)
        assert exc.value.code == "SWAAP#19"

    def test_expired(self, gated_pool, signer):
        user_data = signer.allowlist_user_data(LP, NOW - 1, encode_join_init(INIT_BALANCES))
        with pytest.raises(SignatureError) as exc:
            gated_pool.on_join(LP, LP, user_data, now=NOW)
        assert exc.value.code == "BAL#440"

    def test_proof_bound_to_sender(self, gated_pool, signer):
        user_data = signer.allowlist_user_data(LP, NOW + 10, encode_join_init(INIT_BALANCES))
        with pytest.raises(SignatureError):
            gated_pool.on_join(OTHER, OTHER, user_data, now=NOW)
        assert not gated_pool.initialized

    def test_toggle(self, pool):
        pool.set_must_allowlist_lps(True)
        with pytest.raises(SafeguardError):
            pool.on_join(LP, LP, encode_join_all_tokens_in_for_exact_bpt_out(ONE), now=NOW)
        pool.set_must_allowlist_lps(False)
        pool.on_join(LP, LP, encode_join_all_tokens_in_for_exact_bpt_out(ONE), now=NOW)


# ============================================================================
#  EXITS
# ============================================================================

class TestExit:
    """Proportional and single-sided exits."""

    def test_exact_bpt_in(self, pool):
        result = pool.on_exit(LP, LP, encode_exit_exact_bpt_in_for_tokens_out(10 * ONE), now=NOW)
        assert result.amounts_out == [15 * ONE // 10, 15 * ONE // 10]
        assert result.bpt_amount_in == 10 * ONE
        assert pool.total_supply == 90 * ONE
        assert pool.balances == (135 * ONE // 10, 135 * ONE // 10)

    def test_burn_whole_supply(self, pool):
        with pytest.raises(SafeguardError) as exc:
            pool.on_exit(LP, LP, encode_exit_exact_bpt_in_for_tokens_out(100 * ONE), now=NOW)
        assert exc.value.code == "SWAAP#06"

    def test_exact_tokens_out_single_sided(self, pool, quote):
        swap_user_data = quote(quote_index=11, is_token_in_token0=False, sender=LP, recipient=LP)
        user_data = encode_exit_bpt_in_for_exact_tokens_out(7 * ONE, [2 * ONE, 0], swap_user_data)
        result = pool.on_exit(LP, LP, user_data, now=NOW)

        # a 1/15 share, rounded against the exiting LP
        assert mul_down(ONE // 15, 100 * ONE) < result.bpt_amount_in <= 6_666_666_666_666_666_700
        assert result.swap.quote_index == 11
        assert result.swap.amount_in == result.swap.amount_out
        assert pool.balances == (13 * ONE, 15 * ONE)
        assert pool.total_supply == 100 * ONE - result.bpt_amount_in
        assert pool.is_quote_used(11)

    def test_exact_tokens_out_balanced(self, pool):
        user_data = encode_exit_bpt_in_for_exact_tokens_out(20 * ONE, [3 * ONE, 3 * ONE], b"")
        result = pool.on_exit(LP, LP, user_data, now=NOW)
        assert result.bpt_amount_in == 20 * ONE
        assert result.swap is None

    def test_max_bpt_in_exceeded(self, pool, quote):
        swap_user_data = quote(is_token_in_token0=False, sender=LP, recipient=LP)
        user_data = encode_exit_bpt_in_for_exact_tokens_out(6 * ONE, [2 * ONE, 0], swap_user_data)
        with pytest.raises(SafeguardError) as exc:
            pool.on_exit(LP, LP, user_data, now=NOW)
        assert exc.value.code == "SWAAP#06"

    def test_exit_exceeding_balance(self, pool):
        user_data = encode_exit_bpt_in_for_exact_tokens_out(100 * ONE, [15 * ONE, 0], b"")
        with pytest.raises(SafeguardError) as exc:
            pool.on_exit(LP, LP, user_data, now=NOW)
        assert exc.value.kind is ErrorKind.MIN_BALANCE_OUT_NOT_MET


# ============================================================================
#  MANAGEMENT
# ============================================================================

class TestManagement:
    """Governance setters and periodic maintenance."""

    def test_set_management_fees_mints_accrued(self, pool):
        assert pool.set_management_fees(2 * ONE // 100, now=NOW + 10) == 0
        minted = pool.set_management_fees(0, now=NOW + 10 + YEAR)
        assert abs(fee_share(minted, 100 * ONE) - 2 * ONE // 100) <= 10 ** 9
        assert pool.total_supply == 100 * ONE + minted
        assert pool.params.yearly_fees == 0

    def test_management_fees_too_high(self, pool):
        with pytest.raises(ConfigurationError) as exc:
            pool.set_management_fees(6 * ONE // 10, now=NOW)
        assert exc.value.code == "SWAAP#14"
        assert pool.params.yearly_fees == 0

    def test_minted_supply_raises_balance_penalty(self, oracles, quote):
        pool = make_pool(params=make_params(yearly_fees=2 * ONE // 100), oracles=oracles)
        user_data = quote(deadline=NOW + 2 * YEAR, balance_based_slippage=ONE // 10)

        minted = pool.set_management_fees(2 * ONE // 100, now=NOW + YEAR)
        for oracle in oracles:
            oracle.set_price(ORACLE_ONE, updated_at=NOW + YEAR)
        result = swap_in(pool, user_data, now=NOW + YEAR)

        # quote priced against 100 pool tokens, the pool now has 100 + minted
        assert result.penalty == mul_down(ONE // 10, div_down(minted, 100 * ONE))

    def test_rotate_signer(self, pool, quote, rogue_signer):
        pool.set_signer(OTHER)
        with pytest.raises(SignatureError):
            swap_in(pool, quote())
        user_data = rogue_signer.swap_user_data(
            SwapKind.GIVEN_IN, True, TRADER, TRADER, make_swap_data(), 1, DEADLINE
        )
        assert swap_in(pool, user_data).amount_out == HALF

    def test_null_signer(self, pool):
        with pytest.raises(ConfigurationError) as exc:
            pool.set_signer(ZERO_ADDRESS)
        assert exc.value.code == "SWAAP#07"

    def test_set_risk_parameters(self, pool, quote):
        params = pool.set_risk_parameters(max_price_dev=ONE // 2)
        assert params.max_price_dev == ONE // 2
        assert params.max_perf_dev == 97 * ONE // 100
        # 0.6 per unit is now within the allowed deviation
        swap_in(pool, quote(quote_amount_in_per_out=6 * ONE // 10))

    def test_invalid_risk_parameters(self, pool):
        with pytest.raises(ConfigurationError) as exc:
            pool.set_risk_parameters(max_target_dev=ONE + 1)
        assert exc.value.code == "SWAAP#10"
        assert pool.params.max_target_dev == 75 * ONE // 100

    def test_update_performance_too_soon(self, pool):
        with pytest.raises(SafeguardError) as exc:
            pool.update_performance(now=NOW + 100)
        assert exc.value.code == "SWAAP#12"

    def test_update_performance(self, pool, quote):
        swap_in(pool, quote(origin_based_slippage=ORIGIN_SLIPPAGE), tx_origin=OTHER)
        pool.update_performance(now=NOW + DAY)

        snapshot = pool.snapshot()
        assert snapshot.last_perf_update == NOW + DAY
        # the penalty left the pool ahead of its benchmark
        assert snapshot.hodl_balances_per_pt[0] > 15 * ONE // 100
        assert snapshot.hodl_balances_per_pt[0] == snapshot.hodl_balances_per_pt[1]

    def test_evaluate_peg_states(self):
        oracles = (StaticOracle(100_100_000, 8, NOW), StaticOracle(ORACLE_ONE, 8, NOW))
        pool = make_pool(oracles=oracles, stable=(True, False), flexible=(True, False))
        assert pool.snapshot().pegged == (False, False)
        assert pool.evaluate_peg_states(now=NOW) == (True, False)
        assert pool.snapshot().pegged == (True, False)

        oracles[0].set_price(101_000_000, updated_at=NOW)
        assert pool.evaluate_peg_states(now=NOW) == (False, False)

    def test_peg_state_not_shared_between_pools(self):
        oracles = (StaticOracle(100_100_000, 8, NOW), StaticOracle(ORACLE_ONE, 8, NOW))
        shared = [OracleParams.for_oracle(o, is_stable=True, is_flexible_oracle=True) for o in oracles]
        first = SafeguardPool(POOL_ADDRESS, CHAIN_ID, make_params(), shared, clock=lambda: NOW)
        second = SafeguardPool(POOL_ADDRESS, CHAIN_ID, make_params(), shared, clock=lambda: NOW)

        assert first.evaluate_peg_states(now=NOW) == (True, True)
        assert first.snapshot().pegged == (True, True)
        assert second.snapshot().pegged == (False, False)
        assert not shared[0].is_pegged and not shared[1].is_pegged
