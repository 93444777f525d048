"""
Safeguard Pool

Two-token pool priced by signed off-chain quotes instead of an invariant
curve. Every swap, and every join or exit that needs an internal swap, is
validated in this order:

  1. decode user data
  2. verify the quote signature against the configured signer
  3. check the quote deadline and that its index is unused
  4. check the swap amount against the quote's cap
  5. read oracle prices (stale or invalid prices reject)
  6. compute time, origin and balance-drift penalties
  7. apply the penalty and check price fairness and the token-out floor
  8. check performance against the hodl benchmark
  9. commit: consume the quote index and update balances

Joins and exits first accrue management fees, then run the same checks on
the internal swap an unbalanced deposit or withdrawal implies.

Security features:
  - All checks run on local copies; state is committed only after the last
    check passes, so a rejected call leaves no trace
  - Per-pool lock serialises validate-and-commit
  - Quote indexes consumed at most once
  - Optional signed allowlist for liquidity providers
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple, Union

from eth_utils import to_checksum_address

from ..constants import INIT_BPT_SUPPLY, ONE, SUPPLY_HISTORY_SIZE
from ..crypto.encoding import (
    ExitRequest,
    JoinRequest,
    as_bytes,
    decode_exit_user_data,
    decode_join_user_data,
    decode_swap_data,
    decode_swap_user_data,
)
from ..exceptions import ErrorKind, PayloadError, SafeguardError
from ..kinds import ExitKind, JoinKind, SwapKind
from ..math.fixed_point import (
    div_down,
    div_up,
    downscale_down,
    downscale_up,
    mul_down,
    mul_up,
    upscale,
)
from ..math.safeguard_math import (
    apply_penalty_given_in,
    apply_penalty_given_out,
    calc_exit_ratio,
    calc_exit_swap_amounts,
    calc_join_ratio,
    calc_join_swap_amounts,
)
from ..types import (
    ExitResult,
    JoinResult,
    PoolParameters,
    PoolSnapshot,
    SignedSwapPayload,
    SwapData,
    SwapQuote,
    SwapResult,
)
from .fees import ManagementFeeState
from .oracle import OracleParams, evaluate_peg, get_price, on_chain_amount_in_per_out
from .penalty import PenaltyBreakdown, SlippagePenaltyCalculator
from .performance import PerformanceGuard
from .replay import QuoteReplayGuard
from .signature import QuoteSignatureVerifier
from .supply import SupplyHistory
from .validation import (
    check_fair_price,
    check_min_balance_out,
    check_swap_amount,
    validate_swap_bounds,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _AuthorizedQuote:
    payload: SignedSwapPayload
    swap_data: SwapData


@dataclass(frozen=True)
class _InternalSwap:
    """Internal swap of an unbalanced join or exit, pending commit."""
    quote_index: int
    deadline: int
    amount_in: int
    amount_out: int
    penalty: int


class SafeguardPool:
    """
    Validation engine and bookkeeping of one Safeguard pool.

    Balances and supply are tracked at 18 decimals internally. Amounts in
    and out of the public methods are in each token's own decimals.
    """

    def __init__(
        self,
        pool_address: str,
        chain_id: int,
        params: PoolParameters,
        oracles: Sequence[OracleParams],
        token_decimals: Sequence[int] = (18, 18),
        clock: Optional[Callable[[], int]] = None,
        supply_history_size: int = SUPPLY_HISTORY_SIZE,
    ):
        if len(oracles) != 2 or len(token_decimals) != 2:
            raise SafeguardError(ErrorKind.INPUT_LENGTH_MISMATCH, "pool holds exactly two tokens")
        self.pool_address = to_checksum_address(pool_address)
        self.chain_id = chain_id
        self._params = params.validate()
        self._oracles: List[OracleParams] = [replace(oracle_params) for oracle_params in oracles]
        self.token_decimals: Tuple[int, int] = (token_decimals[0], token_decimals[1])
        self._clock = clock or (lambda: int(time.time()))

        self._verifier = QuoteSignatureVerifier(chain_id, self.pool_address, params.signer)
        self._penalties = SlippagePenaltyCalculator(params.balance_penalty_mode)
        self._replay = QuoteReplayGuard()
        self._supply_history = SupplyHistory(supply_history_size)

        self._balances: List[int] = [0, 0]
        self._total_supply = 0
        self._performance: Optional[PerformanceGuard] = None
        self._fees = ManagementFeeState.from_yearly_fees(params.yearly_fees, self._clock())

        self._lock = threading.Lock()

        logger.info(
            "Safeguard pool %s created: chain %d, signer %s", self.pool_address, chain_id, params.signer
        )

    # -- Properties ---------------------------------------------------------

    @property
    def params(self) -> PoolParameters:
        return self._params

    @property
    def initialized(self) -> bool:
        return self._performance is not None

    @property
    def total_supply(self) -> int:
        return self._total_supply

    @property
    def balances(self) -> Tuple[int, int]:
        """Pool balances in token decimals."""
        return (
            downscale_down(self._balances[0], self.token_decimals[0]),
            downscale_down(self._balances[1], self.token_decimals[1]),
        )

    @property
    def oracles(self) -> Tuple[OracleParams, OracleParams]:
        return self._oracles[0], self._oracles[1]

    def is_quote_used(self, quote_index: int) -> bool:
        return self._replay.is_used(quote_index)

    def get_quote_bitmap_word(self, word_index: int) -> int:
        return self._replay.get_word(word_index)

    def snapshot(self) -> PoolSnapshot:
        hodl = self._performance.state if self._performance else None
        return PoolSnapshot(
            balances=(self._balances[0], self._balances[1]),
            total_supply=self._total_supply,
            hodl_balances_per_pt=hodl.hodl_balances_per_pt if hodl else (0, 0),
            last_perf_update=hodl.last_update_timestamp if hodl else 0,
            last_fee_accrual=self._fees.last_accrual_timestamp,
            initialized=self.initialized,
            pegged=(self._oracles[0].is_pegged, self._oracles[1].is_pegged),
        )

    # -- Helpers ------------------------------------------------------------

    def _now(self, now: Optional[int]) -> int:
        return self._clock() if now is None else now

    def _require_initialized(self) -> PerformanceGuard:
        if self._performance is None:
            raise SafeguardError(ErrorKind.UNINITIALIZED)
        return self._performance

    def _prices(self, now: int) -> List[int]:
        return [get_price(params, now) for params in self._oracles]

    def _authorize_quote(
        self,
        kind: SwapKind,
        is_token_in_token0: bool,
        sender: str,
        recipient: str,
        user_data: bytes,
        now: int,
    ) -> _AuthorizedQuote:
        payload = decode_swap_user_data(user_data)
        quote = SwapQuote(
            kind=kind,
            is_token_in_token0=is_token_in_token0,
            sender=sender,
            recipient=recipient,
            swap_data=payload.swap_data,
            quote_index=payload.quote_index,
            deadline=payload.deadline,
        )
        self._verifier.verify_swap(quote, payload.signature)
        self._replay.check(payload.quote_index, payload.deadline, now)
        return _AuthorizedQuote(payload=payload, swap_data=decode_swap_data(payload.swap_data))

    def _penalty(
        self,
        swap_data: SwapData,
        now: int,
        tx_origin: str,
        index_in: int,
        balances: Sequence[int],
        total_supply: int,
    ) -> PenaltyBreakdown:
        quote_total_supply = self._supply_history.supply_at(swap_data.start_time, total_supply)
        return self._penalties.compute(
            swap_data,
            now,
            tx_origin,
            balances[index_in],
            balances[1 - index_in],
            total_supply,
            quote_total_supply,
        )

    # -- Swaps --------------------------------------------------------------

    def on_swap(
        self,
        kind: Union[SwapKind, int],
        is_token_in_token0: bool,
        amount: int,
        sender: str,
        recipient: str,
        user_data: Union[bytes, str],
        tx_origin: Optional[str] = None,
        now: Optional[int] = None,
    ) -> SwapResult:
        """
        Validate a swap against its signed quote and commit it.

        Args:
            kind: GIVEN_IN (``amount`` is the exact input) or GIVEN_OUT
            is_token_in_token0: direction of the trade
            amount: the given amount, in the given token's decimals
            sender: account the quote was issued to
            recipient: account receiving token out
            user_data: encoded signed swap payload
            tx_origin: originating account, defaults to ``sender``
            now: validation timestamp, defaults to the pool clock

        Returns:
            SwapResult with both amounts in token decimals

        Raises:
            SafeguardError: on the first failing check; nothing is committed
        """
        kind = SwapKind.from_int(int(kind))
        if amount <= 0:
            raise ValueError("Swap amount must be positive")
        now = self._now(now)

        with self._lock:
            return self._execute_swap(
                kind,
                is_token_in_token0,
                amount,
                sender,
                recipient,
                as_bytes(user_data),
                tx_origin or sender,
                now,
            )

    def _execute_swap(
        self,
        kind: SwapKind,
        is_token_in_token0: bool,
        amount: int,
        sender: str,
        recipient: str,
        user_data: bytes,
        tx_origin: str,
        now: int,
    ) -> SwapResult:
        """Core swap logic, called under the pool lock."""
        performance = self._require_initialized()
        index_in = 0 if is_token_in_token0 else 1
        index_out = 1 - index_in
        decimals_in = self.token_decimals[index_in]
        decimals_out = self.token_decimals[index_out]

        quote = self._authorize_quote(kind, is_token_in_token0, sender, recipient, user_data, now)
        swap_data = quote.swap_data
        balances = list(self._balances)
        total_supply = self._total_supply

        given = upscale(amount, decimals_in if kind is SwapKind.GIVEN_IN else decimals_out)
        check_swap_amount(kind, given, given, swap_data.max_swap_amount)

        prices = self._prices(now)
        penalty = self._penalty(swap_data, now, tx_origin, index_in, balances, total_supply)

        if kind is SwapKind.GIVEN_IN:
            raw_in = amount
            raw_out = downscale_down(
                apply_penalty_given_in(given, swap_data.quote_amount_in_per_out, penalty.total),
                decimals_out,
            )
        else:
            raw_out = amount
            raw_in = downscale_up(
                apply_penalty_given_out(given, swap_data.quote_amount_in_per_out, penalty.total),
                decimals_in,
            )
        amount_in = upscale(raw_in, decimals_in)
        amount_out = upscale(raw_out, decimals_out)

        check_fair_price(
            swap_data.quote_amount_in_per_out,
            on_chain_amount_in_per_out(prices[index_in], prices[index_out]),
            amount_in,
            amount_out,
            self._params.max_price_dev,
        )
        check_min_balance_out(
            balances[index_out],
            amount_out,
            total_supply,
            performance.state.hodl_balances_per_pt[index_out],
            self._params.max_target_dev,
        )

        post_balances = list(balances)
        post_balances[index_in] += amount_in
        post_balances[index_out] -= amount_out
        performance.check(post_balances, total_supply, prices, index_in, self._params.max_perf_dev)

        # -- commit --
        self._replay.consume(quote.payload.quote_index, quote.payload.deadline, now)
        self._balances = post_balances

        logger.info(
            "Swap quote #%d: %d in, %d out (penalty %d)",
            quote.payload.quote_index, raw_in, raw_out, penalty.total,
        )
        return SwapResult(
            amount_in=raw_in,
            amount_out=raw_out,
            penalty=penalty.total,
            quote_index=quote.payload.quote_index,
        )

    def _validate_internal_swap(
        self,
        index_in: int,
        balances: Sequence[int],
        total_supply: int,
        sender: str,
        recipient: str,
        tx_origin: str,
        swap_user_data: bytes,
        now: int,
        size_swap: Callable[[int], Tuple[int, int]],
    ) -> _InternalSwap:
        """
        Authorize and check the GivenIn swap an unbalanced join or exit
        performs against the pool. ``size_swap`` maps the penalised price to
        ``(amount_in, amount_out)``.
        """
        performance = self._require_initialized()
        index_out = 1 - index_in
        quote = self._authorize_quote(SwapKind.GIVEN_IN, index_in == 0, sender, recipient, swap_user_data, now)
        swap_data = quote.swap_data

        prices = self._prices(now)
        penalty = self._penalty(swap_data, now, tx_origin, index_in, balances, total_supply)
        price = mul_up(swap_data.quote_amount_in_per_out, ONE + penalty.total)
        amount_in, amount_out = size_swap(price)

        validate_swap_bounds(
            SwapKind.GIVEN_IN,
            balances[index_out],
            amount_in,
            amount_out,
            swap_data.quote_amount_in_per_out,
            swap_data.max_swap_amount,
            on_chain_amount_in_per_out(prices[index_in], prices[index_out]),
            total_supply,
            performance.state.hodl_balances_per_pt[index_out],
            self._params.max_price_dev,
            self._params.max_target_dev,
        )
        post_balances = list(balances)
        post_balances[index_in] += amount_in
        post_balances[index_out] -= amount_out
        performance.check(post_balances, total_supply, prices, index_in, self._params.max_perf_dev)

        return _InternalSwap(
            quote_index=quote.payload.quote_index,
            deadline=quote.payload.deadline,
            amount_in=amount_in,
            amount_out=amount_out,
            penalty=penalty.total,
        )

    def _swap_result(self, swap: Optional[_InternalSwap], index_in: int) -> Optional[SwapResult]:
        if swap is None:
            return None
        return SwapResult(
            amount_in=downscale_up(swap.amount_in, self.token_decimals[index_in]),
            amount_out=downscale_down(swap.amount_out, self.token_decimals[1 - index_in]),
            penalty=swap.penalty,
            quote_index=swap.quote_index,
        )

    def _upscale_amounts(self, amounts: Sequence[int]) -> List[int]:
        if len(amounts) != 2:
            raise SafeguardError(ErrorKind.INPUT_LENGTH_MISMATCH)
        return [upscale(a, d) for a, d in zip(amounts, self.token_decimals)]

    # -- Joins --------------------------------------------------------------

    def on_join(
        self,
        sender: str,
        recipient: str,
        user_data: Union[bytes, str],
        tx_origin: Optional[str] = None,
        now: Optional[int] = None,
    ) -> JoinResult:
        """
        Validate and commit a join.

        When LPs must be allowlisted, ``user_data`` is the allowlist wrapper
        around the join payload.
        """
        now = self._now(now)
        with self._lock:
            return self._execute_join(sender, recipient, as_bytes(user_data), tx_origin or sender, now)

    def _execute_join(
        self,
        sender: str,
        recipient: str,
        user_data: bytes,
        tx_origin: str,
        now: int,
    ) -> JoinResult:
        if self._params.must_allowlist_lps:
            user_data = self._verifier.unwrap_allowlisted_join(sender, user_data, now)
        request = decode_join_user_data(user_data)

        if request.kind is JoinKind.INIT:
            return self._initialize(request, now)
        self._require_initialized()

        minted, fee_state = self._fees.accrue(self._total_supply, now)
        total_supply = self._total_supply + minted
        balances = list(self._balances)
        swap: Optional[_InternalSwap] = None
        swap_index_in = 0

        if request.kind is JoinKind.ALL_TOKENS_IN_FOR_EXACT_BPT_OUT:
            bpt_amount_out = request.bpt_amount
            ratio = div_up(bpt_amount_out, total_supply)
            amounts_in = [mul_up(b, ratio) for b in balances]
            raw_amounts_in = [downscale_up(a, d) for a, d in zip(amounts_in, self.token_decimals)]
            amounts_in = [upscale(a, d) for a, d in zip(raw_amounts_in, self.token_decimals)]
        else:
            raw_amounts_in = list(request.amounts_in)
            amounts_in = self._upscale_amounts(raw_amounts_in)
            bpt_amount_out, swap, swap_index_in = self._exact_tokens_in_join(
                request, amounts_in, balances, total_supply, sender, recipient, tx_origin, now
            )
            if bpt_amount_out < request.bpt_amount:
                raise SafeguardError(
                    ErrorKind.NOT_ENOUGH_PT_OUT, f"{bpt_amount_out} < {request.bpt_amount}"
                )

        new_balances = [b + a for b, a in zip(balances, amounts_in)]
        new_supply = total_supply + bpt_amount_out

        # -- commit --
        if swap is not None:
            self._replay.consume(swap.quote_index, swap.deadline, now)
        self._fees = fee_state
        self._balances = new_balances
        self._total_supply = new_supply
        self._supply_history.record(now, new_supply)

        logger.info(
            "Join %s: %d pool tokens out, fees minted %d", request.kind.name, bpt_amount_out, minted
        )
        return JoinResult(
            bpt_amount_out=bpt_amount_out,
            amounts_in=raw_amounts_in,
            protocol_fee_amount=minted,
            swap=self._swap_result(swap, swap_index_in),
        )

    def _exact_tokens_in_join(
        self,
        request: JoinRequest,
        amounts_in: List[int],
        balances: List[int],
        total_supply: int,
        sender: str,
        recipient: str,
        tx_origin: str,
        now: int,
    ) -> Tuple[int, Optional[_InternalSwap], int]:
        # x: token provided in excess of the pool's proportions
        x = 0 if amounts_in[0] * balances[1] >= amounts_in[1] * balances[0] else 1
        l = 1 - x
        if amounts_in[x] * balances[l] == amounts_in[l] * balances[x]:
            ratio = min(div_down(amounts_in[0], balances[0]), div_down(amounts_in[1], balances[1]))
            return mul_down(ratio, total_supply), None, x

        def size_swap(price: int) -> Tuple[int, int]:
            return calc_join_swap_amounts(balances[x], balances[l], amounts_in[x], amounts_in[l], price)

        swap = self._validate_internal_swap(
            x, balances, total_supply, sender, recipient, tx_origin,
            request.swap_user_data, now, size_swap,
        )
        ratio = calc_join_ratio(
            balances[x], balances[l], amounts_in[x], amounts_in[l], swap.amount_in, swap.amount_out
        )
        return mul_down(ratio, total_supply), swap, x

    def _initialize(self, request: JoinRequest, now: int) -> JoinResult:
        if self.initialized:
            raise PayloadError(ErrorKind.UNHANDLED_JOIN_KIND, "pool already initialized")
        balances = self._upscale_amounts(request.amounts_in)
        if min(balances) == 0:
            raise PayloadError(ErrorKind.MALFORMED_USER_DATA, "initial balances must be positive")

        self._balances = balances
        self._total_supply = INIT_BPT_SUPPLY
        self._performance = PerformanceGuard.initialize(balances, INIT_BPT_SUPPLY, now)
        self._fees = ManagementFeeState.from_yearly_fees(self._params.yearly_fees, now)
        self._supply_history.record(now, INIT_BPT_SUPPLY)

        logger.info("Pool %s initialized with balances %s", self.pool_address, list(request.amounts_in))
        return JoinResult(bpt_amount_out=INIT_BPT_SUPPLY, amounts_in=list(request.amounts_in))

    # -- Exits --------------------------------------------------------------

    def on_exit(
        self,
        sender: str,
        recipient: str,
        user_data: Union[bytes, str],
        tx_origin: Optional[str] = None,
        now: Optional[int] = None,
    ) -> ExitResult:
        """Validate and commit an exit."""
        now = self._now(now)
        with self._lock:
            return self._execute_exit(sender, recipient, as_bytes(user_data), tx_origin or sender, now)

    def _execute_exit(
        self,
        sender: str,
        recipient: str,
        user_data: bytes,
        tx_origin: str,
        now: int,
    ) -> ExitResult:
        self._require_initialized()
        request = decode_exit_user_data(user_data)

        minted, fee_state = self._fees.accrue(self._total_supply, now)
        total_supply = self._total_supply + minted
        balances = list(self._balances)
        swap: Optional[_InternalSwap] = None
        swap_index_in = 0

        if request.kind is ExitKind.EXACT_BPT_IN_FOR_TOKENS_OUT:
            bpt_amount_in = request.bpt_amount
            if bpt_amount_in >= total_supply:
                raise SafeguardError(ErrorKind.EXCEEDED_BURNED_PT, "cannot burn the whole supply")
            ratio = div_down(bpt_amount_in, total_supply)
            amounts_out = [mul_down(b, ratio) for b in balances]
            raw_amounts_out = [downscale_down(a, d) for a, d in zip(amounts_out, self.token_decimals)]
            amounts_out = [upscale(a, d) for a, d in zip(raw_amounts_out, self.token_decimals)]
        else:
            raw_amounts_out = list(request.amounts_out)
            amounts_out = self._upscale_amounts(raw_amounts_out)
            bpt_amount_in, swap, swap_index_in = self._exact_tokens_out_exit(
                request, amounts_out, balances, total_supply, sender, recipient, tx_origin, now
            )
            if bpt_amount_in > request.bpt_amount:
                raise SafeguardError(
                    ErrorKind.EXCEEDED_BURNED_PT, f"{bpt_amount_in} > {request.bpt_amount}"
                )

        new_balances = [b - a for b, a in zip(balances, amounts_out)]
        new_supply = total_supply - bpt_amount_in

        # -- commit --
        if swap is not None:
            self._replay.consume(swap.quote_index, swap.deadline, now)
        self._fees = fee_state
        self._balances = new_balances
        self._total_supply = new_supply
        self._supply_history.record(now, new_supply)

        logger.info(
            "Exit %s: %d pool tokens in, fees minted %d", request.kind.name, bpt_amount_in, minted
        )
        return ExitResult(
            bpt_amount_in=bpt_amount_in,
            amounts_out=raw_amounts_out,
            protocol_fee_amount=minted,
            swap=self._swap_result(swap, swap_index_in),
        )

    def _exact_tokens_out_exit(
        self,
        request: ExitRequest,
        amounts_out: List[int],
        balances: List[int],
        total_supply: int,
        sender: str,
        recipient: str,
        tx_origin: str,
        now: int,
    ) -> Tuple[int, Optional[_InternalSwap], int]:
        # x: token requested in excess of the pool's proportions, bought with l
        x = 0 if amounts_out[0] * balances[1] >= amounts_out[1] * balances[0] else 1
        l = 1 - x
        if amounts_out[x] >= balances[x] or amounts_out[l] >= balances[l]:
            raise SafeguardError(ErrorKind.MIN_BALANCE_OUT_NOT_MET, "exit exceeds pool balance")
        if amounts_out[x] * balances[l] == amounts_out[l] * balances[x]:
            ratio = max(div_up(amounts_out[0], balances[0]), div_up(amounts_out[1], balances[1]))
            return mul_up(ratio, total_supply), None, l

        def size_swap(price: int) -> Tuple[int, int]:
            return calc_exit_swap_amounts(balances[x], balances[l], amounts_out[x], amounts_out[l], price)

        swap = self._validate_internal_swap(
            l, balances, total_supply, sender, recipient, tx_origin,
            request.swap_user_data, now, size_swap,
        )
        ratio = calc_exit_ratio(
            balances[x], balances[l], amounts_out[x], amounts_out[l], swap.amount_in, swap.amount_out
        )
        return mul_up(ratio, total_supply), swap, l

    # -- Management ---------------------------------------------------------

    def set_management_fees(self, yearly_fees: int, now: Optional[int] = None) -> int:
        """
        Change the yearly management fee. Fees accrued at the old rate are
        minted first; the minted amount is returned.
        """
        new_params = replace(self._params, yearly_fees=yearly_fees).validate()
        now = self._now(now)
        with self._lock:
            minted = 0
            if self.initialized:
                minted, fee_state = self._fees.accrue(self._total_supply, now)
                self._total_supply += minted
                self._supply_history.record(now, self._total_supply)
            else:
                fee_state = ManagementFeeState(self._fees.yearly_rate, now)
            self._fees = fee_state.with_yearly_fees(yearly_fees)
            self._params = new_params
            logger.info("Management fees set to %d (minted %d)", yearly_fees, minted)
            return minted

    def set_must_allowlist_lps(self, must_allowlist_lps: bool) -> None:
        with self._lock:
            self._params = replace(self._params, must_allowlist_lps=must_allowlist_lps)
        logger.info("Allowlist for LPs %s", "enabled" if must_allowlist_lps else "disabled")

    def set_signer(self, signer: str) -> None:
        with self._lock:
            self._params = replace(self._params, signer=signer).validate()
            self._verifier = QuoteSignatureVerifier(self.chain_id, self.pool_address, signer)
        logger.info("Quote signer set to %s", signer)

    def set_risk_parameters(
        self,
        max_perf_dev: Optional[int] = None,
        max_target_dev: Optional[int] = None,
        max_price_dev: Optional[int] = None,
        perf_update_interval: Optional[int] = None,
    ) -> PoolParameters:
        changes = {
            name: value
            for name, value in (
                ("max_perf_dev", max_perf_dev),
                ("max_target_dev", max_target_dev),
                ("max_price_dev", max_price_dev),
                ("perf_update_interval", perf_update_interval),
            )
            if value is not None
        }
        with self._lock:
            self._params = replace(self._params, **changes).validate()
            return self._params

    def update_performance(self, now: Optional[int] = None) -> None:
        """Take a new performance checkpoint once ``perf_update_interval`` has elapsed."""
        now = self._now(now)
        with self._lock:
            performance = self._require_initialized()
            state = performance.updated(
                self._balances,
                self._total_supply,
                self._prices(now),
                now,
                self._params.perf_update_interval,
            )
            self._performance = PerformanceGuard(state)
            logger.info("Performance checkpoint updated: %s", state.hodl_balances_per_pt)

    def evaluate_peg_states(self, now: Optional[int] = None) -> Tuple[bool, bool]:
        """
        Re-evaluate the peg of stable tokens with flexible oracles.

        The pool keeps its own copies of the oracle settings, so peg state is
        never shared with other pools or with the caller.
        """
        now = self._now(now)
        with self._lock:
            pegged = [evaluate_peg(params, now) for params in self._oracles]
            self._oracles = [
                replace(params, is_pegged=is_pegged) for params, is_pegged in zip(self._oracles, pegged)
            ]
            return pegged[0], pegged[1]
