"""
Concentrated Liquidity Pool - 인메모리 AMM 풀

Vault의 AMM 협력자 인터페이스를 구현하는 시뮬레이션 풀.
틱 크로싱, fee growth(백서 Section 6.3, 6.4), 콜백 기반 정산을 지원합니다.
exact-input 스왑만 지원하며 풀 자체의 프로토콜 수수료는 없습니다.

정산:
    open_position → caller.amm_mint_callback(pool, amount0, amount1)
    swap          → caller.amm_swap_callback(pool, amount0_delta, amount1_delta)
    콜백 반환 후 풀 잔고가 요청 수량만큼 늘지 않았으면 CollaboratorError.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..constants import Q96, MIN_TICK, MAX_TICK
from ..math.fee_math import fee_growth_inside, calculate_uncollected_fees, fee_growth_increment
from ..math.liquidity_math import get_amounts_for_liquidity
from ..math.swap_math import compute_swap_step
from ..math.tick_math import (
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
    get_tick_spacing_for_fee,
)
from ..vault.errors import CollaboratorError
from ..vault.interfaces import PositionInfo
from .token import TokenLedger


@dataclass
class TickInfo:
    """Tick-Indexed State (백서 Section 6.3, Table 2)

    - liquidity_gross: 해당 틱을 경계로 하는 총 유동성
    - liquidity_net: 틱 크로싱 시 유동성 변화량 (ΔL)
    - fee_growth_outside_*_x128: 틱 외부 누적수수료 (f_o)
    """
    liquidity_gross: int = 0
    liquidity_net: int = 0
    fee_growth_outside_0_x128: int = 0
    fee_growth_outside_1_x128: int = 0


class ConcentratedLiquidityPool:
    """집중 유동성 AMM 풀 시뮬레이터

    사용법:
        pool = ConcentratedLiquidityPool("0xpool", token_a, token_b, fee=3000)
        pool.open_position(lp, -600, 600, 10**18)
        pool.swap(trader, True, 10**15, MIN_SQRT_RATIO + 1)
    """

    def __init__(
        self,
        address: str,
        token0: TokenLedger,
        token1: TokenLedger,
        fee: int = 3000,
        sqrt_price_x96: int = Q96,
        tick_spacing: Optional[int] = None
    ):
        if not MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO:
            raise ValueError(f"sqrtPriceX96이 유효 범위를 벗어났습니다: {sqrt_price_x96}")

        self.address = address
        self.token0 = token0
        self.token1 = token1
        self.fee = fee
        self.tick_spacing = tick_spacing or get_tick_spacing_for_fee(fee)

        self.sqrt_price_x96 = sqrt_price_x96
        self.tick = get_tick_at_sqrt_ratio(sqrt_price_x96)
        self.liquidity = 0
        self.fee_growth_global_0_x128 = 0
        self.fee_growth_global_1_x128 = 0

        self.ticks: Dict[int, TickInfo] = {}
        self.positions: Dict[Tuple[str, int, int], PositionInfo] = {}

    # ===== 조회 =====

    def current_price(self) -> int:
        return self.sqrt_price_x96

    def current_tick(self) -> int:
        return self.tick

    def position_info(self, owner: str, tick_lower: int, tick_upper: int) -> PositionInfo:
        position = self.positions.get((owner, tick_lower, tick_upper))
        return copy.copy(position) if position else PositionInfo()

    # ===== 포지션 =====

    def open_position(self, caller: Any, tick_lower: int, tick_upper: int, liquidity: int) -> Tuple[int, int]:
        """유동성 추가 (mint). 필요한 수량은 콜백으로 정산"""
        if liquidity <= 0:
            raise CollaboratorError(f"추가할 유동성은 양수여야 합니다: {liquidity}")

        amount0, amount1 = self._modify_position(caller.address, tick_lower, tick_upper, liquidity)

        balance0_before = self.token0.balance_of(self.address)
        balance1_before = self.token1.balance_of(self.address)
        caller.amm_mint_callback(self, amount0, amount1)
        if amount0 > 0 and self.token0.balance_of(self.address) < balance0_before + amount0:
            raise CollaboratorError(f"mint 정산 실패: token0 {amount0} 미지급")
        if amount1 > 0 and self.token1.balance_of(self.address) < balance1_before + amount1:
            raise CollaboratorError(f"mint 정산 실패: token1 {amount1} 미지급")

        return amount0, amount1

    def close_position(self, caller: Any, tick_lower: int, tick_upper: int, liquidity: int) -> Tuple[int, int]:
        """유동성 제거 (burn). 원금은 tokens_owed에 적립되고 collect_owed로 수령

        liquidity=0 호출은 수수료만 갱신합니다 (poke).
        """
        key = (caller.address, tick_lower, tick_upper)
        position = self.positions.get(key)
        if position is None or position.liquidity == 0:
            raise CollaboratorError(f"포지션이 없습니다: {key}")
        if liquidity < 0 or liquidity > position.liquidity:
            raise CollaboratorError(f"제거할 유동성이 잘못되었습니다: {liquidity} (보유 {position.liquidity})")

        amount0, amount1 = self._modify_position(caller.address, tick_lower, tick_upper, -liquidity)

        position = self.positions[key]
        position.tokens_owed_0 += amount0
        position.tokens_owed_1 += amount1
        return amount0, amount1

    def collect_owed(
        self,
        caller: Any,
        tick_lower: int,
        tick_upper: int,
        max_amount0: int,
        max_amount1: int
    ) -> Tuple[int, int]:
        """미수령 수량 수령"""
        position = self.positions.get((caller.address, tick_lower, tick_upper))
        if position is None:
            return 0, 0

        amount0 = min(max_amount0, position.tokens_owed_0)
        amount1 = min(max_amount1, position.tokens_owed_1)
        position.tokens_owed_0 -= amount0
        position.tokens_owed_1 -= amount1

        if amount0 > 0:
            self.token0.transfer(self.address, caller.address, amount0)
        if amount1 > 0:
            self.token1.transfer(self.address, caller.address, amount1)
        return amount0, amount1

    # ===== 스왑 =====

    def swap(self, caller: Any, zero_for_one: bool, amount_in: int, sqrt_price_limit_x96: int) -> Tuple[int, int]:
        """exact-input 스왑

        Returns:
            (amount0_delta, amount1_delta) - 양수는 풀이 받은 수량, 음수는 지급한 수량
        """
        if amount_in <= 0:
            raise CollaboratorError(f"스왑 입력은 양수여야 합니다: {amount_in}")
        if zero_for_one:
            if not MIN_SQRT_RATIO < sqrt_price_limit_x96 < self.sqrt_price_x96:
                raise CollaboratorError(f"잘못된 가격 한도: {sqrt_price_limit_x96}")
        else:
            if not self.sqrt_price_x96 < sqrt_price_limit_x96 < MAX_SQRT_RATIO:
                raise CollaboratorError(f"잘못된 가격 한도: {sqrt_price_limit_x96}")

        remaining = amount_in
        amount_out = 0

        while remaining > 0 and self.sqrt_price_x96 != sqrt_price_limit_x96:
            sqrt_price_start = self.sqrt_price_x96
            next_tick = self._next_initialized_tick(zero_for_one)
            sqrt_price_next_tick = get_sqrt_ratio_at_tick(next_tick)

            if zero_for_one:
                target = max(sqrt_price_next_tick, sqrt_price_limit_x96)
            else:
                target = min(sqrt_price_next_tick, sqrt_price_limit_x96)

            step = compute_swap_step(sqrt_price_start, target, self.liquidity, remaining, self.fee)
            self.sqrt_price_x96 = step.sqrt_price_next_x96
            remaining -= step.amount_in + step.fee_amount
            amount_out += step.amount_out

            if zero_for_one:
                self.fee_growth_global_0_x128 += fee_growth_increment(step.fee_amount, self.liquidity)
            else:
                self.fee_growth_global_1_x128 += fee_growth_increment(step.fee_amount, self.liquidity)

            if self.sqrt_price_x96 == sqrt_price_next_tick:
                if next_tick in self.ticks:
                    liquidity_net = self._cross_tick(next_tick)
                    self.liquidity += -liquidity_net if zero_for_one else liquidity_net
                self.tick = next_tick - 1 if zero_for_one else next_tick
            elif self.sqrt_price_x96 != sqrt_price_start:
                self.tick = get_tick_at_sqrt_ratio(self.sqrt_price_x96)

        amount_paid = amount_in - remaining
        if zero_for_one:
            amount0, amount1 = amount_paid, -amount_out
            if amount_out > 0:
                self.token1.transfer(self.address, caller.address, amount_out)
            balance_before = self.token0.balance_of(self.address)
            caller.amm_swap_callback(self, amount0, amount1)
            if self.token0.balance_of(self.address) < balance_before + amount0:
                raise CollaboratorError(f"swap 정산 실패: token0 {amount0} 미지급")
        else:
            amount0, amount1 = -amount_out, amount_paid
            if amount_out > 0:
                self.token0.transfer(self.address, caller.address, amount_out)
            balance_before = self.token1.balance_of(self.address)
            caller.amm_swap_callback(self, amount0, amount1)
            if self.token1.balance_of(self.address) < balance_before + amount1:
                raise CollaboratorError(f"swap 정산 실패: token1 {amount1} 미지급")

        return amount0, amount1

    # ===== 롤백 =====

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy({
            "sqrt_price_x96": self.sqrt_price_x96,
            "tick": self.tick,
            "liquidity": self.liquidity,
            "fee_growth_global_0_x128": self.fee_growth_global_0_x128,
            "fee_growth_global_1_x128": self.fee_growth_global_1_x128,
            "ticks": self.ticks,
            "positions": self.positions,
        })

    def restore(self, snapshot: Dict[str, Any]) -> None:
        for name, value in copy.deepcopy(snapshot).items():
            setattr(self, name, value)

    # ===== 내부 =====

    def _check_ticks(self, tick_lower: int, tick_upper: int) -> None:
        if tick_lower >= tick_upper:
            raise CollaboratorError(f"하한 틱이 상한 틱보다 작아야 합니다: [{tick_lower}, {tick_upper}]")
        if tick_lower < MIN_TICK or tick_upper > MAX_TICK:
            raise CollaboratorError(f"틱이 전역 범위를 벗어났습니다: [{tick_lower}, {tick_upper}]")
        if tick_lower % self.tick_spacing or tick_upper % self.tick_spacing:
            raise CollaboratorError(f"틱이 간격 {self.tick_spacing}의 배수가 아닙니다: [{tick_lower}, {tick_upper}]")

    def _modify_position(self, owner: str, tick_lower: int, tick_upper: int, liquidity_delta: int) -> Tuple[int, int]:
        self._check_ticks(tick_lower, tick_upper)
        self._update_position(owner, tick_lower, tick_upper, liquidity_delta)

        if tick_lower <= self.tick < tick_upper:
            self.liquidity += liquidity_delta

        if liquidity_delta == 0:
            return 0, 0

        # 추가 시 올림(풀이 더 받음), 제거 시 내림(풀이 덜 줌)
        return get_amounts_for_liquidity(
            self.sqrt_price_x96,
            get_sqrt_ratio_at_tick(tick_lower),
            get_sqrt_ratio_at_tick(tick_upper),
            abs(liquidity_delta),
            round_up=liquidity_delta > 0
        )

    def _update_position(self, owner: str, tick_lower: int, tick_upper: int, liquidity_delta: int) -> None:
        if liquidity_delta != 0:
            self._update_tick(tick_lower, liquidity_delta, upper=False)
            self._update_tick(tick_upper, liquidity_delta, upper=True)

        lower = self.ticks[tick_lower]
        upper = self.ticks[tick_upper]
        inside_0 = fee_growth_inside(
            tick_lower, tick_upper, self.tick, self.fee_growth_global_0_x128,
            lower.fee_growth_outside_0_x128, upper.fee_growth_outside_0_x128
        )
        inside_1 = fee_growth_inside(
            tick_lower, tick_upper, self.tick, self.fee_growth_global_1_x128,
            lower.fee_growth_outside_1_x128, upper.fee_growth_outside_1_x128
        )

        position = self.positions.setdefault((owner, tick_lower, tick_upper), PositionInfo())
        position.tokens_owed_0 += calculate_uncollected_fees(
            position.liquidity, inside_0, position.fee_growth_inside_0_last_x128
        )
        position.tokens_owed_1 += calculate_uncollected_fees(
            position.liquidity, inside_1, position.fee_growth_inside_1_last_x128
        )
        position.fee_growth_inside_0_last_x128 = inside_0
        position.fee_growth_inside_1_last_x128 = inside_1
        position.liquidity += liquidity_delta

        if liquidity_delta < 0:
            for tick in (tick_lower, tick_upper):
                if self.ticks[tick].liquidity_gross == 0:
                    del self.ticks[tick]

    def _update_tick(self, tick: int, liquidity_delta: int, upper: bool) -> None:
        info = self.ticks.get(tick)
        if info is None:
            info = TickInfo()
            # 관례: 현재 틱 이하에서 초기화되는 틱은 모든 성장이 아래에서 발생했다고 간주
            if tick <= self.tick:
                info.fee_growth_outside_0_x128 = self.fee_growth_global_0_x128
                info.fee_growth_outside_1_x128 = self.fee_growth_global_1_x128
            self.ticks[tick] = info

        info.liquidity_gross += liquidity_delta
        info.liquidity_net += -liquidity_delta if upper else liquidity_delta

    def _cross_tick(self, tick: int) -> int:
        info = self.ticks[tick]
        info.fee_growth_outside_0_x128 = self.fee_growth_global_0_x128 - info.fee_growth_outside_0_x128
        info.fee_growth_outside_1_x128 = self.fee_growth_global_1_x128 - info.fee_growth_outside_1_x128
        return info.liquidity_net

    def _next_initialized_tick(self, zero_for_one: bool) -> int:
        if zero_for_one:
            candidates = [t for t in self.ticks if t <= self.tick]
            return max(candidates) if candidates else MIN_TICK
        candidates = [t for t in self.ticks if t > self.tick]
        return min(candidates) if candidates else MAX_TICK
