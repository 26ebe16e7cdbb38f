"""
Vault - 다중 원천 유동성 vault 진입점

하나의 VaultState와 협력자(AMM 풀, 예치처 2개, 자산/지분 토큰)를 묶고
모든 변경 작업을 트랜잭션으로 감쌉니다.

    - entered 플래그로 재진입 차단 (외부 호출 동안 유지)
    - 실패 시 상태, 이벤트, snapshot()/restore()를 가진 협력자를 모두 복구
    - paused는 deposit / rebalance만 막고 withdraw는 허용

사용법:
    vault = Vault("0xvault", pool, reserve_a, reserve_b, share_token,
                  VaultConfig(governance="0xgov", rebalancer="0xkeeper"))
    shares, taken_a, taken_b = vault.deposit(10**18, 10**18, 0, 0, "0xalice", sender="0xalice")
    vault.rebalance(50, sender="0xkeeper")
    out_a, out_b = vault.withdraw(shares, 0, 0, "0xalice", sender="0xalice")
"""

import copy
import logging
from contextlib import contextmanager
from fractions import Fraction
from typing import Any, Iterator, List, Tuple

from ..math.tick_math import is_on_grid, min_usable_tick, max_usable_tick
from . import accounting, ledger, rebalance as rebalance_controller, valuation
from .errors import (
    InvalidInputError,
    PausedError,
    ReentrancyError,
    UnauthorizedError,
)
from .events import EmergencyUnwindEvent, FeesCollectedEvent, RebalanceEvent, VaultEvent, emit
from .interfaces import AmmPool, Token, YieldReserve
from .state import VaultConfig, VaultState

logger = logging.getLogger(__name__)


class Vault:
    """멀티 원천 유동성 vault

    Args:
        address: vault 주소 (토큰 잔고 키)
        pool: 집중 유동성 AMM 풀 (token0 = 자산 A, token1 = 자산 B)
        reserve_a: 자산 A 예치처
        reserve_b: 자산 B 예치처
        share_token: vault 지분 원장
        config: 초기 설정
    """

    def __init__(
        self,
        address: str,
        pool: AmmPool,
        reserve_a: YieldReserve,
        reserve_b: YieldReserve,
        share_token: Token,
        config: VaultConfig
    ):
        if reserve_a.asset is not pool.token0 or reserve_b.asset is not pool.token1:
            raise ValueError("예치처 자산이 풀의 token0 / token1 과 일치해야 합니다")

        self.address = address
        self.pool = pool
        self.token_a = pool.token0
        self.token_b = pool.token1
        self.reserve_a = reserve_a
        self.reserve_b = reserve_b
        self.shares = share_token
        self.events: List[VaultEvent] = []

        range_lower = config.range_lower
        range_upper = config.range_upper
        if range_lower is None or range_upper is None:
            range_lower = min_usable_tick(pool.tick_spacing)
            range_upper = max_usable_tick(pool.tick_spacing)
        elif not (is_on_grid(range_lower, pool.tick_spacing) and is_on_grid(range_upper, pool.tick_spacing)):
            raise ValueError(
                f"초기 범위가 틱 간격 {pool.tick_spacing} 의 배수가 아닙니다: [{range_lower}, {range_upper}]"
            )
        elif range_lower < min_usable_tick(pool.tick_spacing) or range_upper > max_usable_tick(pool.tick_spacing):
            raise ValueError(f"초기 범위가 사용 가능한 틱 범위를 벗어났습니다: [{range_lower}, {range_upper}]")

        self.state = VaultState(
            asset_a=self.token_a.address,
            asset_b=self.token_b.address,
            range_lower=range_lower,
            range_upper=range_upper,
            governance=config.governance,
            rebalancer=config.rebalancer,
            protocol_fee_rate=config.protocol_fee_rate,
            max_total_supply=config.max_total_supply,
            excess_ignore_band=config.excess_ignore_band,
            reserve_deposit_threshold_a=config.reserve_deposit_threshold_a,
            reserve_deposit_threshold_b=config.reserve_deposit_threshold_b,
            withdrawal_buffer=config.withdrawal_buffer,
        )

        logger.info(
            "vault %s created: pool=%s fee=%d range=[%d, %d]",
            address, pool.address, pool.fee, range_lower, range_upper
        )

    # ===== 협력자 선택 =====

    def token(self, is_a: bool) -> Token:
        return self.token_a if is_a else self.token_b

    def reserve(self, is_a: bool) -> YieldReserve:
        return self.reserve_a if is_a else self.reserve_b

    def _collaborators(self) -> List[Any]:
        return [self.token_a, self.token_b, self.shares, self.pool, self.reserve_a, self.reserve_b]

    # ===== 트랜잭션 =====

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """재진입 차단 + 실패 시 전체 복구"""
        if self.state.entered:
            raise ReentrancyError("다른 작업이 진행 중입니다")

        state_snapshot = copy.deepcopy(self.state)
        events_length = len(self.events)
        journal = [
            (collaborator, collaborator.snapshot())
            for collaborator in self._collaborators()
            if hasattr(collaborator, "snapshot") and hasattr(collaborator, "restore")
        ]

        self.state.entered = True
        try:
            yield
        except Exception:
            for collaborator, snapshot in journal:
                collaborator.restore(snapshot)
            self.state = state_snapshot
            del self.events[events_length:]
            raise
        finally:
            self.state.entered = False

    def _require_governance(self, sender: str) -> None:
        if sender != self.state.governance:
            raise UnauthorizedError(f"governance 전용 작업입니다: {sender}")

    def _require_not_paused(self) -> None:
        if self.state.paused:
            raise PausedError("vault가 일시 정지 상태입니다")

    # ===== 사용자 작업 =====

    def deposit(
        self,
        desired_a: int,
        desired_b: int,
        min_a: int,
        min_b: int,
        recipient: str,
        *,
        sender: str
    ) -> Tuple[int, int, int]:
        """자산 예치, (shares, taken_a, taken_b) 반환"""
        self._require_not_paused()
        with self._transaction():
            return accounting.deposit(self, desired_a, desired_b, min_a, min_b, recipient, sender)

    def withdraw(
        self,
        shares: int,
        min_a: int,
        min_b: int,
        recipient: str,
        *,
        sender: str
    ) -> Tuple[int, int]:
        """지분 출금, (out_a, out_b) 반환. 일시 정지 중에도 가능"""
        with self._transaction():
            return accounting.withdraw(self, shares, min_a, min_b, recipient, sender)

    def rebalance(self, uniswap_share: int, *, sender: str) -> RebalanceEvent:
        """AMM 범위 재설정 (rebalancer 전용)"""
        if sender != self.state.rebalancer:
            raise UnauthorizedError(f"rebalancer 전용 작업입니다: {sender}")
        self._require_not_paused()
        with self._transaction():
            return rebalance_controller.rebalance(self, uniswap_share)

    # ===== 조회 =====

    def total_value(self) -> Tuple[int, int]:
        """총 보유량 투영 (poke 없음)"""
        return valuation.total_value(self)

    def total_supply(self) -> int:
        return self.shares.total_supply()

    # ===== 풀 콜백 =====

    def _check_callback(self, pool: Any) -> None:
        if not self.state.entered:
            raise UnauthorizedError("진행 중인 작업 없이 콜백이 호출되었습니다")
        if pool is not self.pool:
            raise UnauthorizedError(f"등록되지 않은 풀의 콜백입니다: {getattr(pool, 'address', pool)}")

    def amm_mint_callback(self, pool: Any, amount0: int, amount1: int) -> None:
        """포지션 개설 대금 지급"""
        self._check_callback(pool)
        if amount0 > 0:
            self.token_a.transfer(self.address, pool.address, amount0)
        if amount1 > 0:
            self.token_b.transfer(self.address, pool.address, amount1)

    def amm_swap_callback(self, pool: Any, amount0_delta: int, amount1_delta: int) -> None:
        """스왑 입력 지급 (양수 delta 만 지급)"""
        self._check_callback(pool)
        if amount0_delta > 0:
            self.token_a.transfer(self.address, pool.address, amount0_delta)
        if amount1_delta > 0:
            self.token_b.transfer(self.address, pool.address, amount1_delta)

    # ===== 관리 작업 (governance) =====

    def set_protocol_fee_rate(self, rate: Fraction, *, sender: str) -> None:
        self._require_governance(sender)
        if not 0 <= rate < 1:
            raise InvalidInputError(f"프로토콜 수수료율은 [0, 1) 범위여야 합니다: {rate}")
        self.state.protocol_fee_rate = Fraction(rate)

    def set_max_total_supply(self, max_total_supply: int, *, sender: str) -> None:
        self._require_governance(sender)
        if max_total_supply < 0:
            raise InvalidInputError(f"지분 상한은 음수일 수 없습니다: {max_total_supply}")
        self.state.max_total_supply = max_total_supply

    def set_excess_ignore_band(self, band: Fraction, *, sender: str) -> None:
        self._require_governance(sender)
        if not 0 <= band < 1:
            raise InvalidInputError(f"허용 폭은 [0, 1) 범위여야 합니다: {band}")
        self.state.excess_ignore_band = Fraction(band)

    def set_reserve_deposit_thresholds(self, threshold_a: int, threshold_b: int, *, sender: str) -> None:
        self._require_governance(sender)
        if threshold_a < 0 or threshold_b < 0:
            raise InvalidInputError(f"임계값은 음수일 수 없습니다: ({threshold_a}, {threshold_b})")
        self.state.reserve_deposit_threshold_a = threshold_a
        self.state.reserve_deposit_threshold_b = threshold_b

    def set_withdrawal_buffer(self, buffer: Fraction, *, sender: str) -> None:
        self._require_governance(sender)
        if buffer < 0:
            raise InvalidInputError(f"인출 버퍼는 음수일 수 없습니다: {buffer}")
        self.state.withdrawal_buffer = Fraction(buffer)

    def set_rebalancer(self, rebalancer: str, *, sender: str) -> None:
        self._require_governance(sender)
        if not rebalancer:
            raise InvalidInputError("rebalancer 주소가 비어 있습니다")
        self.state.rebalancer = rebalancer
        logger.info("rebalancer changed to %s", rebalancer)

    def pause(self, *, sender: str) -> None:
        self._require_governance(sender)
        self.state.paused = True
        logger.warning("vault %s paused", self.address)

    def unpause(self, *, sender: str) -> None:
        self._require_governance(sender)
        self.state.paused = False
        logger.info("vault %s unpaused", self.address)

    def collect_protocol_fees(self, to: str, *, sender: str) -> Tuple[int, int]:
        """적립 수수료 정산 (적립 수수료를 줄이는 유일한 경로)"""
        self._require_governance(sender)
        with self._transaction():
            accounting.validate_recipient(self, to)
            state = self.state
            amounts = []
            for is_a in (True, False):
                fee = state.accrued_fee(is_a)
                shortfall = fee - self.token(is_a).balance_of(self.address)
                if shortfall > 0:
                    rebalance_controller.pull_from_reserve(self, is_a, shortfall)
                if fee > 0:
                    self.token(is_a).transfer(self.address, to, fee)
                amounts.append(fee)

            state.accrued_fee_a = 0
            state.accrued_fee_b = 0
            emit(self.events, FeesCollectedEvent(to=to, amount_a=amounts[0], amount_b=amounts[1]))
            return amounts[0], amounts[1]

    def sweep(self, token: Token, to: str, amount: int, *, sender: str) -> None:
        """관리 대상이 아닌 토큰 회수"""
        self._require_governance(sender)
        managed = (self.token_a, self.token_b, self.shares)
        if any(token is t or token.address == t.address for t in managed):
            raise InvalidInputError(f"관리 대상 토큰은 회수할 수 없습니다: {token.address}")
        with self._transaction():
            accounting.validate_recipient(self, to)
            token.transfer(self.address, to, amount)

    def emergency_unwind_amm(self, *, sender: str) -> Tuple[int, int]:
        """AMM 포지션 전량 회수. 자금은 유휴 상태로 남고 범위는 유지"""
        self._require_governance(sender)
        with self._transaction():
            burned_a, burned_b, gain_a, gain_b = rebalance_controller.unwind_amm(self)
            ledger.accrue_fee(self.state, gain_a, gain_b)
            amount_a, amount_b = burned_a + gain_a, burned_b + gain_b
            emit(self.events, EmergencyUnwindEvent(venue="amm", amount_a=amount_a, amount_b=amount_b))
            return amount_a, amount_b

    def emergency_unwind_reserve(self, asset: str, *, sender: str) -> int:
        """한 예치처 전량 상환. 이익은 ledger를 거치고 추적 원금은 0"""
        self._require_governance(sender)
        if asset not in (self.state.asset_a, self.state.asset_b):
            raise InvalidInputError(f"관리 자산이 아닙니다: {asset}")
        is_a = asset == self.state.asset_a

        with self._transaction():
            reserve = self.reserve(is_a)
            held = reserve.balance_of_shares(self.address)
            received = reserve.withdraw(self, held) if held > 0 else 0

            gain = ledger.realized_gain(received, self.state.reserve_deposited(is_a))
            ledger.accrue_fee(self.state, gain if is_a else 0, 0 if is_a else gain)
            self.state.set_reserve_deposited(is_a, 0)

            emit(self.events, EmergencyUnwindEvent(
                venue=f"reserve_{'a' if is_a else 'b'}",
                amount_a=received if is_a else 0,
                amount_b=0 if is_a else received,
            ))
            return received

    def __repr__(self) -> str:
        return (
            f"Vault({self.address}, range=[{self.state.range_lower}, {self.state.range_upper}], "
            f"supply={self.shares.total_supply()})"
        )
