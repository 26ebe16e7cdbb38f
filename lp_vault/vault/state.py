"""
Vault 상태 정의

VaultState는 vault당 하나이며, deposit / withdraw / rebalance 와
관리 작업을 통해서만 변경됩니다. 모든 수량은 토큰 최소 단위의 int,
비율은 Fraction 입니다.
"""

from dataclasses import dataclass
from fractions import Fraction
from typing import Optional

from ..constants import MAX_TICK, MIN_TICK


@dataclass
class VaultConfig:
    """Vault 생성 시 초기 설정"""
    governance: str
    rebalancer: str
    protocol_fee_rate: Fraction = Fraction(1, 10)
    max_total_supply: int = 2 ** 128 - 1
    excess_ignore_band: Fraction = Fraction(1, 100)
    reserve_deposit_threshold_a: int = 0
    reserve_deposit_threshold_b: int = 0
    withdrawal_buffer: Fraction = Fraction(0)
    range_lower: Optional[int] = None
    range_upper: Optional[int] = None


@dataclass
class VaultState:
    """Vault 전역 상태

    - asset_a / asset_b: 관리 자산 (생성 후 불변, asset_a = 풀의 token0)
    - range_lower / range_upper: 현재 AMM 포지션의 틱 경계
    - reserve_*_deposited: 예치처별 추적 원금. 실제 상환 가능액과의 차이가 이익
    - accrued_fee_*: 미정산 프로토콜 수수료. 모든 평가에서 제외
    """
    asset_a: str
    asset_b: str
    range_lower: int
    range_upper: int
    governance: str
    rebalancer: str
    protocol_fee_rate: Fraction = Fraction(1, 10)
    max_total_supply: int = 2 ** 128 - 1
    excess_ignore_band: Fraction = Fraction(1, 100)
    reserve_deposit_threshold_a: int = 0
    reserve_deposit_threshold_b: int = 0
    withdrawal_buffer: Fraction = Fraction(0)
    reserve_a_deposited: int = 0
    reserve_b_deposited: int = 0
    accrued_fee_a: int = 0
    accrued_fee_b: int = 0
    paused: bool = False
    entered: bool = False

    def __post_init__(self):
        if self.range_lower >= self.range_upper:
            raise ValueError(f"잘못된 초기 범위: [{self.range_lower}, {self.range_upper}]")
        if self.range_lower < MIN_TICK or self.range_upper > MAX_TICK:
            raise ValueError(f"초기 범위가 전역 틱 범위를 벗어났습니다: [{self.range_lower}, {self.range_upper}]")
        if not (0 <= self.protocol_fee_rate < 1):
            raise ValueError(f"프로토콜 수수료율은 [0, 1) 범위여야 합니다: {self.protocol_fee_rate}")

    def reserve_deposited(self, is_a: bool) -> int:
        return self.reserve_a_deposited if is_a else self.reserve_b_deposited

    def set_reserve_deposited(self, is_a: bool, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"추적 원금은 음수일 수 없습니다: {amount}")
        if is_a:
            self.reserve_a_deposited = amount
        else:
            self.reserve_b_deposited = amount

    def accrued_fee(self, is_a: bool) -> int:
        return self.accrued_fee_a if is_a else self.accrued_fee_b

    def reserve_deposit_threshold(self, is_a: bool) -> int:
        return self.reserve_deposit_threshold_a if is_a else self.reserve_deposit_threshold_b
