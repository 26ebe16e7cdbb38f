"""
Yield Reserve - 인메모리 이자 발생 예치처

자산을 받고 지분을 발행하며, 지분당 자산 교환비율(exchange rate)이
이자에 따라 증가합니다. 교환비율은 10**decimals 로 스케일된 정수입니다.

    redeemable = shares × exchange_rate / 10**decimals
"""

from fractions import Fraction
from typing import Any, Dict, Optional, Tuple

from ..math.full_math import Rounding, mul_div, mul_fraction
from ..vault.errors import CollaboratorError
from .token import TokenLedger


class SimYieldReserve:
    """예치처 시뮬레이터

    사용법:
        reserve = SimYieldReserve("0xreserve-a", token_a)
        reserve.deposit(vault, 1_000)
        reserve.accrue_yield(Fraction(5, 100))  # 교환비율 5% 상승
    """

    def __init__(
        self,
        address: str,
        asset: TokenLedger,
        decimals: int = 18,
        exchange_rate: Optional[int] = None
    ):
        self.address = address
        self.asset = asset
        self._decimals = decimals
        self._exchange_rate = exchange_rate if exchange_rate is not None else 10 ** decimals
        self._shares: Dict[str, int] = {}
        self._total_shares = 0

        if self._exchange_rate <= 0:
            raise ValueError(f"교환비율은 양수여야 합니다: {self._exchange_rate}")

    def decimals(self) -> int:
        return self._decimals

    def exchange_rate(self) -> int:
        return self._exchange_rate

    def balance_of_shares(self, holder: str) -> int:
        return self._shares.get(holder, 0)

    def total_shares(self) -> int:
        return self._total_shares

    def deposit(self, caller: Any, amount: int) -> int:
        """자산 예치, 발행된 지분 수 반환 (내림)"""
        if amount <= 0:
            raise CollaboratorError(f"예치 수량은 양수여야 합니다: {amount}")
        shares = mul_div(amount, 10 ** self._decimals, self._exchange_rate)
        if shares == 0:
            raise CollaboratorError(f"예치 수량이 너무 작습니다: {amount}")

        self.asset.transfer(caller.address, self.address, amount)
        self._shares[caller.address] = self.balance_of_shares(caller.address) + shares
        self._total_shares += shares
        return shares

    def withdraw(self, caller: Any, share_amount: int) -> int:
        """지분 상환, 돌려준 자산 수량 반환 (내림)"""
        balance = self.balance_of_shares(caller.address)
        if share_amount <= 0 or share_amount > balance:
            raise CollaboratorError(f"상환 지분이 잘못되었습니다: {share_amount} (보유 {balance})")

        amount = mul_div(share_amount, self._exchange_rate, 10 ** self._decimals)
        self._shares[caller.address] = balance - share_amount
        self._total_shares -= share_amount
        self.asset.transfer(self.address, caller.address, amount)
        return amount

    def set_exchange_rate(self, exchange_rate: int) -> None:
        """교환비율 설정. 상승분은 자산을 발행해 뒷받침합니다"""
        if exchange_rate <= 0:
            raise ValueError(f"교환비율은 양수여야 합니다: {exchange_rate}")
        self._exchange_rate = exchange_rate

        backing = mul_div(self._total_shares, exchange_rate, 10 ** self._decimals, Rounding.UP)
        shortfall = backing - self.asset.balance_of(self.address)
        if shortfall > 0:
            self.asset.mint(self.address, shortfall)

    def accrue_yield(self, rate: Fraction) -> None:
        """교환비율을 rate 만큼 상승 (음수면 손실)"""
        delta = mul_fraction(self._exchange_rate, abs(rate))
        self.set_exchange_rate(self._exchange_rate + delta if rate >= 0 else self._exchange_rate - delta)

    def snapshot(self) -> Tuple[Dict[str, int], int, int]:
        return dict(self._shares), self._total_shares, self._exchange_rate

    def restore(self, snapshot: Tuple[Dict[str, int], int, int]) -> None:
        shares, total_shares, exchange_rate = snapshot
        self._shares = dict(shares)
        self._total_shares = total_shares
        self._exchange_rate = exchange_rate
