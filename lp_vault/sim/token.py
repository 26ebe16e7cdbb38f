"""
Token Ledger - 인메모리 대체 가능 토큰 원장

자산 A/B, vault 지분 토큰에 공통으로 사용합니다.
주소(str) 단위로 잔고를 관리하며 승인(allowance) 개념은 생략합니다.
"""

from typing import Dict, Tuple

from ..vault.errors import CollaboratorError


class TokenLedger:
    """ERC20 스타일 토큰 원장

    사용법:
        usdc = TokenLedger("0xusdc", "USDC", decimals=6)
        usdc.mint("0xalice", 1_000 * 10**6)
        usdc.transfer("0xalice", "0xbob", 10 * 10**6)
    """

    def __init__(self, address: str, symbol: str, decimals: int = 18):
        self.address = address
        self.symbol = symbol
        self.decimals = decimals
        self._balances: Dict[str, int] = {}
        self._total_supply = 0

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def total_supply(self) -> int:
        return self._total_supply

    def transfer(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise CollaboratorError(f"{self.symbol}: 음수 전송 {amount}")
        balance = self.balance_of(sender)
        if balance < amount:
            raise CollaboratorError(
                f"{self.symbol}: 잔고 부족 ({sender} 보유 {balance}, 요청 {amount})"
            )
        self._balances[sender] = balance - amount
        self._balances[to] = self.balance_of(to) + amount

    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise CollaboratorError(f"{self.symbol}: 음수 발행 {amount}")
        self._balances[to] = self.balance_of(to) + amount
        self._total_supply += amount

    def burn(self, holder: str, amount: int) -> None:
        balance = self.balance_of(holder)
        if amount < 0 or balance < amount:
            raise CollaboratorError(
                f"{self.symbol}: 소각 불가 ({holder} 보유 {balance}, 요청 {amount})"
            )
        self._balances[holder] = balance - amount
        self._total_supply -= amount

    def snapshot(self) -> Tuple[Dict[str, int], int]:
        return dict(self._balances), self._total_supply

    def restore(self, snapshot: Tuple[Dict[str, int], int]) -> None:
        balances, total_supply = snapshot
        self._balances = dict(balances)
        self._total_supply = total_supply

    def __repr__(self) -> str:
        return f"TokenLedger({self.symbol}, supply={self._total_supply})"
