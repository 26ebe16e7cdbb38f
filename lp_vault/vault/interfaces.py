"""
외부 협력자 인터페이스

Vault 코어가 사용하는 AMM 풀, 예치처(yield reserve), 토큰 원장의 계약.
실제 구현은 외부에 있으며, lp_vault.sim 에 인메모리 구현이 있습니다.

정산 콜백:
    open_position / swap 호출 중 풀은 caller.amm_mint_callback /
    caller.amm_swap_callback 을 호출합니다. caller는 반환 전에 요청된
    수량을 정확히 풀로 전송해야 하며, 그렇지 않으면 호출이 실패합니다.
"""

from dataclasses import dataclass
from typing import Any, Protocol, Tuple


@dataclass
class PositionInfo:
    """Position-Indexed State (백서 Section 6.4, Table 3)

    - liquidity: 포지션의 유동성 (l)
    - fee_growth_inside_*_last_x128: 마지막 업데이트 시점의 범위 내 수수료 (f_r(t_0))
    - tokens_owed_*: 미수령 수량 (소각된 원금 + 수수료)
    """
    liquidity: int = 0
    fee_growth_inside_0_last_x128: int = 0
    fee_growth_inside_1_last_x128: int = 0
    tokens_owed_0: int = 0
    tokens_owed_1: int = 0


class Token(Protocol):
    """대체 가능 토큰 원장 (자산 A/B, vault 지분 공통)"""

    address: str
    decimals: int

    def balance_of(self, holder: str) -> int: ...

    def total_supply(self) -> int: ...

    def transfer(self, sender: str, to: str, amount: int) -> None: ...

    def mint(self, to: str, amount: int) -> None: ...

    def burn(self, holder: str, amount: int) -> None: ...


class AmmPool(Protocol):
    """집중 유동성 AMM 풀"""

    address: str
    token0: Token
    token1: Token
    fee: int  # pips
    tick_spacing: int

    def current_price(self) -> int: ...

    def current_tick(self) -> int: ...

    def position_info(self, owner: str, tick_lower: int, tick_upper: int) -> PositionInfo: ...

    def open_position(self, caller: Any, tick_lower: int, tick_upper: int, liquidity: int) -> Tuple[int, int]: ...

    def close_position(self, caller: Any, tick_lower: int, tick_upper: int, liquidity: int) -> Tuple[int, int]: ...

    def collect_owed(
        self, caller: Any, tick_lower: int, tick_upper: int, max_amount0: int, max_amount1: int
    ) -> Tuple[int, int]: ...

    def swap(self, caller: Any, zero_for_one: bool, amount_in: int, sqrt_price_limit_x96: int) -> Tuple[int, int]: ...


class YieldReserve(Protocol):
    """이자 발생 예치처 (자산당 하나)

    exchange_rate()는 지분 1단위당 자산 수량을 10**decimals() 로 스케일한 값입니다.
    """

    address: str
    asset: Token

    def deposit(self, caller: Any, amount: int) -> int: ...

    def withdraw(self, caller: Any, share_amount: int) -> int: ...

    def balance_of_shares(self, holder: str) -> int: ...

    def exchange_rate(self) -> int: ...

    def decimals(self) -> int: ...


class Journaled(Protocol):
    """트랜잭션 롤백을 지원하는 협력자"""

    def snapshot(self) -> Any: ...

    def restore(self, snapshot: Any) -> None: ...
