"""
Simulation layer for the vault engine

Vault 협력자 인터페이스의 인메모리 구현:
- TokenLedger: 자산/지분 토큰 원장
- ConcentratedLiquidityPool: 집중 유동성 AMM 풀
- SimYieldReserve: 이자 발생 예치처
"""

from .token import TokenLedger
from .pool import ConcentratedLiquidityPool, TickInfo
from .reserve import SimYieldReserve
