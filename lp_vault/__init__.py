"""
LP Vault Engine

AMM 집중 유동성 범위 포지션, 자산별 이자 예치처, 유휴 잔고에 걸쳐
두 자산(A/B)을 운용하는 vault의 지분 회계와 rebalance 엔진.
온체인 수준 정밀도의 정수 수학(Q64.96, Q128)만 사용합니다.
"""

__version__ = "0.1.0"

from .constants import Q96, Q128, MIN_TICK, MAX_TICK, FEE_TIERS, TICK_SPACINGS
from .vault import Vault, VaultConfig, VaultState, VaultError
