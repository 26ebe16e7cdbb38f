"""
Vault engine

- state: VaultState / VaultConfig
- valuation: 총 보유량 평가
- accounting: deposit / withdraw 지분 계산
- rebalance: 범위 재설정과 재배분
- ledger: 원금/이익 분리와 프로토콜 수수료
- vault: 트랜잭션, 권한, 콜백을 묶는 진입점
"""

from .errors import (
    VaultError,
    InvalidInputError,
    InvalidRecipientError,
    SlippageError,
    SupplyCapError,
    ZeroSharesError,
    InsufficientSharesError,
    UnauthorizedError,
    PausedError,
    ReentrancyError,
    InvariantViolation,
    InvalidRangeError,
    LiquidityOverflowError,
    CollaboratorError,
)
from .events import (
    VaultEvent,
    DepositEvent,
    WithdrawEvent,
    RebalanceEvent,
    FeesCollectedEvent,
    EmergencyUnwindEvent,
)
from .interfaces import PositionInfo
from .state import VaultConfig, VaultState
from .accounting import compute_deposit
from .vault import Vault
