"""
Vault 이벤트 기록

관측용 기록이며 동작에는 영향을 주지 않습니다.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class VaultEvent:
    """이벤트 공통 부모"""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["event"] = self.name
        return data


@dataclass
class DepositEvent(VaultEvent):
    sender: str
    recipient: str
    shares: int
    amount_a: int
    amount_b: int
    total_supply: int


@dataclass
class WithdrawEvent(VaultEvent):
    sender: str
    recipient: str
    shares: int
    amount_a: int
    amount_b: int
    total_supply: int


@dataclass
class RebalanceEvent(VaultEvent):
    tick: int
    range_lower: int
    range_upper: int
    liquidity: int
    amm_amount_a: int
    amm_amount_b: int
    reserve_amount_a: int
    reserve_amount_b: int
    idle_amount_a: int
    idle_amount_b: int
    swapped: bool
    accrued_fee_a: int
    accrued_fee_b: int


@dataclass
class FeesCollectedEvent(VaultEvent):
    to: str
    amount_a: int
    amount_b: int


@dataclass
class EmergencyUnwindEvent(VaultEvent):
    venue: str
    amount_a: int
    amount_b: int


def emit(events: List[VaultEvent], event: VaultEvent) -> None:
    """이벤트를 기록하고 로그로 남김"""
    events.append(event)
    logger.info("%s %s", event.name, asdict(event))
