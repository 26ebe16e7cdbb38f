"""
Vault 오류 분류

- 입력 검증 실패: 호출자에게 즉시 보고, 상태 변경 없음
- 불변식 위반: 결함으로 간주, 작업 전체 중단
- 외부 협력자 실패: 감싸는 작업 전체 실패로 전파
"""


class VaultError(Exception):
    """Vault 오류 최상위 클래스"""
    pass


# 입력 검증 실패

class InvalidInputError(VaultError, ValueError):
    """잘못된 입력 (0 수량, 범위를 벗어난 파라미터 등)"""
    pass


class InvalidRecipientError(InvalidInputError):
    """수신자 주소가 비어 있거나 vault 자신인 경우"""
    pass


class SlippageError(InvalidInputError):
    """최소 수량 조건 미달"""
    pass


class SupplyCapError(InvalidInputError):
    """지분 총발행량 상한 초과"""
    pass


class ZeroSharesError(InvalidInputError):
    """발행 또는 소각할 지분이 0"""
    pass


class InsufficientSharesError(InvalidInputError):
    """보유 지분보다 많은 지분 출금"""
    pass


class UnauthorizedError(VaultError):
    """권한 없는 호출자"""
    pass


class PausedError(VaultError):
    """일시 정지 중 (deposit, rebalance)"""
    pass


class ReentrancyError(VaultError):
    """작업 진행 중 재진입 시도"""
    pass


# 불변식 위반

class InvariantViolation(VaultError):
    """내부 불변식 위반 (결함)"""
    pass


class InvalidRangeError(InvariantViolation):
    """rebalance 범위 검증 실패"""
    pass


class LiquidityOverflowError(InvariantViolation):
    """유동성이 uint128 범위를 초과"""
    pass


# 외부 협력자 실패

class CollaboratorError(VaultError):
    """AMM 풀, 예치처, 토큰 등 외부 협력자 호출 실패"""
    pass
