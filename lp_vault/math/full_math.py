"""
Full Math - 반올림 방향이 명시된 정수 고정소수점 연산

Vault의 모든 비율 계산은 float 없이 정수로만 수행합니다.
각 연산은 반올림 방향(Rounding)을 명시적으로 받습니다:
- 예치자에게 청구하는 금액: 올림 (UP)
- 지분/출금액으로 지급하는 금액: 내림 (DOWN)

References:
- Uniswap V3 Core: contracts/libraries/FullMath.sol
"""

from enum import Enum
from fractions import Fraction


class Rounding(Enum):
    """반올림 방향"""
    DOWN = "down"
    UP = "up"


def mul_div(a: int, b: int, denominator: int, rounding: Rounding = Rounding.DOWN) -> int:
    """(a * b) / denominator 를 지정된 방향으로 반올림

    Python 정수는 오버플로우가 없으므로 512비트 중간값 처리가 필요 없습니다.

    Args:
        a: 피승수 (0 이상)
        b: 승수 (0 이상)
        denominator: 분모 (양수)
        rounding: 반올림 방향

    Returns:
        반올림된 몫

    Raises:
        ZeroDivisionError: denominator가 0인 경우
        ValueError: 음수 입력
    """
    if a < 0 or b < 0 or denominator < 0:
        raise ValueError(f"음수는 허용되지 않습니다: a={a}, b={b}, denominator={denominator}")
    if denominator == 0:
        raise ZeroDivisionError("분모가 0입니다")

    result, remainder = divmod(a * b, denominator)
    if rounding is Rounding.UP and remainder > 0:
        result += 1
    return result


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """(a * b) / denominator 올림"""
    return mul_div(a, b, denominator, Rounding.UP)


def div_rounding_up(numerator: int, denominator: int) -> int:
    """numerator / denominator 올림"""
    return mul_div(numerator, 1, denominator, Rounding.UP)


def mul_fraction(amount: int, ratio: Fraction, rounding: Rounding = Rounding.DOWN) -> int:
    """정수 금액에 유리수 비율을 곱함

    프로토콜 수수료율, excess band, withdrawal buffer 등
    설정값은 Fraction으로 보관하고 이 함수로만 정수화합니다.
    """
    if ratio < 0:
        raise ValueError(f"비율은 음수일 수 없습니다: {ratio}")
    return mul_div(amount, ratio.numerator, ratio.denominator, rounding)
