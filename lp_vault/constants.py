"""
Vault 엔진 상수 정의

온체인 수준 정밀도를 위한 상수들:
- Q96: sqrt price 인코딩에 사용 (2^96)
- Q128: fee growth 인코딩에 사용 (2^128)
- FEE_DENOMINATOR: 풀 수수료 단위 (pips, 1e6 = 100%)
- TICK_SPACINGS: 각 수수료 티어별 틱 간격
"""

from typing import Dict

# Fixed-point 인코딩 상수
Q96: int = 2 ** 96
Q128: int = 2 ** 128
Q192: int = 2 ** 192

# 풀 수수료는 pips 단위 (3000 = 0.30%)
FEE_DENOMINATOR: int = 1_000_000

# 수수료 티어 (pips)
FEE_TIERS: Dict[int, str] = {
    100: "0.01%",
    500: "0.05%",
    3000: "0.30%",
    10000: "1.00%",
}

# 각 수수료 티어별 틱 간격
TICK_SPACINGS: Dict[int, int] = {
    100: 1,
    500: 10,
    3000: 60,
    10000: 200,
}

# 틱 범위 상수
MIN_TICK: int = -887272
MAX_TICK: int = 887272

# uint 최대값
UINT256_MAX: int = 2 ** 256 - 1
UINT128_MAX: int = 2 ** 128 - 1

# rebalance 시 AMM 배분 비율의 분모 (uniswap_share 0~100)
PERCENT: int = 100

# 유효하지 않은 수신자 주소
ZERO_ADDRESS: str = "0x" + "0" * 40
