"""
공통 fixture

패리티 가격(sqrtPriceX96 = 2^96, 1 A = 1 B)의 0.3% 풀, 교환비율 1의
예치처 2개, 지분 원장으로 vault를 구성합니다.
"""

from fractions import Fraction

import pytest

from ..constants import Q96
from ..math.tick_math import min_usable_tick, max_usable_tick
from ..sim import ConcentratedLiquidityPool, SimYieldReserve, TokenLedger
from ..vault import Vault, VaultConfig

GOVERNANCE = "0xgovernance"
REBALANCER = "0xkeeper"
ALICE = "0xalice"
BOB = "0xbob"
VAULT_ADDRESS = "0xvault"

INITIAL_BALANCE = 10 ** 24


class Account:
    """풀 콜백을 자기 잔고로 정산하는 외부 계정 (LP, 트레이더)"""

    def __init__(self, address: str, token0: TokenLedger, token1: TokenLedger):
        self.address = address
        self.token0 = token0
        self.token1 = token1

    def amm_mint_callback(self, pool, amount0, amount1):
        if amount0 > 0:
            self.token0.transfer(self.address, pool.address, amount0)
        if amount1 > 0:
            self.token1.transfer(self.address, pool.address, amount1)

    def amm_swap_callback(self, pool, amount0_delta, amount1_delta):
        if amount0_delta > 0:
            self.token0.transfer(self.address, pool.address, amount0_delta)
        if amount1_delta > 0:
            self.token1.transfer(self.address, pool.address, amount1_delta)


@pytest.fixture
def token_a():
    return TokenLedger("0xtoken-a", "TKA")


@pytest.fixture
def token_b():
    return TokenLedger("0xtoken-b", "TKB")


@pytest.fixture
def share_token():
    return TokenLedger("0xvault-shares", "LPV")


@pytest.fixture
def pool(token_a, token_b):
    return ConcentratedLiquidityPool("0xpool", token_a, token_b, fee=3000, sqrt_price_x96=Q96)


@pytest.fixture
def liquid_pool(pool, token_a, token_b):
    """전 구간에 외부 LP 유동성이 있는 풀"""
    lp = Account("0xlp", token_a, token_b)
    token_a.mint(lp.address, INITIAL_BALANCE)
    token_b.mint(lp.address, INITIAL_BALANCE)
    pool.open_position(lp, min_usable_tick(pool.tick_spacing), max_usable_tick(pool.tick_spacing), 10 ** 21)
    return pool


@pytest.fixture
def trader(token_a, token_b):
    account = Account("0xtrader", token_a, token_b)
    token_a.mint(account.address, INITIAL_BALANCE)
    token_b.mint(account.address, INITIAL_BALANCE)
    return account


@pytest.fixture
def reserve_a(token_a):
    return SimYieldReserve("0xreserve-a", token_a)


@pytest.fixture
def reserve_b(token_b):
    return SimYieldReserve("0xreserve-b", token_b)


@pytest.fixture
def config():
    return VaultConfig(
        governance=GOVERNANCE,
        rebalancer=REBALANCER,
        protocol_fee_rate=Fraction(1, 10),
    )


def _make_vault(pool, reserve_a, reserve_b, share_token, config, token_a, token_b):
    for user in (ALICE, BOB):
        token_a.mint(user, INITIAL_BALANCE)
        token_b.mint(user, INITIAL_BALANCE)
    return Vault(VAULT_ADDRESS, pool, reserve_a, reserve_b, share_token, config)


@pytest.fixture
def vault(pool, reserve_a, reserve_b, share_token, config, token_a, token_b):
    """외부 유동성이 없는 풀 위의 vault (회계 테스트용)"""
    return _make_vault(pool, reserve_a, reserve_b, share_token, config, token_a, token_b)


@pytest.fixture
def live_vault(liquid_pool, reserve_a, reserve_b, share_token, config, token_a, token_b):
    """외부 유동성이 있는 풀 위의 vault (rebalance / 스왑 테스트용)"""
    return _make_vault(liquid_pool, reserve_a, reserve_b, share_token, config, token_a, token_b)
