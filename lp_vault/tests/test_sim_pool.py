"""
ConcentratedLiquidityPool 테스트

콜백 정산, 포지션 수수료 누적, 틱 크로싱을 테스트합니다.
"""

import pytest

from ..constants import Q96
from ..math.tick_math import MIN_SQRT_RATIO, MAX_SQRT_RATIO, min_usable_tick, max_usable_tick
from ..sim import ConcentratedLiquidityPool
from ..vault.errors import CollaboratorError
from .conftest import Account, INITIAL_BALANCE


class NonPayingAccount(Account):
    """콜백에서 아무것도 지급하지 않는 계정"""

    def amm_mint_callback(self, pool, amount0, amount1):
        pass

    def amm_swap_callback(self, pool, amount0_delta, amount1_delta):
        pass


@pytest.fixture
def lp(token_a, token_b):
    account = Account("0xlp", token_a, token_b)
    token_a.mint(account.address, INITIAL_BALANCE)
    token_b.mint(account.address, INITIAL_BALANCE)
    return account


class TestPositions:
    """open / close / collect 테스트"""

    def test_open_position_settles_through_callback(self, pool, lp, token_a, token_b):
        amount0, amount1 = pool.open_position(lp, -600, 600, 10**18)

        assert amount0 > 0 and amount1 > 0
        assert token_a.balance_of(pool.address) == amount0
        assert token_b.balance_of(pool.address) == amount1
        assert pool.position_info(lp.address, -600, 600).liquidity == 10**18
        # 현재 틱(0)이 범위 안이므로 활성 유동성에 포함
        assert pool.liquidity == 10**18

    def test_unpaid_mint_fails(self, pool, token_a, token_b):
        freeloader = NonPayingAccount("0xfree", token_a, token_b)
        with pytest.raises(CollaboratorError):
            pool.open_position(freeloader, -600, 600, 10**18)

    def test_off_grid_ticks_rejected(self, pool, lp):
        with pytest.raises(CollaboratorError):
            pool.open_position(lp, -601, 600, 10**18)

    def test_close_and_collect(self, pool, lp, token_a):
        paid0, _ = pool.open_position(lp, -600, 600, 10**18)
        before = token_a.balance_of(lp.address)

        burned0, burned1 = pool.close_position(lp, -600, 600, 10**18)
        info = pool.position_info(lp.address, -600, 600)
        assert info.liquidity == 0
        assert (info.tokens_owed_0, info.tokens_owed_1) == (burned0, burned1)
        # 제거는 내림이므로 지불액 이하
        assert burned0 <= paid0

        collected0, collected1 = pool.collect_owed(lp, -600, 600, 2**128 - 1, 2**128 - 1)
        assert (collected0, collected1) == (burned0, burned1)
        assert token_a.balance_of(lp.address) == before + burned0

    def test_close_missing_position(self, pool, lp):
        with pytest.raises(CollaboratorError):
            pool.close_position(lp, -600, 600, 0)

    def test_position_info_is_a_copy(self, pool, lp):
        pool.open_position(lp, -600, 600, 10**18)
        info = pool.position_info(lp.address, -600, 600)
        info.liquidity = 0
        assert pool.position_info(lp.address, -600, 600).liquidity == 10**18


class TestSwap:
    """exact-input 스왑 테스트"""

    def test_zero_for_one_moves_price_down(self, pool, lp, trader, token_b):
        pool.open_position(lp, -6000, 6000, 10**20)
        before = token_b.balance_of(trader.address)

        amount0, amount1 = pool.swap(trader, True, 10**17, MIN_SQRT_RATIO + 1)

        assert amount0 == 10**17
        assert amount1 < 0
        assert token_b.balance_of(trader.address) == before - amount1
        assert pool.current_price() < Q96
        assert pool.current_tick() < 0

    def test_one_for_zero_moves_price_up(self, pool, lp, trader):
        pool.open_position(lp, -6000, 6000, 10**20)
        amount0, amount1 = pool.swap(trader, False, 10**17, MAX_SQRT_RATIO - 1)
        assert amount1 == 10**17
        assert amount0 < 0
        assert pool.current_price() > Q96

    def test_fees_accrue_to_position(self, pool, lp, trader):
        pool.open_position(lp, -6000, 6000, 10**20)
        pool.swap(trader, True, 10**18, MIN_SQRT_RATIO + 1)

        # poke
        pool.close_position(lp, -6000, 6000, 0)
        info = pool.position_info(lp.address, -6000, 6000)
        # 0.3% 수수료, 유일한 LP가 전부 수령 (내림)
        assert 3 * 10**15 - 2 <= info.tokens_owed_0 <= 3 * 10**15 + 10
        assert info.tokens_owed_1 == 0

    def test_unpaid_swap_fails(self, pool, lp, token_a, token_b):
        pool.open_position(lp, -6000, 6000, 10**20)
        freeloader = NonPayingAccount("0xfree", token_a, token_b)
        with pytest.raises(CollaboratorError):
            pool.swap(freeloader, True, 10**15, MIN_SQRT_RATIO + 1)

    def test_invalid_price_limit(self, pool, lp, trader):
        pool.open_position(lp, -6000, 6000, 10**20)
        with pytest.raises(CollaboratorError):
            pool.swap(trader, True, 10**15, Q96 + 1)

    def test_crossing_tick_updates_active_liquidity(self, pool, lp, trader):
        pool.open_position(lp, -60, 60, 10**18)
        pool.open_position(lp, min_usable_tick(60), max_usable_tick(60), 10**18)
        assert pool.liquidity == 2 * 10**18

        pool.swap(trader, True, 10**17, MIN_SQRT_RATIO + 1)

        assert pool.current_tick() < -60
        assert pool.liquidity == 10**18

    def test_fees_outside_range_not_credited(self, pool, lp, trader):
        """범위를 벗어난 뒤 발생한 수수료는 좁은 포지션에 쌓이지 않음"""
        pool.open_position(lp, -60, 60, 10**18)
        pool.open_position(lp, min_usable_tick(60), max_usable_tick(60), 10**18)
        pool.swap(trader, True, 10**17, MIN_SQRT_RATIO + 1)

        pool.close_position(lp, -60, 60, 0)
        narrow_before = pool.position_info(lp.address, -60, 60).tokens_owed_0

        pool.swap(trader, True, 10**16, MIN_SQRT_RATIO + 1)
        pool.close_position(lp, -60, 60, 0)
        assert pool.position_info(lp.address, -60, 60).tokens_owed_0 == narrow_before


class TestSnapshot:
    """snapshot / restore 테스트"""

    def test_restore(self, pool, lp, trader):
        pool.open_position(lp, -6000, 6000, 10**20)
        snapshot = pool.snapshot()
        pool.swap(trader, True, 10**17, MIN_SQRT_RATIO + 1)

        pool.restore(snapshot)

        assert pool.current_price() == Q96
        assert pool.current_tick() == 0
        assert pool.fee_growth_global_0_x128 == 0

    def test_invalid_initial_price(self, token_a, token_b):
        with pytest.raises(ValueError):
            ConcentratedLiquidityPool("0xbad", token_a, token_b, sqrt_price_x96=MAX_SQRT_RATIO)
