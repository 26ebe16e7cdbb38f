"""
Valuation Engine 테스트
"""

from fractions import Fraction

import pytest

from ..math.tick_math import MIN_SQRT_RATIO
from ..vault import valuation
from .conftest import ALICE, REBALANCER, VAULT_ADDRESS

ONE = 10 ** 18


@pytest.fixture
def deployed(live_vault):
    live_vault.deposit(ONE, ONE, 0, 0, ALICE, sender=ALICE)
    live_vault.rebalance(50, sender=REBALANCER)
    return live_vault


class TestIdle:
    """유휴 잔고 평가"""

    def test_empty_vault(self, vault):
        assert vault.total_value() == (0, 0)

    def test_idle_only(self, vault):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        assert vault.total_value() == (1000, 1000)
        assert valuation.amm_holdings(vault) == (0, 0)
        assert valuation.reserve_holdings(vault) == (0, 0)

    def test_accrued_fee_excluded(self, vault):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        vault.state.accrued_fee_a = 100

        assert vault.total_value() == (900, 1000)
        assert valuation.idle_balance(vault, True) == 900

    def test_idle_clamped_at_zero(self, vault):
        vault.state.accrued_fee_b = 50
        assert valuation.idle_balance(vault, False) == -50
        assert valuation.idle_holdings(vault) == (0, 0)


class TestReserve:
    """예치처 평가"""

    def test_redeemable_at_par(self, deployed, reserve_a):
        shares = reserve_a.balance_of_shares(VAULT_ADDRESS)
        assert valuation.reserve_redeemable(deployed, True) == shares

    def test_gain_net_of_fee(self, deployed, reserve_a):
        principal = deployed.state.reserve_a_deposited
        reserve_a.accrue_yield(Fraction(1, 10))
        redeemable = valuation.reserve_redeemable(deployed, True)

        holdings_a, _ = valuation.reserve_holdings(deployed)

        assert redeemable > principal
        assert holdings_a == redeemable - (redeemable - principal) // 10

    def test_loss_not_charged(self, deployed, reserve_b):
        reserve_b.accrue_yield(Fraction(-1, 4))
        _, holdings_b = valuation.reserve_holdings(deployed)
        assert holdings_b == valuation.reserve_redeemable(deployed, False)
        assert holdings_b < deployed.state.reserve_b_deposited


class TestAmm:
    """AMM 포지션 평가와 poke"""

    def test_poke_refreshes_owed_fees(self, deployed, trader, pool):
        pool.swap(trader, True, 10 ** 20, MIN_SQRT_RATIO + 1)
        stale_a, stale_b = valuation.amm_holdings(deployed)

        valuation.poke(deployed)
        fresh_a, fresh_b = valuation.amm_holdings(deployed)

        assert fresh_a > stale_a
        assert fresh_b == stale_b
        owed = pool.position_info(VAULT_ADDRESS, deployed.state.range_lower, deployed.state.range_upper)
        # 미수령 수수료 중 프로토콜 몫(10%)은 제외
        assert fresh_a - stale_a == owed.tokens_owed_0 - owed.tokens_owed_0 // 10

    def test_poke_without_position_is_noop(self, vault, pool):
        valuation.poke(vault)
        assert pool.positions == {}

    def test_total_value_is_pure(self, deployed, trader, pool):
        pool.swap(trader, True, 10 ** 20, MIN_SQRT_RATIO + 1)
        state = deployed.state
        before = pool.position_info(VAULT_ADDRESS, state.range_lower, state.range_upper)

        first = deployed.total_value()
        second = deployed.total_value()

        assert first == second
        assert pool.position_info(VAULT_ADDRESS, state.range_lower, state.range_upper) == before

    def test_sum_of_venues(self, deployed):
        amm = valuation.amm_holdings(deployed)
        reserve = valuation.reserve_holdings(deployed)
        idle = valuation.idle_holdings(deployed)
        assert deployed.total_value() == (
            amm[0] + reserve[0] + idle[0],
            amm[1] + reserve[1] + idle[1],
        )
