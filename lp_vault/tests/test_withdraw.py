"""
Withdraw 테스트

원천별 비례 배분, 전량 출금, 이익 수수료와 손실 격리를 테스트합니다.
"""

from fractions import Fraction

import pytest

from ..math.tick_math import MIN_SQRT_RATIO
from ..vault import (
    InsufficientSharesError,
    InvalidRecipientError,
    SlippageError,
    WithdrawEvent,
    ZeroSharesError,
)
from ..vault import valuation
from .conftest import ALICE, BOB, GOVERNANCE, INITIAL_BALANCE, REBALANCER, VAULT_ADDRESS

ONE = 10 ** 18


class TestIdleWithdraw:
    """유휴 잔고만 있는 vault"""

    def test_full_withdrawal(self, vault, token_a, token_b, share_token):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)

        assert vault.withdraw(1000, 0, 0, ALICE, sender=ALICE) == (1000, 1000)
        assert share_token.total_supply() == 0
        assert token_a.balance_of(VAULT_ADDRESS) == 0
        assert token_b.balance_of(ALICE) == INITIAL_BALANCE

    def test_partial_withdrawal(self, vault):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        vault.deposit(500, 500, 0, 0, BOB, sender=BOB)

        assert vault.withdraw(500, 0, 0, ALICE, sender=ALICE) == (500, 500)
        assert vault.total_value() == (1000, 1000)

    def test_round_trip_never_exceeds_deposit(self, vault, token_a):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        token_a.mint(VAULT_ADDRESS, 1)

        shares, taken_a, taken_b = vault.deposit(100, 100, 0, 0, BOB, sender=BOB)
        out_a, out_b = vault.withdraw(shares, 0, 0, BOB, sender=BOB)

        assert shares == 99
        assert out_a <= taken_a
        assert out_b <= taken_b

    def test_emits_event(self, vault):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        vault.withdraw(400, 0, 0, BOB, sender=ALICE)

        event = vault.events[-1]
        assert isinstance(event, WithdrawEvent)
        assert (event.shares, event.amount_a, event.amount_b) == (400, 400, 400)
        assert event.recipient == BOB
        assert event.total_supply == 600


class TestWithdrawValidation:
    """입력 검증과 원자성"""

    def test_zero_shares(self, vault):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        with pytest.raises(ZeroSharesError):
            vault.withdraw(0, 0, 0, ALICE, sender=ALICE)

    def test_more_than_balance(self, vault):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        with pytest.raises(InsufficientSharesError):
            vault.withdraw(1001, 0, 0, ALICE, sender=ALICE)
        with pytest.raises(InsufficientSharesError):
            vault.withdraw(1, 0, 0, BOB, sender=BOB)

    def test_slippage_keeps_shares(self, vault, share_token):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        with pytest.raises(SlippageError):
            vault.withdraw(500, 501, 0, ALICE, sender=ALICE)
        assert share_token.balance_of(ALICE) == 1000
        assert vault.total_value() == (1000, 1000)

    def test_invalid_recipient(self, vault):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        with pytest.raises(InvalidRecipientError):
            vault.withdraw(500, 0, 0, VAULT_ADDRESS, sender=ALICE)

    def test_allowed_while_paused(self, vault):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        vault.pause(sender=GOVERNANCE)
        assert vault.withdraw(1000, 0, 0, ALICE, sender=ALICE) == (1000, 1000)


class TestVenueWithdraw:
    """AMM 포지션과 예치처에 자산이 배치된 vault"""

    @pytest.fixture
    def deployed(self, live_vault):
        live_vault.deposit(ONE, ONE, 0, 0, ALICE, sender=ALICE)
        live_vault.rebalance(50, sender=REBALANCER)
        return live_vault

    def test_full_withdrawal_empties_every_venue(self, deployed, reserve_a, reserve_b, token_a, token_b):
        total_a, total_b = deployed.total_value()

        out_a, out_b = deployed.withdraw(ONE, 0, 0, ALICE, sender=ALICE)

        assert (out_a, out_b) == (total_a, total_b)
        assert ONE - 10 <= out_a <= ONE
        assert ONE - 10 <= out_b <= ONE
        assert valuation.position_liquidity(deployed) == 0
        assert reserve_a.balance_of_shares(VAULT_ADDRESS) == 0
        assert reserve_b.balance_of_shares(VAULT_ADDRESS) == 0
        assert token_a.balance_of(VAULT_ADDRESS) == deployed.state.accrued_fee_a == 0
        assert token_b.balance_of(VAULT_ADDRESS) == deployed.state.accrued_fee_b == 0
        assert deployed.state.reserve_a_deposited == 0

    def test_partial_withdrawal_is_proportional(self, deployed):
        deployed.deposit(ONE, ONE, 0, 0, BOB, sender=BOB)
        bob_shares = deployed.shares.balance_of(BOB)

        out_a, out_b = deployed.withdraw(bob_shares, 0, 0, BOB, sender=BOB)

        assert ONE - 10 <= out_a <= ONE
        assert ONE - 10 <= out_b <= ONE
        alice_a, alice_b = deployed.total_value()
        assert ONE - 10 <= alice_a <= ONE + 10
        assert ONE - 10 <= alice_b <= ONE + 10

    def test_reserve_gain_charged_once(self, deployed, reserve_a):
        reserve_a.accrue_yield(Fraction(1, 10))
        redeemable = valuation.reserve_redeemable(deployed, True)
        principal = deployed.state.reserve_a_deposited
        expected_fee = (redeemable - principal) // 10

        out_a, _ = deployed.withdraw(ONE, 0, 0, ALICE, sender=ALICE)

        assert deployed.state.accrued_fee_a == expected_fee
        assert deployed.state.accrued_fee_b == 0
        assert out_a > ONE
        # 수수료는 vault에 유휴 상태로 남음
        assert deployed.token_a.balance_of(VAULT_ADDRESS) == expected_fee

    def test_reserve_loss_contributes_no_gain(self, deployed, reserve_a, reserve_b):
        reserve_a.accrue_yield(Fraction(-1, 10))
        reserve_b.accrue_yield(Fraction(1, 10))

        out_a, out_b = deployed.withdraw(ONE, 0, 0, ALICE, sender=ALICE)

        assert deployed.state.accrued_fee_a == 0
        assert deployed.state.accrued_fee_b > 0
        assert out_a < ONE
        assert out_b > ONE

    def test_partial_withdrawal_pays_pro_rata_reserve_gain(self, deployed, reserve_a):
        deployed.deposit(ONE, ONE, 0, 0, BOB, sender=BOB)
        deployed.rebalance(50, sender=REBALANCER)
        reserve_a.accrue_yield(Fraction(1, 10))
        gain = valuation.reserve_redeemable(deployed, True) - deployed.state.reserve_a_deposited

        deployed.withdraw(deployed.shares.balance_of(BOB), 0, 0, BOB, sender=BOB)

        # Bob 지분(약 절반)에 해당하는 이익에만 수수료
        assert 0 < deployed.state.accrued_fee_a <= gain // 2 // 10 + 1
        assert deployed.state.reserve_a_deposited > 0

    def test_amm_fees_split_and_charged(self, deployed, trader, pool):
        pool.swap(trader, True, 10 ** 20, MIN_SQRT_RATIO + 1)

        deployed.withdraw(ONE // 2, 0, 0, ALICE, sender=ALICE)

        assert deployed.state.accrued_fee_a > 0
        assert deployed.state.accrued_fee_b == 0
        # 남은 보유자 몫의 순수수료는 유휴 잔고로 남음
        idle_a, _ = valuation.idle_holdings(deployed)
        assert idle_a > 0
