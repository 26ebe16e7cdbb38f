"""
Deposit 테스트

최초 예치 부트스트랩, 비례 예치, 반올림 방향, 입력 검증과 원자성을 테스트합니다.
"""

import pytest

from ..constants import Q96, ZERO_ADDRESS
from ..sim import ConcentratedLiquidityPool, SimYieldReserve
from ..vault import (
    CollaboratorError,
    DepositEvent,
    InvalidInputError,
    InvalidRecipientError,
    InvariantViolation,
    PausedError,
    SlippageError,
    SupplyCapError,
    Vault,
    ZeroSharesError,
    compute_deposit,
)
from .conftest import ALICE, BOB, GOVERNANCE, INITIAL_BALANCE, VAULT_ADDRESS


class TestFirstDeposit:
    """최초 예치: 50/50 가치 비율"""

    def test_parity(self, vault, share_token, token_a, token_b):
        """가격 1에서 (100, 100) → 지분 100"""
        shares, taken_a, taken_b = vault.deposit(100, 100, 0, 0, ALICE, sender=ALICE)

        assert (shares, taken_a, taken_b) == (100, 100, 100)
        assert share_token.balance_of(ALICE) == 100
        assert token_a.balance_of(VAULT_ADDRESS) == 100
        assert token_b.balance_of(VAULT_ADDRESS) == 100

    def test_caps_at_scarcer_side(self, vault):
        assert vault.deposit(100, 300, 0, 0, ALICE, sender=ALICE) == (100, 100, 100)

    def test_caps_at_scarcer_side_reversed(self, vault):
        assert vault.deposit(300, 100, 0, 0, ALICE, sender=ALICE) == (100, 100, 100)

    def test_value_ratio_not_token_ratio(self, config, share_token, token_a, token_b):
        """가격 4 (1 A = 4 B) 에서는 A 25 + B 100 이 50/50 가치"""
        pool = ConcentratedLiquidityPool("0xpool", token_a, token_b, fee=3000, sqrt_price_x96=2 * Q96)
        vault = Vault(
            VAULT_ADDRESS, pool,
            SimYieldReserve("0xreserve-a", token_a), SimYieldReserve("0xreserve-b", token_b),
            share_token, config
        )
        token_a.mint(ALICE, 1000)
        token_b.mint(ALICE, 1000)

        shares, taken_a, taken_b = vault.deposit(100, 100, 0, 0, ALICE, sender=ALICE)

        assert (taken_a, taken_b) == (25, 100)
        assert shares == 100

    def test_single_asset_first_deposit_mints_nothing(self, vault):
        with pytest.raises(ZeroSharesError):
            vault.deposit(100, 0, 0, 0, ALICE, sender=ALICE)

    def test_emits_event(self, vault):
        vault.deposit(100, 100, 0, 0, BOB, sender=ALICE)

        event = vault.events[-1]
        assert isinstance(event, DepositEvent)
        assert event.sender == ALICE
        assert event.recipient == BOB
        assert event.total_supply == 100
        assert event.to_dict()["event"] == "DepositEvent"


class TestProportionalDeposit:
    """총 보유량 비례 예치"""

    def test_scenario(self, vault):
        """총 (1000, 1000), 지분 1000 에 (100, 50) 예치 → (50, 50), 지분 50"""
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        assert vault.total_value() == (1000, 1000)

        assert vault.deposit(100, 50, 0, 0, BOB, sender=BOB) == (50, 50, 50)

    def test_taken_rounds_up_shares_round_down(self, vault, token_a, token_b):
        """총 (1000, 3000), 지분 1000 에 (10, 10) 예치"""
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        token_b.mint(VAULT_ADDRESS, 2000)

        shares, taken_a, taken_b = vault.deposit(10, 10, 0, 0, BOB, sender=BOB)

        # cross = min(10*3000, 10*1000) = 10000
        assert taken_a == 4  # ceil(10000 / 3000)
        assert taken_b == 10  # ceil(10000 / 1000)
        assert shares == 3  # floor(floor(10000 * 1000 / 1000) / 3000)

    @pytest.mark.parametrize("desired", [(10, 10), (7, 13), (999, 500), (12345, 54321)])
    def test_existing_holders_not_diluted(self, vault, token_b, desired):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        token_b.mint(VAULT_ADDRESS, 2001)

        total_a, total_b = vault.total_value()
        supply = vault.total_supply()
        shares, taken_a, taken_b = vault.deposit(desired[0], desired[1], 0, 0, BOB, sender=BOB)

        # 지분당 보유량은 줄지 않음
        assert (total_a + taken_a) * supply >= total_a * (supply + shares)
        assert (total_b + taken_b) * supply >= total_b * (supply + shares)
        assert taken_a <= desired[0] and taken_b <= desired[1]

    def test_single_sided_into_two_sided_vault(self, vault):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        with pytest.raises(InvalidInputError):
            vault.deposit(100, 0, 0, 0, BOB, sender=BOB)


class TestComputeDeposit:
    """compute_deposit 순수 계산"""

    def test_one_sided_totals(self):
        """B 총량이 0이면 A로만 받음"""
        assert compute_deposit(100, 50, 1000, 0, 500, Q96) == (50, 100, 0)
        assert compute_deposit(100, 50, 0, 1000, 500, Q96) == (25, 0, 50)

    def test_zero_totals_with_supply(self):
        with pytest.raises(InvariantViolation):
            compute_deposit(100, 100, 0, 0, 500, Q96)

    def test_zero_desired(self):
        with pytest.raises(InvalidInputError):
            compute_deposit(0, 0, 1000, 1000, 1000, Q96)

    def test_negative_desired(self):
        with pytest.raises(InvalidInputError):
            compute_deposit(-1, 10, 1000, 1000, 1000, Q96)


class TestDepositValidation:
    """입력 검증과 원자성"""

    def test_slippage(self, vault, token_a):
        vault.deposit(1000, 1000, 0, 0, ALICE, sender=ALICE)
        with pytest.raises(SlippageError):
            vault.deposit(100, 50, 100, 0, BOB, sender=BOB)
        assert token_a.balance_of(BOB) == INITIAL_BALANCE
        assert vault.total_supply() == 1000

    def test_supply_cap(self, vault):
        vault.set_max_total_supply(150, sender=GOVERNANCE)
        vault.deposit(100, 100, 0, 0, ALICE, sender=ALICE)
        with pytest.raises(SupplyCapError):
            vault.deposit(100, 100, 0, 0, BOB, sender=BOB)
        assert vault.total_supply() == 100

    @pytest.mark.parametrize("recipient", ["", ZERO_ADDRESS, VAULT_ADDRESS])
    def test_invalid_recipient(self, vault, recipient):
        with pytest.raises(InvalidRecipientError):
            vault.deposit(100, 100, 0, 0, recipient, sender=ALICE)

    def test_paused(self, vault):
        vault.pause(sender=GOVERNANCE)
        with pytest.raises(PausedError):
            vault.deposit(100, 100, 0, 0, ALICE, sender=ALICE)

    def test_failed_transfer_rolls_back(self, vault, token_a, share_token):
        """A 전송 후 B 전송이 실패하면 A 전송도 취소"""
        token_a.mint("0xpoor", 100)

        with pytest.raises(CollaboratorError):
            vault.deposit(100, 100, 0, 0, "0xpoor", sender="0xpoor")

        assert token_a.balance_of("0xpoor") == 100
        assert token_a.balance_of(VAULT_ADDRESS) == 0
        assert share_token.total_supply() == 0
        assert vault.events == []
        assert vault.state.entered is False
