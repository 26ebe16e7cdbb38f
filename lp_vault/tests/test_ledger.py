"""
Fee & Gain Ledger 테스트
"""

from fractions import Fraction

import pytest

from ..vault.ledger import accrue_fee, fee_on, realized_gain, split_fee
from ..vault.state import VaultConfig, VaultState


@pytest.fixture
def state():
    return VaultState(
        asset_a="0xa",
        asset_b="0xb",
        range_lower=-600,
        range_upper=600,
        governance="0xgov",
        rebalancer="0xkeeper",
        protocol_fee_rate=Fraction(1, 10),
    )


class TestRealizedGain:
    """회수액 - 추적 원금 (음수면 0)"""

    def test_gain(self):
        assert realized_gain(110, 100) == 10

    def test_loss_is_zero(self):
        assert realized_gain(90, 100) == 0

    def test_break_even(self):
        assert realized_gain(100, 100) == 0


class TestAccrueFee:
    """accrue_fee 테스트"""

    def test_accrues_and_returns_net(self, state):
        net = accrue_fee(state, 1000, 55)
        assert net == (900, 50)
        assert (state.accrued_fee_a, state.accrued_fee_b) == (100, 5)

    def test_accumulates(self, state):
        accrue_fee(state, 1000, 0)
        accrue_fee(state, 1000, 0)
        assert state.accrued_fee_a == 200

    def test_fee_rounds_down(self, state):
        assert accrue_fee(state, 9, 19) == (9, 18)
        assert (state.accrued_fee_a, state.accrued_fee_b) == (0, 1)

    def test_zero_rate(self, state):
        state.protocol_fee_rate = Fraction(0)
        assert accrue_fee(state, 1000, 1000) == (1000, 1000)
        assert state.accrued_fee_a == 0

    def test_negative_gain_rejected(self, state):
        with pytest.raises(ValueError):
            accrue_fee(state, -1, 0)

    def test_fee_on_is_pure(self, state):
        assert fee_on(state, 1000) == 100
        assert fee_on(state, -5) == 0
        assert state.accrued_fee_a == 0


class TestSplitFee:
    """이미 부과된 수수료의 원천별 배분"""

    def test_proportional(self):
        assert split_fee(10, 30, 70) == (3, 7)

    def test_remainder_to_second(self):
        assert split_fee(10, 1, 2) == (3, 7)

    def test_no_gain(self):
        assert split_fee(0, 0, 0) == (0, 0)

    def test_single_source(self):
        assert split_fee(7, 70, 0) == (7, 0)
        assert split_fee(7, 0, 70) == (0, 7)


class TestVaultState:
    """VaultState 검증"""

    def test_invalid_range(self):
        with pytest.raises(ValueError):
            VaultState(asset_a="0xa", asset_b="0xb", range_lower=600, range_upper=600,
                       governance="0xgov", rebalancer="0xkeeper")

    def test_invalid_fee_rate(self):
        with pytest.raises(ValueError):
            VaultState(asset_a="0xa", asset_b="0xb", range_lower=-600, range_upper=600,
                       governance="0xgov", rebalancer="0xkeeper", protocol_fee_rate=Fraction(1))

    def test_default_fee_rate_matches_config(self):
        state = VaultState(asset_a="0xa", asset_b="0xb", range_lower=-600, range_upper=600,
                           governance="0xgov", rebalancer="0xkeeper")
        config = VaultConfig(governance="0xgov", rebalancer="0xkeeper")
        assert state.protocol_fee_rate == config.protocol_fee_rate == Fraction(1, 10)

    def test_negative_principal_rejected(self, state):
        with pytest.raises(ValueError):
            state.set_reserve_deposited(True, -1)
