"""
Vault Simulation

Wires a Vault to in-memory venues (token ledgers, concentrated liquidity
pool, two yield reserves) and keeps one shared instance for the API.
A market account provides background liquidity and lets clients move the
price with swaps.
"""
from fractions import Fraction
from typing import Any, Dict, Optional

from lp_vault.math.tick_math import (
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    get_sqrt_ratio_at_tick,
    min_usable_tick,
    max_usable_tick,
    tick_to_price,
)
from lp_vault.sim import ConcentratedLiquidityPool, SimYieldReserve, TokenLedger
from lp_vault.vault import Vault, VaultConfig
from lp_vault.vault import valuation

from app.config import settings

MARKET_ADDRESS = "0xmarket"

# Global cache for the running simulation
_simulation_cache: Dict[str, "VaultSimulation"] = {}


class MarketAccount:
    """External account that settles pool callbacks from its own balance"""

    def __init__(self, address: str, token0: TokenLedger, token1: TokenLedger):
        self.address = address
        self.token0 = token0
        self.token1 = token1

    def amm_mint_callback(self, pool, amount0: int, amount1: int):
        if amount0 > 0:
            self.token0.transfer(self.address, pool.address, amount0)
        if amount1 > 0:
            self.token1.transfer(self.address, pool.address, amount1)

    def amm_swap_callback(self, pool, amount0_delta: int, amount1_delta: int):
        if amount0_delta > 0:
            self.token0.transfer(self.address, pool.address, amount0_delta)
        if amount1_delta > 0:
            self.token1.transfer(self.address, pool.address, amount1_delta)


class VaultSimulation:
    """A vault running on simulated venues"""

    def __init__(self):
        self.token_a = TokenLedger("0xtoken-a", settings.TOKEN_A_SYMBOL)
        self.token_b = TokenLedger("0xtoken-b", settings.TOKEN_B_SYMBOL)
        self.share_token = TokenLedger(f"{settings.VAULT_ADDRESS}-shares", "LPV")

        self.pool = ConcentratedLiquidityPool(
            "0xpool",
            self.token_a,
            self.token_b,
            fee=settings.POOL_FEE,
            sqrt_price_x96=get_sqrt_ratio_at_tick(settings.INITIAL_TICK)
        )
        self.reserve_a = SimYieldReserve("0xreserve-a", self.token_a)
        self.reserve_b = SimYieldReserve("0xreserve-b", self.token_b)

        self.market = MarketAccount(MARKET_ADDRESS, self.token_a, self.token_b)
        self.token_a.mint(MARKET_ADDRESS, settings.FAUCET_LIMIT * 1000)
        self.token_b.mint(MARKET_ADDRESS, settings.FAUCET_LIMIT * 1000)
        if settings.MARKET_LIQUIDITY > 0:
            spacing = self.pool.tick_spacing
            self.pool.open_position(
                self.market, min_usable_tick(spacing), max_usable_tick(spacing), settings.MARKET_LIQUIDITY
            )

        self.vault = Vault(
            settings.VAULT_ADDRESS,
            self.pool,
            self.reserve_a,
            self.reserve_b,
            self.share_token,
            VaultConfig(
                governance=settings.GOVERNANCE_ADDRESS,
                rebalancer=settings.REBALANCER_ADDRESS,
                protocol_fee_rate=settings.PROTOCOL_FEE_RATE,
                max_total_supply=settings.MAX_TOTAL_SUPPLY,
                excess_ignore_band=settings.EXCESS_IGNORE_BAND,
                reserve_deposit_threshold_a=settings.RESERVE_DEPOSIT_THRESHOLD_A,
                reserve_deposit_threshold_b=settings.RESERVE_DEPOSIT_THRESHOLD_B,
                withdrawal_buffer=settings.WITHDRAWAL_BUFFER,
            )
        )

    def fund(self, address: str, amount_a: int, amount_b: int) -> None:
        """Faucet: mint test tokens to an address"""
        if amount_a > 0:
            self.token_a.mint(address, amount_a)
        if amount_b > 0:
            self.token_b.mint(address, amount_b)

    def swap(self, zero_for_one: bool, amount_in: int) -> Dict[str, int]:
        """Market swap that moves the pool price"""
        limit = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1
        amount_a, amount_b = self.pool.swap(self.market, zero_for_one, amount_in, limit)
        return {
            "amount_a": amount_a,
            "amount_b": amount_b,
            "tick": self.pool.current_tick(),
        }

    def accrue_yield(self, is_a: bool, rate: Fraction) -> int:
        """Move a reserve exchange rate by `rate` (negative for a loss)"""
        reserve = self.vault.reserve(is_a)
        reserve.accrue_yield(rate)
        return reserve.exchange_rate()

    def balances(self, address: str) -> Dict[str, Any]:
        return {
            "address": address,
            "shares": self.share_token.balance_of(address),
            "token_a": self.token_a.balance_of(address),
            "token_b": self.token_b.balance_of(address),
        }

    def status(self) -> Dict[str, Any]:
        """Vault snapshot for the status endpoint"""
        vault = self.vault
        state = vault.state
        total_a, total_b = vault.total_value()
        amm_a, amm_b = valuation.amm_holdings(vault)
        reserve_a, reserve_b = valuation.reserve_holdings(vault)
        idle_a, idle_b = valuation.idle_holdings(vault)
        tick = self.pool.current_tick()

        return {
            "address": vault.address,
            "token_a": settings.get_token_symbol(True),
            "token_b": settings.get_token_symbol(False),
            "total_supply": vault.total_supply(),
            "total_a": total_a,
            "total_b": total_b,
            "amm_a": amm_a,
            "amm_b": amm_b,
            "reserve_a": reserve_a,
            "reserve_b": reserve_b,
            "idle_a": idle_a,
            "idle_b": idle_b,
            "range_lower": state.range_lower,
            "range_upper": state.range_upper,
            "position_liquidity": valuation.position_liquidity(vault),
            "tick": tick,
            "price": tick_to_price(tick),
            "accrued_fee_a": state.accrued_fee_a,
            "accrued_fee_b": state.accrued_fee_b,
            "reserve_a_deposited": state.reserve_a_deposited,
            "reserve_b_deposited": state.reserve_b_deposited,
            "paused": state.paused,
        }


def get_simulation() -> VaultSimulation:
    """Get the shared simulation (created on first use)"""
    simulation: Optional[VaultSimulation] = _simulation_cache.get("default")
    if simulation is None:
        print(f"[Simulation] Creating vault {settings.VAULT_ADDRESS} "
              f"(fee={settings.POOL_FEE}, tick={settings.INITIAL_TICK})")
        simulation = VaultSimulation()
        _simulation_cache["default"] = simulation
    return simulation


def reset_simulation() -> VaultSimulation:
    """Drop the shared simulation and start a fresh one"""
    _simulation_cache.pop("default", None)
    return get_simulation()
