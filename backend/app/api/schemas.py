"""
API Request/Response Schemas using Pydantic

Defines data models for the vault simulation API endpoints.
All token amounts are integers in the token's smallest unit.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class DepositRequest(BaseModel):
    """Request payload for POST /api/v1/vault/deposit"""
    sender: str = Field(..., description="Address paying the assets")
    recipient: Optional[str] = Field(None, description="Address receiving the shares (defaults to sender)")
    desired_a: int = Field(..., description="Maximum amount of asset A to deposit", ge=0)
    desired_b: int = Field(..., description="Maximum amount of asset B to deposit", ge=0)
    min_a: int = Field(default=0, description="Revert if less asset A is taken", ge=0)
    min_b: int = Field(default=0, description="Revert if less asset B is taken", ge=0)

    class Config:
        json_schema_extra = {
            "example": {
                "sender": "0xalice",
                "desired_a": 1000000000000000000,
                "desired_b": 1000000000000000000,
                "min_a": 0,
                "min_b": 0
            }
        }


class DepositResponse(BaseModel):
    """Response payload for POST /api/v1/vault/deposit"""
    shares: int = Field(..., description="Shares minted")
    amount_a: int = Field(..., description="Asset A taken")
    amount_b: int = Field(..., description="Asset B taken")
    total_supply: int = Field(..., description="Share supply after the deposit")


class WithdrawRequest(BaseModel):
    """Request payload for POST /api/v1/vault/withdraw"""
    sender: str = Field(..., description="Share holder")
    recipient: Optional[str] = Field(None, description="Address receiving the assets (defaults to sender)")
    shares: int = Field(..., description="Shares to burn", ge=0)
    min_a: int = Field(default=0, description="Revert if less asset A is paid out", ge=0)
    min_b: int = Field(default=0, description="Revert if less asset B is paid out", ge=0)

    class Config:
        json_schema_extra = {
            "example": {
                "sender": "0xalice",
                "shares": 500000000000000000,
                "min_a": 0,
                "min_b": 0
            }
        }


class WithdrawResponse(BaseModel):
    """Response payload for POST /api/v1/vault/withdraw"""
    amount_a: int = Field(..., description="Asset A paid out")
    amount_b: int = Field(..., description="Asset B paid out")
    total_supply: int = Field(..., description="Share supply after the withdrawal")


class RebalanceRequest(BaseModel):
    """Request payload for POST /api/v1/vault/rebalance"""
    sender: str = Field(..., description="Rebalancer address")
    uniswap_share: int = Field(..., description="Percent of holdings placed in the AMM range (1-100)")

    class Config:
        json_schema_extra = {
            "example": {
                "sender": "0xkeeper",
                "uniswap_share": 50
            }
        }


class FaucetRequest(BaseModel):
    """Request payload for POST /api/v1/market/faucet"""
    address: str = Field(..., description="Address to fund")
    amount_a: int = Field(default=0, description="Asset A to mint", ge=0)
    amount_b: int = Field(default=0, description="Asset B to mint", ge=0)


class SwapRequest(BaseModel):
    """Request payload for POST /api/v1/market/swap"""
    zero_for_one: bool = Field(..., description="True sells asset A for B (price moves down)")
    amount_in: int = Field(..., description="Exact input amount", gt=0)


class YieldRequest(BaseModel):
    """Request payload for POST /api/v1/market/yield"""
    asset: str = Field(..., description="Reserve to move: 'a' or 'b'")
    rate: str = Field(..., description="Relative exchange rate change, e.g. '1/10' or '-0.05'")


class AdminRequest(BaseModel):
    """Request payload for governance-only endpoints"""
    sender: str = Field(..., description="Governance address")
    to: Optional[str] = Field(None, description="Fee recipient for fee collection")


class BalanceResponse(BaseModel):
    """Response payload for GET /api/v1/vault/balance/{address}"""
    address: str
    shares: int
    token_a: int
    token_b: int


class VaultStatusResponse(BaseModel):
    """Response payload for GET /api/v1/vault/status"""
    address: str = Field(..., description="Vault address")
    token_a: str = Field(..., description="Asset A symbol")
    token_b: str = Field(..., description="Asset B symbol")
    total_supply: int = Field(..., description="Outstanding shares")
    total_a: int = Field(..., description="Total holdings of asset A (net of protocol fees)")
    total_b: int = Field(..., description="Total holdings of asset B (net of protocol fees)")
    amm_a: int
    amm_b: int
    reserve_a: int
    reserve_b: int
    idle_a: int
    idle_b: int
    range_lower: int = Field(..., description="Lower tick of the AMM range")
    range_upper: int = Field(..., description="Upper tick of the AMM range")
    position_liquidity: int
    tick: int = Field(..., description="Current pool tick")
    price: float = Field(..., description="Current price of A in B (display only)")
    accrued_fee_a: int
    accrued_fee_b: int
    reserve_a_deposited: int
    reserve_b_deposited: int
    paused: bool
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Response timestamp")


class EventsResponse(BaseModel):
    """Response payload for GET /api/v1/vault/events"""
    count: int
    events: List[Dict[str, Any]]


class HealthCheckResponse(BaseModel):
    """Response payload for GET /api/v1/health endpoint"""
    status: str = Field(..., description="API health status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Current server time")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "version": "0.1.0",
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }


class ErrorResponse(BaseModel):
    """Error response payload"""
    status: str = Field(default="error", description="Response status")
    error: str = Field(..., description="Error type")
    detail: str = Field(..., description="Error message")
