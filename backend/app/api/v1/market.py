"""
Market Endpoints

Drives the simulated venues: faucet, price-moving swaps and reserve yield.
"""
from fastapi import APIRouter, HTTPException
from fractions import Fraction

from lp_vault.vault import VaultError

from app.api.schemas import FaucetRequest, SwapRequest, YieldRequest
from app.config import settings
from app.core.simulation import get_simulation

router = APIRouter()


@router.post("/market/faucet")
async def faucet(request: FaucetRequest):
    """Mint test tokens to an address"""
    if request.amount_a > settings.FAUCET_LIMIT or request.amount_b > settings.FAUCET_LIMIT:
        raise HTTPException(
            status_code=400,
            detail=f"Faucet limit is {settings.FAUCET_LIMIT} per asset"
        )

    simulation = get_simulation()
    simulation.fund(request.address, request.amount_a, request.amount_b)
    print(f"[Market] Funded {request.address} with ({request.amount_a}, {request.amount_b})")
    return simulation.balances(request.address)


@router.post("/market/swap")
async def swap(request: SwapRequest):
    """Swap against the pool from the market account"""
    try:
        result = get_simulation().swap(request.zero_for_one, request.amount_in)
    except VaultError as e:
        print(f"[Market] Swap failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    print(f"[Market] Swap zero_for_one={request.zero_for_one}: tick → {result['tick']}")
    return result


@router.post("/market/yield")
async def accrue_yield(request: YieldRequest):
    """Move a reserve exchange rate (positive yield or negative loss)"""
    asset = request.asset.lower()
    if asset not in ("a", "b"):
        raise HTTPException(status_code=400, detail=f"Unknown asset: {request.asset}")
    try:
        rate = Fraction(request.rate)
    except (ValueError, ZeroDivisionError):
        raise HTTPException(status_code=400, detail=f"Invalid rate: {request.rate}")
    if rate <= -1:
        raise HTTPException(status_code=400, detail=f"Rate must be greater than -1: {request.rate}")

    exchange_rate = get_simulation().accrue_yield(asset == "a", rate)
    print(f"[Market] Reserve {asset.upper()} exchange rate → {exchange_rate}")
    return {"asset": asset, "exchange_rate": exchange_rate}
