"""
Vault Endpoints

Deposit, withdraw, rebalance and governance operations on the simulated vault.
Vault errors are returned as HTTP errors:
    403 for unauthorized senders, 409 when paused or busy, 400 otherwise.
"""
from fastapi import APIRouter, HTTPException

from lp_vault.vault import PausedError, ReentrancyError, UnauthorizedError, VaultError

from app.api.schemas import (
    AdminRequest,
    BalanceResponse,
    DepositRequest,
    DepositResponse,
    EventsResponse,
    RebalanceRequest,
    VaultStatusResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from app.config import settings
from app.core.simulation import get_simulation, reset_simulation

router = APIRouter()


def status_code_for(error: VaultError) -> int:
    """Map a vault error to an HTTP status code"""
    if isinstance(error, UnauthorizedError):
        return 403
    if isinstance(error, (PausedError, ReentrancyError)):
        return 409
    return 400


def _reject(tag: str, error: VaultError) -> HTTPException:
    print(f"[{tag}] Rejected: {type(error).__name__}: {error}")
    return HTTPException(status_code=status_code_for(error), detail=str(error))


@router.get("/vault/status", response_model=VaultStatusResponse)
async def vault_status():
    """Current holdings by venue, range, price and accrued fees"""
    return VaultStatusResponse(**get_simulation().status())


@router.get("/vault/balance/{address}", response_model=BalanceResponse)
async def vault_balance(address: str):
    """Share and token balances of an address"""
    return BalanceResponse(**get_simulation().balances(address))


@router.get("/vault/events", response_model=EventsResponse)
async def vault_events(limit: int = 50):
    """Most recent vault events, oldest first"""
    limit = max(0, min(limit, settings.MAX_EVENTS))
    events = get_simulation().vault.events
    selected = events[-limit:] if limit else []
    return EventsResponse(count=len(events), events=[event.to_dict() for event in selected])


@router.post("/vault/deposit", response_model=DepositResponse)
async def deposit(request: DepositRequest):
    """
    Deposit assets for shares

    The vault takes at most (desired_a, desired_b) in the ratio of its current
    holdings and mints shares rounded down.
    """
    vault = get_simulation().vault
    recipient = request.recipient or request.sender
    try:
        print(f"[Deposit] {request.sender} → {recipient}: desired=({request.desired_a}, {request.desired_b})")
        shares, amount_a, amount_b = vault.deposit(
            request.desired_a,
            request.desired_b,
            request.min_a,
            request.min_b,
            recipient,
            sender=request.sender
        )
    except VaultError as e:
        raise _reject("Deposit", e)

    print(f"[Deposit] Minted {shares} shares for ({amount_a}, {amount_b})")
    return DepositResponse(
        shares=shares,
        amount_a=amount_a,
        amount_b=amount_b,
        total_supply=vault.total_supply()
    )


@router.post("/vault/withdraw", response_model=WithdrawResponse)
async def withdraw(request: WithdrawRequest):
    """
    Burn shares for a proportional slice of every venue

    Allowed while the vault is paused.
    """
    vault = get_simulation().vault
    recipient = request.recipient or request.sender
    try:
        print(f"[Withdraw] {request.sender} → {recipient}: shares={request.shares}")
        amount_a, amount_b = vault.withdraw(
            request.shares,
            request.min_a,
            request.min_b,
            recipient,
            sender=request.sender
        )
    except VaultError as e:
        raise _reject("Withdraw", e)

    print(f"[Withdraw] Paid out ({amount_a}, {amount_b})")
    return WithdrawResponse(amount_a=amount_a, amount_b=amount_b, total_supply=vault.total_supply())


@router.post("/vault/rebalance")
async def rebalance(request: RebalanceRequest):
    """
    Re-center the AMM range around the current price

    Returns the rebalance event.
    """
    vault = get_simulation().vault
    try:
        print(f"[Rebalance] uniswap_share={request.uniswap_share}%")
        event = vault.rebalance(request.uniswap_share, sender=request.sender)
    except VaultError as e:
        raise _reject("Rebalance", e)

    print(f"[Rebalance] Range [{event.range_lower}, {event.range_upper}] at tick {event.tick}, "
          f"swapped={event.swapped}")
    return event.to_dict()


@router.post("/vault/pause")
async def pause(request: AdminRequest):
    """Block deposits and rebalances"""
    vault = get_simulation().vault
    try:
        vault.pause(sender=request.sender)
    except VaultError as e:
        raise _reject("Admin", e)
    return {"paused": True}


@router.post("/vault/unpause")
async def unpause(request: AdminRequest):
    """Resume deposits and rebalances"""
    vault = get_simulation().vault
    try:
        vault.unpause(sender=request.sender)
    except VaultError as e:
        raise _reject("Admin", e)
    return {"paused": False}


@router.post("/vault/collect-fees")
async def collect_fees(request: AdminRequest):
    """Transfer accrued protocol fees to `to`"""
    vault = get_simulation().vault
    try:
        amount_a, amount_b = vault.collect_protocol_fees(request.to or request.sender, sender=request.sender)
    except VaultError as e:
        raise _reject("Admin", e)

    print(f"[Admin] Collected protocol fees ({amount_a}, {amount_b})")
    return {"amount_a": amount_a, "amount_b": amount_b}


@router.post("/vault/reset")
async def reset():
    """Discard the simulation and start over"""
    reset_simulation()
    return {"status": "reset"}
