"""
FastAPI Main Application

Simulation API for the multi-venue liquidity vault.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from datetime import datetime

from app.config import settings
from app.api.v1 import health, market, vault
from app.core.simulation import get_simulation

# Create FastAPI app
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(vault.router, prefix="/api/v1", tags=["Vault"])
app.include_router(market.router, prefix="/api/v1", tags=["Market"])
app.include_router(health.router, prefix="/api/v1", tags=["Health"])


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "name": settings.API_TITLE,
        "version": settings.API_VERSION,
        "description": settings.API_DESCRIPTION,
        "docs": "/docs",
        "health": "/api/v1/health",
        "status": "/api/v1/vault/status",
        "timestamp": datetime.utcnow().isoformat()
    }


@app.on_event("startup")
async def startup_event():
    """Actions to perform on application startup"""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    simulation = get_simulation()
    print(f"🚀 Starting {settings.API_TITLE} v{settings.API_VERSION}")
    print(f"🏦 Vault {simulation.vault.address}: pool fee {settings.POOL_FEE}, "
          f"protocol fee {settings.PROTOCOL_FEE_RATE}")
    print(f"🔑 Governance: {settings.GOVERNANCE_ADDRESS}, rebalancer: {settings.REBALANCER_ADDRESS}")


@app.on_event("shutdown")
async def shutdown_event():
    """Actions to perform on application shutdown"""
    print("👋 Shutting down Liquidity Vault Simulation API")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
