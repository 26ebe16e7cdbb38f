"""
Configuration settings for the vault simulation API

Loads environment variables and provides application configuration.
"""
import os
from fractions import Fraction
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Application settings"""

    # API Configuration
    API_VERSION: str = "0.1.0"
    API_TITLE: str = "Liquidity Vault Simulation API"
    API_DESCRIPTION: str = "Multi-venue liquidity vault (AMM range + yield reserves) running on simulated venues"

    # CORS Configuration
    CORS_ORIGINS: List[str] = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000"
    ).split(",")

    # Server Configuration
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8000))
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"

    # Simulated pool
    POOL_FEE: int = int(os.getenv("POOL_FEE", 3000))
    INITIAL_TICK: int = int(os.getenv("INITIAL_TICK", 0))
    MARKET_LIQUIDITY: int = int(os.getenv("MARKET_LIQUIDITY", 10 ** 21))
    TOKEN_A_SYMBOL: str = os.getenv("TOKEN_A_SYMBOL", "TKA")
    TOKEN_B_SYMBOL: str = os.getenv("TOKEN_B_SYMBOL", "TKB")

    # Vault roles
    VAULT_ADDRESS: str = os.getenv("VAULT_ADDRESS", "0xvault")
    GOVERNANCE_ADDRESS: str = os.getenv("GOVERNANCE_ADDRESS", "0xgovernance")
    REBALANCER_ADDRESS: str = os.getenv("REBALANCER_ADDRESS", "0xkeeper")

    # Vault knobs (fractions accept "1/10" or "0.1")
    PROTOCOL_FEE_RATE: Fraction = Fraction(os.getenv("PROTOCOL_FEE_RATE", "1/10"))
    EXCESS_IGNORE_BAND: Fraction = Fraction(os.getenv("EXCESS_IGNORE_BAND", "1/100"))
    WITHDRAWAL_BUFFER: Fraction = Fraction(os.getenv("WITHDRAWAL_BUFFER", "0"))
    RESERVE_DEPOSIT_THRESHOLD_A: int = int(os.getenv("RESERVE_DEPOSIT_THRESHOLD_A", 0))
    RESERVE_DEPOSIT_THRESHOLD_B: int = int(os.getenv("RESERVE_DEPOSIT_THRESHOLD_B", 0))
    MAX_TOTAL_SUPPLY: int = int(os.getenv("MAX_TOTAL_SUPPLY", 2 ** 128 - 1))

    # Request Limits
    FAUCET_LIMIT: int = int(os.getenv("FAUCET_LIMIT", 10 ** 24))
    MAX_EVENTS: int = 500

    def get_token_symbol(self, is_a: bool) -> str:
        """Get token symbol for asset A or B"""
        return self.TOKEN_A_SYMBOL if is_a else self.TOKEN_B_SYMBOL


# Create global settings instance
settings = Settings()


# Validate critical settings on import
if not 0 <= settings.PROTOCOL_FEE_RATE < 1:
    print(f"⚠️  WARNING: PROTOCOL_FEE_RATE={settings.PROTOCOL_FEE_RATE} is outside [0, 1)")
    print("   The vault will refuse to start until it is fixed in .env")
