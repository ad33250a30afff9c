"""
config.py - Cấu hình tập trung cho Identity Registry
"""
from typing import List, Optional

from eth_account import Account
from pydantic_settings import BaseSettings, SettingsConfigDict  # Cần cài đặt: pip install pydantic-settings

# Hardhat Account #0 (chỉ dùng cho dev)
DEV_OWNER_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


class RegistrySettings(BaseSettings):
    # Owner của registry (deployer)
    OWNER_PRIVATE_KEY: str = DEV_OWNER_PRIVATE_KEY
    OWNER_ADDRESS: Optional[str] = None  # Ghi đè địa chỉ suy ra từ private key

    # Bắt buộc caller ký từng lệnh (X-Signature)
    REQUIRE_SIGNED_CALLS: bool = False

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env")  # Có thể load từ file .env

    def owner_account(self) -> str:
        """Địa chỉ của owner"""
        if self.OWNER_ADDRESS:
            return self.OWNER_ADDRESS
        return Account.from_key(self.OWNER_PRIVATE_KEY).address


settings = RegistrySettings()
