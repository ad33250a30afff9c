"""
Identity Registry Integration Service
=====================================

Tích hợp Registry với các thành phần khác của dự án:
- Backend API
- Cấu hình (owner, signed calls)
- Event log
"""

import logging
from typing import Optional, Callable, Dict, Any

from .accounts import recover_caller, to_account
from .config import RegistrySettings
from .errors import RegistryError
from .events import EventLog
from .registry import Registry


logger = logging.getLogger("IdentityRegistry.service")


class CallerAuthenticationError(Exception):
    """Caller could not prove control of the claimed account"""


class RegistryService:
    """
    Main service class for registry operations

    Provides a unified interface for:
    - Building the registry from settings
    - Authenticating callers
    - Statistics
    """

    def __init__(
        self,
        settings: Optional[RegistrySettings] = None,
        clock: Optional[Callable[[], int]] = None
    ):
        """
        Initialize Registry Service

        Args:
            settings: Registry settings (defaults read from environment)
            clock: Source of Unix timestamps, for tests
        """
        self.settings = settings or RegistrySettings()
        self.owner = to_account(self.settings.owner_account(), "owner")
        self.events = EventLog()
        self.registry = Registry(owner=self.owner, events=self.events, clock=clock)

    def authenticate(self, caller: Optional[str], operation: str, signature: Optional[str] = None) -> str:
        """
        Resolve the calling account for an operation

        Args:
            caller: Claimed account address
            operation: Operation identifier being invoked
            signature: EIP-191 signature over "<caller>:<operation>"

        Returns:
            Checksummed caller address

        Raises:
            CallerAuthenticationError: missing caller, or bad signature
                when signed calls are required
        """
        if not caller:
            raise CallerAuthenticationError("missing caller account")
        try:
            account = to_account(caller, "caller")
        except RegistryError as e:
            raise CallerAuthenticationError(str(e)) from e

        if self.settings.REQUIRE_SIGNED_CALLS:
            if not signature or not recover_caller(account, operation, signature):
                logger.warning(f"Rejected unsigned or mis-signed {operation} from {account}")
                raise CallerAuthenticationError(f"invalid signature for {operation}")
        return account

    def get_statistics(self) -> Dict[str, Any]:
        """Get overall registry statistics"""
        return {
            "owner": self.owner,
            "registry": self.registry.get_statistics(),
            "events": len(self.events),
            "signedCalls": self.settings.REQUIRE_SIGNED_CALLS
        }
