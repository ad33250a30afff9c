"""
Decentralized Identity Registry
===============================

Registry định danh phi tập trung: identity tự khai báo, credential do
issuer được ủy quyền cấp và thu hồi, ai cũng có thể đọc trạng thái.

Components:
- Registry: Lưu trữ và kiểm soát quyền (identity, credential, issuer)
- EventLog: Thông báo theo thứ tự cho mỗi thay đổi trạng thái
- RegistryService: Service tích hợp chính

Content hashes (profileHash, dataHash) là tham chiếu mờ tới kho
content-addressed bên ngoài, registry không bao giờ đọc chúng.
"""

from .errors import (
    RegistryError,
    AlreadyExistsError,
    NotFoundError,
    UnauthorizedError,
    InvalidArgumentError,
    OutOfRangeError,
    AlreadyRevokedError,
)
from .events import (
    EventLog,
    LoggedEvent,
    IdentityCreated,
    IdentityUpdated,
    CredentialAdded,
    CredentialRevoked,
)
from .models import Identity, IdentitySnapshot, Credential, CredentialColumns
from .accounts import ZERO_ADDRESS, to_account, lookup_account, sign_call, recover_caller
from .registry import Registry
from .config import RegistrySettings
from .service import RegistryService, CallerAuthenticationError

__version__ = "1.0.0"
__all__ = [
    # Core
    "Registry",
    "Identity",
    "IdentitySnapshot",
    "Credential",
    "CredentialColumns",

    # Errors
    "RegistryError",
    "AlreadyExistsError",
    "NotFoundError",
    "UnauthorizedError",
    "InvalidArgumentError",
    "OutOfRangeError",
    "AlreadyRevokedError",

    # Events
    "EventLog",
    "LoggedEvent",
    "IdentityCreated",
    "IdentityUpdated",
    "CredentialAdded",
    "CredentialRevoked",

    # Accounts
    "ZERO_ADDRESS",
    "to_account",
    "lookup_account",
    "sign_call",
    "recover_caller",

    # Service
    "RegistrySettings",
    "RegistryService",
    "CallerAuthenticationError"
]
