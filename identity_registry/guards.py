"""
Precondition guards

A guard is a zero-argument callable that returns None when its condition
holds and a RegistryError when it does not. Operations list their guards
in order and `enforce` raises the first failure, so every check runs
before any state is written.
"""

from typing import Optional, Callable, Dict, List

from .accounts import is_zero_account
from .errors import (
    RegistryError,
    AlreadyExistsError,
    NotFoundError,
    UnauthorizedError,
    InvalidArgumentError,
    OutOfRangeError,
    AlreadyRevokedError,
)
from .models import Identity, Credential


Guard = Callable[[], Optional[RegistryError]]


def enforce(*guards: Guard) -> None:
    """Run guards in order and raise the first error returned"""
    error = check(*guards)
    if error is not None:
        raise error


def check(*guards: Guard) -> Optional[RegistryError]:
    """Like enforce, but return the first error instead of raising"""
    for guard in guards:
        error = guard()
        if error is not None:
            return error
    return None


# ==================== ARGUMENTS ====================

def non_empty(field: str, value: Optional[str]) -> Guard:
    def guard():
        if not value:
            return InvalidArgumentError(field, f"{field} must not be empty")
        return None
    return guard


def valid_account(field: str, account: Optional[str], raw: Optional[str] = None) -> Guard:
    """`account` is the normalized form of `raw`, None when it did not parse"""
    def guard():
        if account is None:
            return InvalidArgumentError(field, f"'{raw}' is not a valid account address")
        return None
    return guard


def not_zero_account(field: str, account: str) -> Guard:
    def guard():
        if is_zero_account(account):
            return InvalidArgumentError(field, f"{field} must not be the zero address")
        return None
    return guard


# ==================== ROLES ====================

def is_owner(owner: str, caller: str) -> Guard:
    def guard():
        if caller != owner:
            return UnauthorizedError("caller", f"{caller} is not the registry owner")
        return None
    return guard


def is_issuer(issuers: Dict[str, bool], caller: str) -> Guard:
    def guard():
        if not issuers.get(caller, False):
            return UnauthorizedError("caller", f"{caller} is not an authorized issuer")
        return None
    return guard


def is_original_issuer(credentials: List[Credential], index: int, caller: str) -> Guard:
    def guard():
        if credentials[index].issuer != caller:
            return UnauthorizedError("caller", f"only {credentials[index].issuer} may revoke credential {index}")
        return None
    return guard


# ==================== RECORDS ====================

def identity_absent(identities: Dict[str, Identity], account: str) -> Guard:
    def guard():
        identity = identities.get(account)
        if identity is not None and identity.exists:
            return AlreadyExistsError("account", f"identity for {account} already exists")
        return None
    return guard


def identity_present(identities: Dict[str, Identity], account: Optional[str], field: str = "account") -> Guard:
    def guard():
        identity = identities.get(account) if account else None
        if identity is None or not identity.exists:
            return NotFoundError(field, f"no identity for {account}")
        return None
    return guard


def index_in_range(credentials: List[Credential], index: int) -> Guard:
    def guard():
        if not isinstance(index, int) or isinstance(index, bool) or index < 0 or index >= len(credentials):
            return OutOfRangeError("index", f"index {index} out of range for {len(credentials)} credentials")
        return None
    return guard


def still_valid(credentials: List[Credential], index: int) -> Guard:
    def guard():
        if not credentials[index].is_valid:
            return AlreadyRevokedError("index", f"credential {index} is already revoked")
        return None
    return guard
