"""
Account identifiers for the Identity Registry

Accounts are Ethereum-style 20-byte addresses. Every address that enters
the registry is normalized to its EIP-55 checksum form so that
0xabc... and 0xABC... resolve to the same record.

Callers can prove control of an address with an EIP-191 personal message
signature over the operation they invoke.
"""

from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_hex_address, to_checksum_address

from .errors import InvalidArgumentError


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def lookup_account(value: Optional[str]) -> Optional[str]:
    """Checksum form of `value`, or None if it is not an address"""
    if not value or not isinstance(value, str):
        return None
    if not is_hex_address(value):
        return None
    return to_checksum_address(value)


def to_account(value: Optional[str], field: str = "account") -> str:
    """
    Normalize an account identifier

    Args:
        value: Hex address in any casing
        field: Argument name reported on failure

    Returns:
        Checksummed address

    Raises:
        InvalidArgumentError: if value is empty or not an address
    """
    account = lookup_account(value)
    if account is None:
        raise InvalidArgumentError(field, f"'{value}' is not a valid account address")
    return account


def is_zero_account(account: str) -> bool:
    return account.lower() == ZERO_ADDRESS


# ==================== CALLER PROOFS ====================

def call_message(caller: str, operation: str) -> str:
    """Message a caller signs to authorize one operation"""
    return f"{caller.lower()}:{operation}"


def sign_call(private_key: str, operation: str) -> str:
    """
    Sign an operation with an Ethereum private key

    Returns:
        Hex signature (0x-prefixed)
    """
    account = Account.from_key(private_key)
    msg = encode_defunct(text=call_message(account.address, operation))
    signed = Account.sign_message(msg, private_key=private_key)
    signature = signed.signature.hex()
    if not signature.startswith("0x"):
        signature = "0x" + signature
    return signature


def recover_caller(caller: str, operation: str, signature: str) -> bool:
    """
    Check that `signature` was produced by `caller` for `operation`

    Returns:
        True if the recovered signer equals the caller
    """
    try:
        msg = encode_defunct(text=call_message(caller, operation))
        recovered = Account.recover_message(msg, signature=signature)
    except Exception:
        # malformed or unrecoverable signatures all count as a failed proof
        return False
    return recovered.lower() == caller.lower()
