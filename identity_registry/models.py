"""
Registry records and read snapshots

Identity is keyed by account; Credential lives in an append-only list
per holder. Reads never hand out the live records, only copies.
"""

from typing import Optional, Dict, Any, List, Tuple
from dataclasses import dataclass, field, replace


@dataclass
class Identity:
    """Self-asserted identity of one account"""
    account: str
    name: str
    email: str
    profile_hash: str = ""  # opaque content-hash, never resolved
    created_at: int = 0
    updated_at: int = 0
    exists: bool = True

    def snapshot(self) -> "IdentitySnapshot":
        return IdentitySnapshot(
            account=self.account,
            name=self.name,
            email=self.email,
            profile_hash=self.profile_hash,
            created_at=self.created_at,
            updated_at=self.updated_at
        )


@dataclass(frozen=True)
class IdentitySnapshot:
    """Read-only view returned by getIdentity"""
    account: str
    name: str
    email: str
    profile_hash: str
    created_at: int
    updated_at: int

    def as_tuple(self) -> Tuple[str, str, str, int, int]:
        """(name, email, profileHash, createdAt, updatedAt)"""
        return (self.name, self.email, self.profile_hash, self.created_at, self.updated_at)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "name": self.name,
            "email": self.email,
            "profileHash": self.profile_hash,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at
        }


@dataclass
class Credential:
    """
    Issuer-attested claim attached to a holder

    Only `is_valid` ever changes, and only from True to False.
    """
    credential_type: str
    data_hash: str
    issuer: str
    issued_at: int
    is_valid: bool = True
    index: Optional[int] = None

    def copy(self) -> "Credential":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "credentialType": self.credential_type,
            "dataHash": self.data_hash,
            "issuer": self.issuer,
            "issuedAt": self.issued_at,
            "isValid": self.is_valid
        }
        if self.index is not None:
            result["index"] = self.index
        return result


@dataclass(frozen=True)
class CredentialColumns:
    """
    Column view returned by getUserCredentials

    All five tuples have the same length and position i in each
    describes the credential at index i.
    """
    types: Tuple[str, ...] = ()
    data_hashes: Tuple[str, ...] = ()
    issuers: Tuple[str, ...] = ()
    issued_ats: Tuple[int, ...] = ()
    validities: Tuple[bool, ...] = ()

    @classmethod
    def from_credentials(cls, credentials: List[Credential]) -> "CredentialColumns":
        return cls(
            types=tuple(c.credential_type for c in credentials),
            data_hashes=tuple(c.data_hash for c in credentials),
            issuers=tuple(c.issuer for c in credentials),
            issued_ats=tuple(c.issued_at for c in credentials),
            validities=tuple(c.is_valid for c in credentials)
        )

    def __len__(self) -> int:
        return len(self.types)

    def as_tuple(self) -> tuple:
        return (
            list(self.types),
            list(self.data_hashes),
            list(self.issuers),
            list(self.issued_ats),
            list(self.validities)
        )

    def entries(self) -> List[Credential]:
        """Rebuild per-credential snapshots, keeping original indices"""
        return [
            Credential(
                credential_type=self.types[i],
                data_hash=self.data_hashes[i],
                issuer=self.issuers[i],
                issued_at=self.issued_ats[i],
                is_valid=self.validities[i],
                index=i
            )
            for i in range(len(self))
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "types": list(self.types),
            "dataHashes": list(self.data_hashes),
            "issuers": list(self.issuers),
            "issuedAts": list(self.issued_ats),
            "validities": list(self.validities)
        }


@dataclass
class RegistryState:
    """Everything the registry owns"""
    owner: str
    identities: Dict[str, Identity] = field(default_factory=dict)
    credentials: Dict[str, List[Credential]] = field(default_factory=dict)
    issuers: Dict[str, bool] = field(default_factory=dict)
