"""
Identity Registry
=================

Owns every identity, credential list and issuer authorization, and
enforces the rules that govern them:

- an account creates and updates only its own identity
- only authorized issuers attach credentials to existing identities
- only the original issuer revokes a credential, and only once
- only the owner manages the issuer set

All operations run under one lock. Each mutating call checks all of its
preconditions first, then writes and records its events, so a rejected
call leaves the state exactly as it was. Listeners are notified only after
the lock is released.
"""

import logging
import threading
import time
from typing import Optional, Callable, Dict, Any, List

from . import guards
from .accounts import lookup_account, to_account
from .errors import RegistryError
from .events import (
    EventLog,
    IdentityCreated,
    IdentityUpdated,
    CredentialAdded,
    CredentialRevoked,
)
from .models import (
    Identity,
    IdentitySnapshot,
    Credential,
    CredentialColumns,
    RegistryState,
)


logger = logging.getLogger("IdentityRegistry")


def unix_now() -> int:
    return int(time.time())


class Registry:
    """
    Decentralized identity registry

    Mutating operations take the calling account as their first argument;
    reads take the account being looked up.
    """

    def __init__(
        self,
        owner: str,
        events: Optional[EventLog] = None,
        clock: Optional[Callable[[], int]] = None
    ):
        owner = to_account(owner, "owner")
        self.events = events if events is not None else EventLog()
        self._clock = clock or unix_now
        self._lock = threading.RLock()
        self._state = RegistryState(owner=owner)
        # the deployer starts out as an issuer
        self._state.issuers[owner] = True
        logger.info(f"Registry initialized (owner: {owner})")

    @property
    def owner(self) -> str:
        return self._state.owner

    def _enforce(self, operation: str, *checks: guards.Guard) -> None:
        try:
            guards.enforce(*checks)
        except RegistryError as e:
            logger.warning(f"{operation} rejected: {e}")
            raise

    def _caller(self, operation: str, caller: str) -> str:
        try:
            return to_account(caller, "caller")
        except RegistryError as e:
            logger.warning(f"{operation} rejected: {e}")
            raise

    # ==================== IDENTITY ====================

    def create_identity(
        self,
        caller: str,
        name: str,
        email: str,
        profile_hash: str = ""
    ) -> IdentitySnapshot:
        """
        Create the caller's identity

        Raises:
            AlreadyExistsError: caller already has an identity
            InvalidArgumentError: name or email is empty
        """
        account = self._caller("createIdentity", caller)

        with self._lock:
            state = self._state
            self._enforce(
                "createIdentity",
                guards.identity_absent(state.identities, account),
                guards.non_empty("name", name),
                guards.non_empty("email", email),
            )

            now = self._clock()
            identity = Identity(
                account=account,
                name=name,
                email=email,
                profile_hash=profile_hash or "",
                created_at=now,
                updated_at=now,
                exists=True
            )
            state.identities[account] = identity
            state.credentials.setdefault(account, [])

            self.events.record(IdentityCreated(account=account, name=name))
            logger.info(f"Identity created for {account}")
            snapshot = identity.snapshot()

        self.events.dispatch()
        return snapshot

    def update_identity(
        self,
        caller: str,
        name: str = "",
        email: str = "",
        profile_hash: str = ""
    ) -> IdentitySnapshot:
        """
        Update the caller's own identity

        Empty values leave the corresponding field unchanged. updatedAt is
        refreshed on every successful call, even when nothing changed.

        Raises:
            NotFoundError: caller has no identity
        """
        account = self._caller("updateIdentity", caller)

        with self._lock:
            state = self._state
            self._enforce(
                "updateIdentity",
                guards.identity_present(state.identities, account),
            )

            identity = state.identities[account]
            changed = []
            if name:
                identity.name = name
                changed.append("name")
            if email:
                identity.email = email
                changed.append("email")
            if profile_hash:
                identity.profile_hash = profile_hash
                changed.append("profileHash")
            identity.updated_at = self._clock()

            for field_name in changed:
                self.events.record(IdentityUpdated(account=account, field_name=field_name))
            logger.info(f"Identity updated for {account} (fields: {changed or 'none'})")
            snapshot = identity.snapshot()

        self.events.dispatch()
        return snapshot

    def get_identity(self, account: str) -> IdentitySnapshot:
        """
        Raises:
            NotFoundError: no identity for account
        """
        key = lookup_account(account)
        with self._lock:
            guards.enforce(guards.identity_present(self._state.identities, key))
            return self._state.identities[key].snapshot()

    def check_identity_exists(self, account: str) -> bool:
        key = lookup_account(account)
        if key is None:
            return False
        with self._lock:
            identity = self._state.identities.get(key)
            return identity is not None and identity.exists

    # ==================== CREDENTIALS ====================

    def add_credential(
        self,
        caller: str,
        holder: str,
        credential_type: str,
        data_hash: str
    ) -> Credential:
        """
        Attach a new credential to `holder`

        Returns:
            Snapshot of the new credential, including its index

        Raises:
            UnauthorizedError: caller is not an authorized issuer
            NotFoundError: holder has no identity
            InvalidArgumentError: credential_type or data_hash is empty
        """
        issuer = self._caller("addCredential", caller)
        key = lookup_account(holder)

        with self._lock:
            state = self._state
            self._enforce(
                "addCredential",
                guards.is_issuer(state.issuers, issuer),
                guards.identity_present(state.identities, key, field="holder"),
                guards.non_empty("credentialType", credential_type),
                guards.non_empty("dataHash", data_hash),
            )

            credentials = state.credentials.setdefault(key, [])
            credential = Credential(
                credential_type=credential_type,
                data_hash=data_hash,
                issuer=issuer,
                issued_at=self._clock(),
                is_valid=True,
                index=len(credentials)
            )
            credentials.append(credential)

            self.events.record(CredentialAdded(
                holder=key,
                issuer=issuer,
                credential_type=credential_type
            ))
            logger.info(f"Credential #{credential.index} ({credential_type}) added to {key} by {issuer}")
            issued = credential.copy()

        self.events.dispatch()
        return issued

    def revoke_credential(self, caller: str, holder: str, index: int) -> Credential:
        """
        Permanently invalidate the credential at `index` of `holder`

        Raises:
            NotFoundError: holder has no identity
            OutOfRangeError: no credential at index
            UnauthorizedError: caller did not issue the credential
            AlreadyRevokedError: credential is already invalid
        """
        revoker = self._caller("revokeCredential", caller)
        key = lookup_account(holder)

        with self._lock:
            state = self._state
            credentials = state.credentials.get(key, []) if key else []
            self._enforce(
                "revokeCredential",
                guards.identity_present(state.identities, key, field="holder"),
                guards.index_in_range(credentials, index),
                guards.is_original_issuer(credentials, index, revoker),
                guards.still_valid(credentials, index),
            )

            credential = credentials[index]
            credential.is_valid = False

            self.events.record(CredentialRevoked(
                holder=key,
                issuer=credential.issuer,
                credential_type=credential.credential_type
            ))
            logger.info(f"Credential #{index} of {key} revoked by {revoker}")
            revoked = credential.copy()

        self.events.dispatch()
        return revoked

    def get_user_credentials(self, account: str) -> CredentialColumns:
        """
        All credentials of `account`, revoked ones included, in issue order

        Raises:
            NotFoundError: no identity for account
        """
        key = lookup_account(account)
        with self._lock:
            guards.enforce(guards.identity_present(self._state.identities, key))
            return CredentialColumns.from_credentials(self._state.credentials.get(key, []))

    def get_credential(self, account: str, index: int) -> Credential:
        key = lookup_account(account)
        with self._lock:
            credentials = self._state.credentials.get(key, []) if key else []
            guards.enforce(
                guards.identity_present(self._state.identities, key),
                guards.index_in_range(credentials, index),
            )
            return credentials[index].copy()

    def get_credential_count(self, account: str) -> int:
        key = lookup_account(account)
        if key is None:
            return 0
        with self._lock:
            return len(self._state.credentials.get(key, []))

    # ==================== ISSUERS ====================

    def add_authorized_issuer(self, caller: str, issuer: str) -> None:
        """
        Raises:
            UnauthorizedError: caller is not the owner
            InvalidArgumentError: issuer is malformed or the zero address
        """
        caller_account = self._caller("addAuthorizedIssuer", caller)
        key = lookup_account(issuer)

        with self._lock:
            state = self._state
            self._enforce(
                "addAuthorizedIssuer",
                guards.is_owner(state.owner, caller_account),
                guards.valid_account("issuer", key, issuer),
                guards.not_zero_account("issuer", key),
            )
            state.issuers[key] = True
            logger.info(f"Issuer authorized: {key}")

    def remove_authorized_issuer(self, caller: str, issuer: str) -> None:
        """
        Removing an account that is not an issuer succeeds and changes nothing.
        Credentials already issued by the account stay valid.

        Raises:
            UnauthorizedError: caller is not the owner
            InvalidArgumentError: issuer is malformed
        """
        caller_account = self._caller("removeAuthorizedIssuer", caller)
        key = lookup_account(issuer)

        with self._lock:
            state = self._state
            self._enforce(
                "removeAuthorizedIssuer",
                guards.is_owner(state.owner, caller_account),
                guards.valid_account("issuer", key, issuer),
            )
            if state.issuers.pop(key, False):
                logger.info(f"Issuer removed: {key}")

    def is_authorized_issuer(self, account: str) -> bool:
        key = lookup_account(account)
        if key is None:
            return False
        with self._lock:
            return self._state.issuers.get(key, False)

    def list_issuers(self) -> List[str]:
        with self._lock:
            return sorted(k for k, v in self._state.issuers.items() if v)

    # ==================== STATISTICS ====================

    def get_statistics(self) -> Dict[str, Any]:
        """Counts over a single consistent view of the registry"""
        with self._lock:
            state = self._state
            total = sum(len(creds) for creds in state.credentials.values())
            revoked = sum(
                1 for creds in state.credentials.values()
                for c in creds if not c.is_valid
            )
            return {
                "identities": sum(1 for i in state.identities.values() if i.exists),
                "credentials": total,
                "revoked": revoked,
                "active": total - revoked,
                "issuers": sum(1 for v in state.issuers.values() if v)
            }
