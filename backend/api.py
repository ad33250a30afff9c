import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import uvicorn

from identity_registry import RegistryService, RegistryError, CallerAuthenticationError, lookup_account
from identity_registry.config import settings
from identity_registry.errors import (
    AlreadyExistsError,
    NotFoundError,
    UnauthorizedError,
    InvalidArgumentError,
    OutOfRangeError,
    AlreadyRevokedError,
)

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger("IdentityRegistryAPI")

STATUS_BY_ERROR = {
    AlreadyExistsError: 409,
    NotFoundError: 404,
    UnauthorizedError: 403,
    InvalidArgumentError: 400,
    OutOfRangeError: 404,
    AlreadyRevokedError: 409,
}

registry_service = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global registry_service
    logger.info("Starting Identity Registry API...")
    registry_service = RegistryService(settings=settings)
    logger.info(f"Registry initialized (Owner: {registry_service.owner})")
    yield
    logger.info("Shutting down...")


app = FastAPI(title="Identity Registry API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RegistryError)
async def registry_error_handler(request, exc: RegistryError):
    return JSONResponse(
        status_code=STATUS_BY_ERROR.get(type(exc), 400),
        content={"detail": exc.to_dict()}
    )


class IdentityRequest(BaseModel):
    name: str = ""
    email: str = ""
    profileHash: str = ""


class CredentialRequest(BaseModel):
    credentialType: str
    dataHash: str


def _service() -> RegistryService:
    if registry_service is None:
        raise HTTPException(status_code=503, detail="Registry not initialized")
    return registry_service


def _caller(operation: str, account: Optional[str], signature: Optional[str]) -> str:
    try:
        return _service().authenticate(account, operation, signature)
    except CallerAuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))


# ============================================================
# IDENTITY ENDPOINTS
# ============================================================

@app.post("/api/identity", operation_id="createIdentity", status_code=201)
async def create_identity(
    body: IdentityRequest,
    x_account: Optional[str] = Header(None),
    x_signature: Optional[str] = Header(None)
):
    """Create the caller's identity"""
    caller = _caller("createIdentity", x_account, x_signature)
    identity = _service().registry.create_identity(caller, body.name, body.email, body.profileHash)
    return identity.to_dict()


@app.put("/api/identity", operation_id="updateIdentity")
async def update_identity(
    body: IdentityRequest,
    x_account: Optional[str] = Header(None),
    x_signature: Optional[str] = Header(None)
):
    """
    Update the caller's identity

    Empty fields are left unchanged.
    """
    caller = _caller("updateIdentity", x_account, x_signature)
    identity = _service().registry.update_identity(caller, body.name, body.email, body.profileHash)
    return identity.to_dict()


@app.get("/api/identity/{account}", operation_id="getIdentity")
async def get_identity(account: str):
    return _service().registry.get_identity(account).to_dict()


@app.get("/api/identity/{account}/exists", operation_id="checkIdentityExists")
async def check_identity_exists(account: str):
    return {
        "account": account,
        "exists": _service().registry.check_identity_exists(account)
    }


# ============================================================
# CREDENTIAL ENDPOINTS
# ============================================================

@app.post("/api/credentials/{holder}", operation_id="addCredential", status_code=201)
async def add_credential(
    holder: str,
    body: CredentialRequest,
    x_account: Optional[str] = Header(None),
    x_signature: Optional[str] = Header(None)
):
    """Attach a credential to holder's identity (authorized issuers only)"""
    caller = _caller("addCredential", x_account, x_signature)
    credential = _service().registry.add_credential(caller, holder, body.credentialType, body.dataHash)
    return credential.to_dict()


@app.post("/api/credentials/{holder}/{index}/revoke", operation_id="revokeCredential")
async def revoke_credential(
    holder: str,
    index: int,
    x_account: Optional[str] = Header(None),
    x_signature: Optional[str] = Header(None)
):
    """Revoke a credential (original issuer only, permanent)"""
    caller = _caller("revokeCredential", x_account, x_signature)
    credential = _service().registry.revoke_credential(caller, holder, index)
    return credential.to_dict()


@app.get("/api/credentials/{account}", operation_id="getUserCredentials")
async def get_user_credentials(account: str):
    """All credentials of an account as index-aligned arrays"""
    columns = _service().registry.get_user_credentials(account)
    result = columns.to_dict()
    result["account"] = account
    return result


@app.get("/api/credentials/{account}/count", operation_id="getCredentialCount")
async def get_credential_count(account: str):
    return {
        "account": account,
        "count": _service().registry.get_credential_count(account)
    }


@app.get("/api/credentials/{account}/{index}", operation_id="getCredential")
async def get_credential(account: str, index: int):
    return _service().registry.get_credential(account, index).to_dict()


# ============================================================
# ISSUER ENDPOINTS (owner only)
# ============================================================

@app.post("/api/issuers/{issuer}", operation_id="addAuthorizedIssuer")
async def add_authorized_issuer(
    issuer: str,
    x_account: Optional[str] = Header(None),
    x_signature: Optional[str] = Header(None)
):
    caller = _caller("addAuthorizedIssuer", x_account, x_signature)
    _service().registry.add_authorized_issuer(caller, issuer)
    return {"issuer": issuer, "authorized": True}


@app.delete("/api/issuers/{issuer}", operation_id="removeAuthorizedIssuer")
async def remove_authorized_issuer(
    issuer: str,
    x_account: Optional[str] = Header(None),
    x_signature: Optional[str] = Header(None)
):
    caller = _caller("removeAuthorizedIssuer", x_account, x_signature)
    _service().registry.remove_authorized_issuer(caller, issuer)
    return {"issuer": issuer, "authorized": False}


@app.get("/api/issuers/{issuer}", operation_id="isAuthorizedIssuer")
async def is_authorized_issuer(issuer: str):
    return {
        "issuer": issuer,
        "authorized": _service().registry.is_authorized_issuer(issuer)
    }


# ============================================================
# EVENTS & INFO
# ============================================================

@app.get("/api/events", operation_id="getEvents")
async def get_events(account: Optional[str] = None, since: int = 0):
    """Registry notifications in emission order"""
    key = None
    if account:
        key = lookup_account(account)
        if key is None:
            return {"events": []}
    events = _service().events.history(account=key, since=since)
    return {"events": [e.to_dict() for e in events]}


@app.get("/api/registry/info", operation_id="getRegistryInfo")
async def get_registry_info():
    """Get registry information"""
    if registry_service is None:
        return {
            "available": False,
            "message": "Registry not initialized"
        }

    return {
        "available": True,
        "statistics": registry_service.get_statistics()
    }


if __name__ == "__main__":
    uvicorn.run("backend.api:app", host=settings.API_HOST, port=settings.API_PORT)
