"""
Identity Registry API Tests
===========================

Kiểm thử các endpoint HTTP của registry
"""

import pytest
from eth_account import Account
from fastapi.testclient import TestClient

from backend import api
from identity_registry import RegistryService, RegistrySettings, sign_call


OWNER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OWNER = Account.from_key(OWNER_KEY).address
ALICE = "0x1111111111111111111111111111111111111111"
BOB = "0x2222222222222222222222222222222222222222"
CAROL = "0x3333333333333333333333333333333333333333"
DAVE = "0x4444444444444444444444444444444444444444"


@pytest.fixture
def client():
    with TestClient(api.app) as test_client:
        # fresh registry per test, replacing the one built at startup
        api.registry_service = RegistryService(settings=RegistrySettings(OWNER_PRIVATE_KEY=OWNER_KEY))
        yield test_client


def as_account(account):
    return {"X-Account": account}


class TestIdentityEndpoints:
    """Test identity endpoints"""

    def test_create_and_get(self, client):
        """Test identity create and read"""
        response = client.post(
            "/api/identity",
            json={"name": "Alice", "email": "a@x.com", "profileHash": "Qm1"},
            headers=as_account(ALICE)
        )
        assert response.status_code == 201

        body = client.get(f"/api/identity/{ALICE}").json()
        assert body["name"] == "Alice"
        assert body["profileHash"] == "Qm1"
        assert body["createdAt"] == body["updatedAt"]

        exists = client.get(f"/api/identity/{ALICE}/exists").json()
        assert exists["exists"] == True
        print(f"✅ Identity created via API: {ALICE}")

    def test_create_twice_conflict(self, client):
        """Test duplicate creation returns 409"""
        payload = {"name": "Alice", "email": "a@x.com"}
        client.post("/api/identity", json=payload, headers=as_account(ALICE))
        response = client.post("/api/identity", json=payload, headers=as_account(ALICE))

        assert response.status_code == 409
        assert response.json()["detail"]["kind"] == "AlreadyExists"

    def test_create_empty_name(self, client):
        """Test empty name returns 400"""
        response = client.post("/api/identity", json={"email": "a@x.com"}, headers=as_account(ALICE))
        assert response.status_code == 400
        assert response.json()["detail"]["field"] == "name"

    def test_missing_caller(self, client):
        """Test missing caller returns 401"""
        response = client.post("/api/identity", json={"name": "Alice", "email": "a@x.com"})
        assert response.status_code == 401

    def test_update(self, client):
        """Test identity update"""
        client.post("/api/identity", json={"name": "Alice", "email": "a@x.com"}, headers=as_account(ALICE))
        response = client.put("/api/identity", json={"email": "new@x.com"}, headers=as_account(ALICE))

        assert response.status_code == 200
        assert response.json()["name"] == "Alice"
        assert response.json()["email"] == "new@x.com"

    def test_update_unknown(self, client):
        """Test updating unknown identity returns 404"""
        response = client.put("/api/identity", json={"name": "Bob"}, headers=as_account(BOB))
        assert response.status_code == 404

    def test_get_unknown(self, client):
        """Test reading unknown identity"""
        assert client.get(f"/api/identity/{BOB}").status_code == 404
        assert client.get(f"/api/identity/{BOB}/exists").json()["exists"] == False


class TestCredentialEndpoints:
    """Test credential endpoints"""

    def setup_identity(self, client):
        client.post(
            "/api/identity",
            json={"name": "Alice", "email": "a@x.com", "profileHash": "Qm1"},
            headers=as_account(ALICE)
        )

    def test_issue_and_revoke(self, client):
        """Test credential lifecycle"""
        self.setup_identity(client)

        response = client.post(
            f"/api/credentials/{ALICE}",
            json={"credentialType": "degree", "dataHash": "Qm2"},
            headers=as_account(OWNER)
        )
        assert response.status_code == 201
        assert response.json()["index"] == 0

        assert client.get(f"/api/credentials/{ALICE}/count").json()["count"] == 1

        response = client.post(f"/api/credentials/{ALICE}/0/revoke", headers=as_account(OWNER))
        assert response.status_code == 200
        assert response.json()["isValid"] == False

        response = client.post(f"/api/credentials/{ALICE}/0/revoke", headers=as_account(OWNER))
        assert response.status_code == 409
        assert response.json()["detail"]["kind"] == "AlreadyRevoked"

        columns = client.get(f"/api/credentials/{ALICE}").json()
        assert columns["types"] == ["degree"]
        assert columns["issuers"] == [OWNER]
        assert columns["validities"] == [False]
        print(f"✅ Credential lifecycle via API")

    def test_non_issuer_forbidden(self, client):
        """Test non-issuer gets 403"""
        self.setup_identity(client)
        response = client.post(
            f"/api/credentials/{ALICE}",
            json={"credentialType": "degree", "dataHash": "Qm2"},
            headers=as_account(BOB)
        )
        assert response.status_code == 403

    def test_holder_without_identity(self, client):
        """Test holder without identity returns 404"""
        response = client.post(
            f"/api/credentials/{DAVE}",
            json={"credentialType": "degree", "dataHash": "Qm2"},
            headers=as_account(OWNER)
        )
        assert response.status_code == 404
        assert response.json()["detail"]["field"] == "holder"

    def test_revoke_out_of_range(self, client):
        """Test out-of-range revocation"""
        self.setup_identity(client)
        response = client.post(f"/api/credentials/{ALICE}/3/revoke", headers=as_account(OWNER))
        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "OutOfRange"

    def test_get_single_credential(self, client):
        """Test single credential lookup"""
        self.setup_identity(client)
        client.post(
            f"/api/credentials/{ALICE}",
            json={"credentialType": "degree", "dataHash": "Qm2"},
            headers=as_account(OWNER)
        )
        assert client.get(f"/api/credentials/{ALICE}/0").json()["dataHash"] == "Qm2"

    def test_count_for_unknown(self, client):
        """Test credential reads for unknown account"""
        assert client.get(f"/api/credentials/{DAVE}/count").json()["count"] == 0
        assert client.get(f"/api/credentials/{DAVE}").status_code == 404


class TestIssuerEndpoints:
    """Test issuer management endpoints"""

    def test_owner_adds_and_removes(self, client):
        """Test owner adds and removes issuers"""
        response = client.post(f"/api/issuers/{CAROL}", headers=as_account(OWNER))
        assert response.status_code == 200
        assert client.get(f"/api/issuers/{CAROL}").json()["authorized"] == True

        response = client.delete(f"/api/issuers/{CAROL}", headers=as_account(OWNER))
        assert response.status_code == 200
        assert client.get(f"/api/issuers/{CAROL}").json()["authorized"] == False

    def test_non_owner_forbidden(self, client):
        """Test non-owner gets 403"""
        response = client.post(f"/api/issuers/{CAROL}", headers=as_account(BOB))
        assert response.status_code == 403
        assert client.get(f"/api/issuers/{CAROL}").json()["authorized"] == False

    def test_zero_address(self, client):
        """Test zero address returns 400"""
        response = client.post(
            "/api/issuers/0x0000000000000000000000000000000000000000",
            headers=as_account(OWNER)
        )
        assert response.status_code == 400


class TestSignedCalls:
    """Test signed caller proofs"""

    def test_signature_required(self, client):
        """Test signed calls"""
        api.registry_service = RegistryService(
            settings=RegistrySettings(OWNER_PRIVATE_KEY=OWNER_KEY, REQUIRE_SIGNED_CALLS=True)
        )
        user = Account.create()
        payload = {"name": "User", "email": "u@x.com"}

        response = client.post("/api/identity", json=payload, headers=as_account(user.address))
        assert response.status_code == 401

        headers = {
            "X-Account": user.address,
            "X-Signature": sign_call(user.key.hex(), "createIdentity")
        }
        response = client.post("/api/identity", json=payload, headers=headers)
        assert response.status_code == 201

        # a signature for one operation does not authorize another
        response = client.put("/api/identity", json=payload, headers=headers)
        assert response.status_code == 401


class TestInfoEndpoints:
    """Test events and registry info"""

    def test_events(self, client):
        """Test event history endpoint"""
        client.post("/api/identity", json={"name": "Alice", "email": "a@x.com"}, headers=as_account(ALICE))
        client.put("/api/identity", json={"name": "Al", "profileHash": "Qm"}, headers=as_account(ALICE))

        events = client.get("/api/events").json()["events"]
        assert [e["event"] for e in events] == ["IdentityCreated", "IdentityUpdated", "IdentityUpdated"]
        assert [e.get("field") for e in events[1:]] == ["name", "profileHash"]

        assert len(client.get("/api/events", params={"since": 1}).json()["events"]) == 2
        assert client.get("/api/events", params={"account": BOB}).json()["events"] == []
        assert client.get("/api/events", params={"account": "junk"}).json()["events"] == []

    def test_info(self, client):
        """Test registry info endpoint"""
        info = client.get("/api/registry/info").json()
        assert info["available"] == True
        assert info["statistics"]["owner"] == OWNER
        assert info["statistics"]["registry"]["issuers"] == 1

    def test_operation_ids(self, client):
        """Test operation ids match the public operation names"""
        schema = client.get("/openapi.json").json()
        operation_ids = {
            op["operationId"]
            for path in schema["paths"].values()
            for op in path.values()
        }
        for name in [
            "createIdentity", "updateIdentity", "addCredential", "revokeCredential",
            "getIdentity", "getUserCredentials", "addAuthorizedIssuer",
            "removeAuthorizedIssuer", "checkIdentityExists", "getCredentialCount"
        ]:
            assert name in operation_ids
