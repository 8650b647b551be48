from fastapi import status

from household_ledger.core.constants import DELETE_ACCOUNT_CONFIRM_TEXT

from conftest import create_test_token, headers_for


def signed_in(client, account_id: str) -> dict:
    """Authenticate once so the account exists, return its headers"""
    headers = headers_for(account_id, f"{account_id}@example.com")
    response = client.get("/api/accounts/me", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    return headers


def create_ledger(client, headers: dict, name: str = "Household") -> str:
    response = client.post("/api/ledgers", json={"name": name}, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["id"]


def invite(client, headers: dict, ledger_id: str, account_id: str, role: str = "member"):
    return client.post(
        f"/api/ledgers/{ledger_id}/members",
        json={"account_id": account_id, "role": role},
        headers=headers,
    )


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").status_code == status.HTTP_200_OK


class TestAuthentication:
    """Test bearer token handling"""

    def test_missing_token(self, client):
        response = client.get("/api/accounts/me")

        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)

    def test_expired_token(self, client):
        token = create_test_token("alice", expired=True)

        response = client.get("/api/accounts/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_tampered_token(self, client):
        token = create_test_token("alice") + "x"

        response = client.get("/api/accounts/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_first_request_creates_account(self, client):
        response = client.get("/api/accounts/me", headers=headers_for("alice", "Alice@Example.com"))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == "alice"
        assert data["email"] == "alice@example.com"
        assert data["status"] == "active"
        assert data["owned_ledger_count"] == 0


class TestLedgerEndpoints:
    """Test ledger and membership endpoints"""

    def test_create_and_list(self, client):
        alice = signed_in(client, "alice")
        ledger_id = create_ledger(client, alice)

        response = client.get("/api/ledgers", headers=alice)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()[0]["id"] == ledger_id
        assert response.json()[0]["role"] == "owner"

    def test_invite_and_list_members(self, client):
        alice = signed_in(client, "alice")
        signed_in(client, "bob")
        ledger_id = create_ledger(client, alice)

        response = invite(client, alice, ledger_id, "bob", "admin")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["role"] == "admin"
        members = client.get(f"/api/ledgers/{ledger_id}/members", headers=alice).json()
        assert [m["role"] for m in members] == ["owner", "admin"]

    def test_invite_by_email(self, client):
        alice = signed_in(client, "alice")
        signed_in(client, "bob")
        ledger_id = create_ledger(client, alice)

        response = client.post(
            f"/api/ledgers/{ledger_id}/members",
            json={"email": "bob@example.com", "role": "viewer"},
            headers=alice,
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["account_id"] == "bob"

    def test_invite_errors(self, client):
        alice = signed_in(client, "alice")
        bob = signed_in(client, "bob")
        signed_in(client, "carol")
        ledger_id = create_ledger(client, alice)
        invite(client, alice, ledger_id, "bob", "admin")

        over_grant = invite(client, bob, ledger_id, "carol", "admin")
        duplicate = invite(client, alice, ledger_id, "bob")
        unknown = invite(client, alice, ledger_id, "nobody")

        assert over_grant.status_code == status.HTTP_403_FORBIDDEN
        assert over_grant.json()["code"] == "insufficient_role"
        assert duplicate.status_code == status.HTTP_400_BAD_REQUEST
        assert duplicate.json()["code"] == "already_member"
        assert unknown.status_code == status.HTTP_404_NOT_FOUND

    def test_non_member_is_forbidden(self, client):
        alice = signed_in(client, "alice")
        erin = signed_in(client, "erin")
        ledger_id = create_ledger(client, alice)

        response = client.get(f"/api/ledgers/{ledger_id}", headers=erin)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "unauthorized"

    def test_owner_cannot_be_removed_or_leave(self, client):
        alice = signed_in(client, "alice")
        bob = signed_in(client, "bob")
        ledger_id = create_ledger(client, alice)
        invite(client, alice, ledger_id, "bob", "admin")

        remove = client.delete(f"/api/ledgers/{ledger_id}/members/alice", headers=bob)
        leave = client.post(f"/api/ledgers/{ledger_id}/leave", headers=alice)
        demote = client.patch(
            f"/api/ledgers/{ledger_id}/members/alice/role", json={"role": "member"}, headers=bob
        )

        assert remove.json()["code"] == "cannot_remove_sole_owner"
        assert leave.json()["code"] == "cannot_leave_as_sole_owner"
        assert demote.json()["code"] == "cannot_demote_owner"
        assert {remove.status_code, leave.status_code, demote.status_code} == {status.HTTP_403_FORBIDDEN}

    def test_transfer_ownership(self, client):
        alice = signed_in(client, "alice")
        signed_in(client, "bob")
        ledger_id = create_ledger(client, alice)
        invite(client, alice, ledger_id, "bob")

        response = client.post(
            f"/api/ledgers/{ledger_id}/transfer", json={"new_owner_id": "bob"}, headers=alice
        )

        assert response.status_code == status.HTTP_200_OK
        roles = {m["account_id"]: m["role"] for m in response.json()}
        assert roles == {"bob": "owner", "alice": "admin"}

    def test_remove_and_leave(self, client):
        alice = signed_in(client, "alice")
        bob = signed_in(client, "bob")
        signed_in(client, "carol")
        ledger_id = create_ledger(client, alice)
        invite(client, alice, ledger_id, "bob")
        invite(client, alice, ledger_id, "carol")

        removed = client.delete(f"/api/ledgers/{ledger_id}/members/carol", headers=alice)
        left = client.post(f"/api/ledgers/{ledger_id}/leave", headers=bob)

        assert removed.status_code == status.HTTP_200_OK
        assert removed.json()["removed_account_id"] == "carol"
        assert left.status_code == status.HTTP_204_NO_CONTENT
        members = client.get(f"/api/ledgers/{ledger_id}/members", headers=alice).json()
        assert [m["account_id"] for m in members] == ["alice"]

    def test_delete_and_restore_ledger(self, client):
        alice = signed_in(client, "alice")
        ledger_id = create_ledger(client, alice)

        deleted = client.delete(f"/api/ledgers/{ledger_id}", headers=alice)
        listed = client.get("/api/ledgers", headers=alice).json()
        restored = client.post(f"/api/ledgers/{ledger_id}/restore", headers=alice)

        assert deleted.status_code == status.HTTP_204_NO_CONTENT
        assert listed == []
        assert restored.status_code == status.HTTP_200_OK
        assert restored.json()["deleted_at"] is None


class TestAccountDeletionEndpoints:
    """Test the deletion workflow over HTTP"""

    def test_wrong_confirm_text(self, client):
        alice = signed_in(client, "alice")

        response = client.post("/api/accounts/me/deletion", json={"confirm_text": "bye"}, headers=alice)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "confirm_text_mismatch"

    def test_owner_is_refused(self, client):
        alice = signed_in(client, "alice")
        create_ledger(client, alice)

        response = client.post(
            "/api/accounts/me/deletion", json={"confirm_text": DELETE_ACCOUNT_CONFIRM_TEXT}, headers=alice
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "has_owned_ledgers"
        assert response.json()["owned_ledger_count"] == 1

    def test_deletion_then_restore_within_grace(self, client, clock):
        alice = signed_in(client, "alice")
        bob = signed_in(client, "bob")
        ledger_id = create_ledger(client, alice)
        invite(client, alice, ledger_id, "bob")

        response = client.post(
            "/api/accounts/me/deletion", json={"confirm_text": DELETE_ACCOUNT_CONFIRM_TEXT}, headers=bob
        )

        assert response.status_code == status.HTTP_202_ACCEPTED
        assert response.json()["status"] == "pending_deletion"
        assert response.json()["memberships_removed"] == 1

        deletion_status = client.get("/api/accounts/me/deletion", headers=bob)
        assert deletion_status.json()["status"] == "pending_deletion"

        clock.advance(days=29)
        profile = client.get("/api/accounts/me", headers=bob)

        assert profile.status_code == status.HTTP_200_OK
        assert profile.json()["status"] == "active"
        assert profile.json()["shared_ledger_count"] == 0

    def test_deletion_then_gone_after_grace(self, client, clock):
        erin = signed_in(client, "erin")
        client.post(
            "/api/accounts/me/deletion", json={"confirm_text": DELETE_ACCOUNT_CONFIRM_TEXT}, headers=erin
        )

        clock.advance(days=31)
        response = client.get("/api/accounts/me", headers=erin)

        assert response.status_code == status.HTTP_410_GONE
        assert response.json()["code"] == "account_permanently_deleted"
        assert client.get("/api/accounts/me/deletion", headers=erin).json()["status"] == "deleted"


class TestContentEndpoints:
    """Test category and transaction endpoints"""

    def test_transaction_permissions(self, client):
        alice = signed_in(client, "alice")
        carol = signed_in(client, "carol")
        dave = signed_in(client, "dave")
        ledger_id = create_ledger(client, alice)
        invite(client, alice, ledger_id, "carol", "member")
        invite(client, alice, ledger_id, "dave", "viewer")
        category_id = client.get(f"/api/ledgers/{ledger_id}/categories", headers=dave).json()[0]["id"]
        payload = {
            "category_id": category_id,
            "amount": 8500,
            "title": "Coffee beans",
            "transaction_date": "2026-03-01",
        }

        created = client.post(f"/api/ledgers/{ledger_id}/transactions", json=payload, headers=carol)
        by_viewer = client.post(f"/api/ledgers/{ledger_id}/transactions", json=payload, headers=dave)

        assert created.status_code == status.HTTP_201_CREATED
        assert created.json()["created_by"] == "carol"
        assert by_viewer.status_code == status.HTTP_403_FORBIDDEN

        transaction_id = created.json()["id"]
        edit_by_viewer = client.patch(
            f"/api/ledgers/{ledger_id}/transactions/{transaction_id}", json={"amount": 1}, headers=dave
        )
        edit_by_owner = client.patch(
            f"/api/ledgers/{ledger_id}/transactions/{transaction_id}", json={"amount": 9000}, headers=alice
        )
        assert edit_by_viewer.status_code == status.HTTP_403_FORBIDDEN
        assert edit_by_owner.json()["amount"] == 9000

        listed = client.get(f"/api/ledgers/{ledger_id}/transactions", headers=dave)
        assert listed.json()["total"] == 1

    def test_category_delete_restore(self, client):
        alice = signed_in(client, "alice")
        ledger_id = create_ledger(client, alice)
        created = client.post(
            f"/api/ledgers/{ledger_id}/categories",
            json={"name": "Pets", "type": "expense"},
            headers=alice,
        )
        category_id = created.json()["id"]

        deleted = client.delete(f"/api/ledgers/{ledger_id}/categories/{category_id}", headers=alice)
        active = client.get(f"/api/ledgers/{ledger_id}/categories", headers=alice).json()
        restored = client.post(f"/api/ledgers/{ledger_id}/categories/{category_id}/restore", headers=alice)

        assert created.status_code == status.HTTP_201_CREATED
        assert deleted.status_code == status.HTTP_204_NO_CONTENT
        assert category_id not in [c["id"] for c in active]
        assert restored.json()["deleted_at"] is None

    def test_budget_requires_month_for_monthly(self, client):
        alice = signed_in(client, "alice")
        ledger_id = create_ledger(client, alice)
        category_id = client.get(f"/api/ledgers/{ledger_id}/categories", headers=alice).json()[0]["id"]

        response = client.post(
            f"/api/ledgers/{ledger_id}/budgets",
            json={"category_id": category_id, "amount": 1000, "year": 2026},
            headers=alice,
        )

        assert response.status_code == 422
