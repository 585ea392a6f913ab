"""
End-to-end tests through the HTTP boundary (FastAPI TestClient).
"""
import base64

import pytest

from models.vault_entry import VaultEntry


def _register(client, email="a@x.com", password="pw1"):
    return client.post("/auth/register", json={"email": email, "password": password})


def _login(client, email="a@x.com", password="pw1"):
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def _add(client, headers, site="Bank", link="", username="alice", password="secret123"):
    return client.post(
        "/vault/entries",
        json={"site": site, "link": link, "username": username, "plaintext_password": password},
        headers=headers,
    )


# --- Full walkthrough ---

class TestWalkthrough:
    def test_register_login_add_reveal_delete(self, client):
        assert _register(client).status_code == 201

        resp = client.post("/auth/login", json={"email": "a@x.com", "password": "wrong"})
        assert resp.status_code == 401

        headers = _login(client)

        resp = _add(client, headers)
        assert resp.status_code == 201
        entry_id = resp.json()["id"]

        resp = client.get(f"/vault/entries/{entry_id}/password", headers=headers)
        assert resp.status_code == 200
        assert resp.text == "secret123"
        assert resp.headers["content-type"].startswith("text/plain")

        assert client.delete(f"/vault/entries/{entry_id}", headers=headers).status_code == 204

        resp = client.get(f"/vault/entries/{entry_id}/password", headers=headers)
        assert resp.status_code == 404


# --- Auth endpoints ---

class TestAuthEndpoints:
    def test_register_response_has_no_secrets(self, client):
        body = _register(client).json()
        assert set(body) == {"id", "email"}
        assert body["email"] == "a@x.com"

    def test_duplicate_register_is_conflict(self, client):
        _register(client)
        assert _register(client, password="other").status_code == 409

    @pytest.mark.parametrize("payload", [
        {"email": "a@x.com"},
        {"password": "pw1"},
        {"email": "", "password": "pw1"},
        {},
    ])
    def test_register_missing_field(self, client, payload):
        assert client.post("/auth/register", json=payload).status_code == 422

    def test_login_failures_are_identical(self, client):
        _register(client)
        wrong_pw = client.post("/auth/login", json={"email": "a@x.com", "password": "nope"})
        unknown = client.post("/auth/login", json={"email": "zz@x.com", "password": "pw1"})
        assert wrong_pw.status_code == unknown.status_code == 401
        assert wrong_pw.json() == unknown.json() == {"detail": "Invalid credentials"}

    def test_me(self, client):
        _register(client)
        headers = _login(client)
        assert client.get("/auth/me", headers=headers).json()["email"] == "a@x.com"

    def test_logout_invalidates_session(self, client):
        _register(client)
        headers = _login(client)
        assert client.post("/auth/logout", headers=headers).status_code == 200
        assert client.get("/vault/entries", headers=headers).status_code == 401

    def test_logout_clears_cookie_with_login_attributes(self, client):
        _register(client)
        login = client.post("/auth/login", json={"email": "a@x.com", "password": "pw1"})
        logout = client.post("/auth/logout")
        set_cookie = login.headers["set-cookie"].lower()
        cleared = logout.headers["set-cookie"].lower()
        assert cleared.startswith("pwvault_session=")
        assert "max-age=0" in cleared
        for attribute in ("httponly", "samesite=lax", "path=/"):
            assert attribute in set_cookie
            assert attribute in cleared

    def test_logout_without_session_succeeds(self, client):
        assert client.post("/auth/logout").status_code == 200
        assert client.post("/auth/logout", headers={"Authorization": "Bearer junk"}).status_code == 200

    def test_cookie_session(self, client):
        _register(client)
        client.post("/auth/login", json={"email": "a@x.com", "password": "pw1"})
        assert client.get("/vault/entries").status_code == 200
        client.post("/auth/logout")
        assert client.get("/vault/entries").status_code == 401


# --- Vault endpoints ---

class TestVaultEndpoints:
    @pytest.mark.parametrize("method,path", [
        ("get", "/vault/entries"),
        ("post", "/vault/entries"),
        ("delete", "/vault/entries/1"),
        ("get", "/vault/entries/1/password"),
        ("get", "/auth/me"),
    ])
    def test_requires_session(self, client, method, path):
        resp = getattr(client, method)(path)
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_empty_username_creates_nothing(self, client, db):
        _register(client)
        headers = _login(client)
        resp = _add(client, headers, username="")
        assert resp.status_code == 422
        assert db.query(VaultEntry).count() == 0

    def test_listing_pages(self, client):
        _register(client)
        headers = _login(client)
        for n in range(1, 26):
            _add(client, headers, site=f"site-{n}", password=f"pw-{n}")

        page1 = client.get("/vault/entries", headers=headers).json()
        page2 = client.get("/vault/entries?page=2", headers=headers).json()

        assert page1["total_pages"] == page2["total_pages"] == 2
        assert page1["total"] == 25
        assert len(page1["entries"]) == 20
        assert len(page2["entries"]) == 5
        assert page1["entries"][0]["site"] == "site-25"
        assert page2["entries"][-1]["site"] == "site-1"

    def test_listing_has_metadata_only(self, client):
        _register(client)
        headers = _login(client)
        _add(client, headers, link="https://bank.example")
        entry = client.get("/vault/entries", headers=headers).json()["entries"][0]
        assert set(entry) == {"id", "site", "link", "username", "created_at"}
        assert "secret123" not in str(entry)

    @pytest.mark.parametrize("page", ["0", "-1", "abc", ""])
    def test_bad_page_falls_back_to_first(self, client, page):
        _register(client)
        headers = _login(client)
        _add(client, headers)
        body = client.get(f"/vault/entries?page={page}", headers=headers).json()
        assert body["page"] == 1
        assert len(body["entries"]) == 1

    def test_huge_page_is_empty(self, client):
        _register(client)
        headers = _login(client)
        _add(client, headers)
        resp = client.get("/vault/entries?page=99999999999999999999", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["entries"] == []
        assert resp.json()["total"] == 1

    def test_empty_vault_has_one_page(self, client):
        _register(client)
        headers = _login(client)
        body = client.get("/vault/entries", headers=headers).json()
        assert body == {"entries": [], "page": 1, "total_pages": 1, "total": 0}

    def test_cross_user_isolation(self, client):
        _register(client, "a@x.com", "pw1")
        _register(client, "b@x.com", "pw2")
        alice = _login(client, "a@x.com", "pw1")
        bob = _login(client, "b@x.com", "pw2")
        entry_id = _add(client, alice).json()["id"]

        assert client.get(f"/vault/entries/{entry_id}/password", headers=bob).status_code == 404
        assert client.delete(f"/vault/entries/{entry_id}", headers=bob).status_code == 204
        assert client.get("/vault/entries", headers=bob).json()["total"] == 0
        assert client.get(f"/vault/entries/{entry_id}/password", headers=alice).text == "secret123"

    def test_delete_unknown_entry(self, client):
        _register(client)
        headers = _login(client)
        assert client.delete("/vault/entries/424242", headers=headers).status_code == 204

    def test_huge_entry_id(self, client):
        _register(client)
        headers = _login(client)
        huge = "99999999999999999999"
        assert client.delete(f"/vault/entries/{huge}", headers=headers).status_code == 204
        assert client.get(f"/vault/entries/{huge}/password", headers=headers).status_code == 404

    def test_tampered_entry_is_server_error(self, client, db):
        _register(client)
        headers = _login(client)
        entry_id = _add(client, headers).json()["id"]

        row = db.get(VaultEntry, entry_id)
        raw = bytearray(base64.b64decode(row.cipher))
        raw[0] ^= 0x80
        row.cipher = base64.b64encode(bytes(raw)).decode("ascii")
        db.commit()

        resp = client.get(f"/vault/entries/{entry_id}/password", headers=headers)
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Decrypt error"}
        # The process keeps serving
        assert client.get("/health").json() == {"status": "ok"}


class TestStorageFailures:
    def test_transient_failure_is_503(self, client, app, monkeypatch):
        from core.errors import StoreUnavailable
        from vault.store import VaultEntryStore

        _register(client)
        headers = _login(client)

        def _unavailable(self, owner_id, page, page_size):
            raise StoreUnavailable()

        monkeypatch.setattr(VaultEntryStore, "list", _unavailable)
        resp = client.get("/vault/entries", headers=headers)
        assert resp.status_code == 503

    def test_unexpected_database_error_is_generic(self, client, monkeypatch):
        from sqlalchemy import exc as sa_exc
        from vault.store import VaultEntryStore

        _register(client)
        headers = _login(client)

        def _broken(self, owner_id, entry_id):
            raise sa_exc.ProgrammingError("SELECT secret_table", {}, Exception("no such table"))

        monkeypatch.setattr(VaultEntryStore, "reveal", _broken)
        resp = client.get("/vault/entries/1/password", headers=headers)
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Internal server error"}
