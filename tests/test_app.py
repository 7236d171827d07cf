"""Tests for the registration/login API in stock_finetune/app.py"""
from unittest.mock import MagicMock

import bcrypt
import pytest

from stock_finetune.app import create_app

ALICE = {"name": "Alice", "email": "alice@example.com", "password": "s3cret-pass"}


def _register(client, **overrides):
    return client.post("/register", json={**ALICE, **overrides})


class TestRegister:

    def test_success_returns_201_and_stores_hash(self, client, user_store):
        resp = _register(client)
        assert resp.status_code == 201
        assert resp.get_json()["message"] == "User registered successfully."
        user = user_store.find_by_email(ALICE["email"])
        assert user["name"] == "Alice"
        assert user["password_hash"] != ALICE["password"]
        assert bcrypt.checkpw(ALICE["password"].encode(), user["password_hash"].encode())

    def test_hash_uses_cost_factor_ten(self, client, user_store):
        _register(client)
        assert user_store.find_by_email(ALICE["email"])["password_hash"].startswith("$2b$10$")

    @pytest.mark.parametrize("field", ["name", "email", "password"])
    def test_missing_field_returns_400(self, client, user_store, field):
        body = {k: v for k, v in ALICE.items() if k != field}
        resp = client.post("/register", json=body)
        assert resp.status_code == 400
        assert user_store.count() == 0

    def test_missing_password_never_touches_store(self, settings):
        store = MagicMock()
        client = create_app(settings, store=store).test_client()
        resp = client.post("/register", json={"name": "Bob", "email": "bob@example.com"})
        assert resp.status_code == 400
        store.find_by_email.assert_not_called()
        store.create_user.assert_not_called()

    def test_empty_body_returns_400(self, client):
        assert client.post("/register", data="not json").status_code == 400

    def test_duplicate_email_returns_409(self, client, user_store):
        assert _register(client).status_code == 201
        resp = _register(client, name="Alice Again", password="other")
        assert resp.status_code == 409
        assert user_store.count() == 1

    def test_store_failure_returns_generic_500(self, settings):
        store = MagicMock()
        store.find_by_email.side_effect = RuntimeError("db password is hunter2")
        client = create_app(settings, store=store).test_client()
        resp = client.post("/register", json=ALICE)
        assert resp.status_code == 500
        assert resp.get_json() == {"message": "Error registering user"}
        assert "hunter2" not in resp.get_data(as_text=True)


class TestLogin:

    def test_login_returns_token(self, client):
        _register(client)
        resp = client.post("/login", json={"email": ALICE["email"], "password": ALICE["password"]})
        assert resp.status_code == 200
        assert resp.get_json()["access_token"]

    def test_wrong_password_returns_401(self, client):
        _register(client)
        resp = client.post("/login", json={"email": ALICE["email"], "password": "nope"})
        assert resp.status_code == 401

    def test_unknown_email_returns_401(self, client):
        resp = client.post("/login", json={"email": "ghost@example.com", "password": "x"})
        assert resp.status_code == 401

    def test_missing_fields_returns_400(self, client):
        assert client.post("/login", json={"email": ALICE["email"]}).status_code == 400

    def test_token_unlocks_me(self, client):
        _register(client)
        token = client.post("/login", json={"email": ALICE["email"], "password": ALICE["password"]}).get_json()["access_token"]
        resp = client.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.get_json() == {"name": "Alice", "email": ALICE["email"]}

    def test_me_requires_token(self, client):
        assert client.get("/me").status_code == 401
