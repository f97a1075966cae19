"""
Account tests
=============
  - Password generation
  - Username and password changes (service and /account page)
  - Command line: argument parsing and the new-login prompt
"""

from __future__ import annotations

import string

import pytest

from app.cli import build_parser, prompt_new_login
from app.services.logins import (
    AccountError,
    authenticate,
    change_password,
    change_username,
    create_login,
    generate_password,
)
from tests.samples import PDF

pytestmark = pytest.mark.asyncio

PASSWORD = "Secret-Pass-123"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. Passwords
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestGeneratePassword:
    def test_character_classes(self):
        for _ in range(20):
            password = generate_password(16)
            assert len(password) == 16
            assert any(c in string.ascii_lowercase for c in password)
            assert any(c in string.ascii_uppercase for c in password)
            assert any(c in string.digits for c in password)
            assert any(c in "!@#$%*" for c in password)
            assert set(password) <= set(string.ascii_letters + string.digits + "!@#$%*")

    def test_random(self):
        assert generate_password() != generate_password()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. Account changes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestLogins:
    async def test_authenticate(self, db):
        login = await create_login(db, "carol", PASSWORD)
        await db.commit()
        info = await authenticate(db, "Carol", PASSWORD)
        assert info.id == login.user_id
        assert info.is_admin is False
        assert await authenticate(db, "carol", "wrong") is None
        assert await authenticate(db, "nobody", PASSWORD) is None

    async def test_duplicate_username(self, db):
        await create_login(db, "carol", PASSWORD)
        await db.commit()
        with pytest.raises(AccountError):
            await create_login(db, "CAROL", PASSWORD)


class TestChangeUsername:
    @pytest.mark.parametrize("username,message", [
        ("abc", "Username must contain at least 4 characters."),
        ("carol smith", "Username must only contain letters and numbers."),
        ("carol!", "Username must only contain letters and numbers."),
    ])
    async def test_rejected(self, db, username, message):
        login = await create_login(db, "carol", PASSWORD)
        with pytest.raises(AccountError, match=message):
            await change_username(db, login.user_id, username)

    async def test_taken(self, db):
        await create_login(db, "carol", PASSWORD)
        dave = await create_login(db, "dave", PASSWORD)
        await db.commit()
        with pytest.raises(AccountError, match="Username is already taken."):
            await change_username(db, dave.user_id, "CAROL")

    async def test_unknown_account(self, db):
        with pytest.raises(AccountError, match="Could not find account."):
            await change_username(db, "no-such-id", "carol2")

    async def test_changed(self, db):
        login = await create_login(db, "carol", PASSWORD)
        await change_username(db, login.user_id, " carol2 ")
        await db.commit()
        assert (await authenticate(db, "carol2", PASSWORD)).id == login.user_id


class TestChangePassword:
    @pytest.mark.parametrize("current,new,repeat,message", [
        (PASSWORD, "NewPassword1", "NewPassword2", "Passwords did not match."),
        (PASSWORD, "short1A", "short1A", "Password did not match criteria."),
        (PASSWORD, "alllowercase1", "alllowercase1", "Password did not match criteria."),
        ("wrong", "NewPassword1", "NewPassword1", "Current password was incorrect."),
    ])
    async def test_rejected(self, db, current, new, repeat, message):
        login = await create_login(db, "carol", PASSWORD)
        with pytest.raises(AccountError, match=message):
            await change_password(db, login.user_id, current, new, repeat)

    async def test_changed(self, db):
        login = await create_login(db, "carol", PASSWORD)
        await change_password(db, login.user_id, PASSWORD, "NewPassword1", "NewPassword1")
        await db.commit()
        assert await authenticate(db, "carol", PASSWORD) is None
        assert await authenticate(db, "carol", "NewPassword1") is not None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. Account page
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestAccountPage:
    async def test_renders(self, user):
        r = await user.get("/account")
        assert r.status_code == 200
        assert "text/html" in r.headers["content-type"]

    async def test_requires_login(self, client):
        r = await client.get("/account")
        assert r.headers["location"] == "/login?redirect=%2Faccount"

    async def test_change_username(self, login_client):
        c, _account = await login_client("alice")
        r = await c.post("/account", data={"action": "username", "username": "alice2"})
        assert r.status_code == 200
        assert "Username changed." in r.text
        r = await c.get("/api/login-info")
        assert r.json()["data"]["name"] == "alice2"

    async def test_change_password(self, login_client, client):
        c, account = await login_client("alice")
        r = await c.post("/account", data={
            "action": "password",
            "current_password": account.password,
            "new_password": "AnotherPass9",
            "new_password_repeat": "AnotherPass9",
        })
        assert r.status_code == 200

        r = await client.post("/login", data={"username": "alice", "password": "AnotherPass9"})
        assert r.status_code == 302

    async def test_error_is_shown(self, user):
        r = await user.post("/account", data={"action": "username", "username": "ab"})
        assert r.status_code == 400
        assert "Username must contain at least 4 characters." in r.text

    async def test_unknown_action(self, user):
        r = await user.post("/account", data={"action": "delete"})
        assert r.status_code == 400


class TestHomePage:
    async def test_empty(self, user):
        r = await user.get("/")
        assert r.status_code == 200
        assert "No initiatives yet." in r.text

    async def test_lists_initiatives(self, admin):
        r = await admin.post(
            "/api/initiative/create",
            data={"shortName": "Clean Water Now", "fullName": "Clean drinking water for all"},
            files={"pdf": ("t.pdf", PDF, "application/pdf")},
        )
        assert r.status_code == 201

        r = await admin.get("/")
        assert "Clean Water Now" in r.text
        assert "Clean drinking water for all" in r.text


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 4. Command line
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestCli:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.create_login is False
        assert args.prune is False
        assert args.port == 3000
        assert args.no_serve is False

    def test_flags(self):
        args = build_parser().parse_args(["-c", "--prune", "--no-serve", "--port", "8080"])
        assert args.create_login and args.prune and args.no_serve
        assert args.port == 8080

    def test_prompt_with_password(self):
        answers = iter(["", "  carol ", "n"])
        username, password, is_admin, generated = prompt_new_login(
            ask=lambda _prompt: next(answers),
            ask_secret=lambda _prompt: "ChosenPass1",
        )
        assert (username, password, is_admin, generated) == ("carol", "ChosenPass1", False, False)

    def test_prompt_generates_password(self):
        answers = iter(["root", "Y"])
        username, password, is_admin, generated = prompt_new_login(
            ask=lambda _prompt: next(answers),
            ask_secret=lambda _prompt: "",
        )
        assert username == "root"
        assert is_admin and generated
        assert len(password) == 16
