"""Tests for the init_admin maintenance command."""

import asyncio

from expense_tracker.models.expense import User
from expense_tracker.orchestrator import AppComponents, create_memory_storages
from expense_tracker.scripts.init_admin import parse_args, run

from conftest import ADMIN_EMAIL


def run_script(components, *argv):
    return asyncio.run(run(parse_args(list(argv)), components))


class TestInitAdmin:
    def test_creates_admin(self, capsys):
        components = AppComponents(create_memory_storages())
        assert run_script(components, "--password", "secret123") == 0
        assert "Admin account created" in capsys.readouterr().out

        admin = asyncio.run(components.storages.users.get_user_by_email(ADMIN_EMAIL))
        assert admin.is_admin is True
        assert asyncio.run(components.storages.budgets.get_budget(admin.id)) is not None

    def test_second_run_is_a_no_op(self, capsys):
        components = AppComponents(create_memory_storages())
        run_script(components, "--password", "secret123")
        assert run_script(components, "--password", "secret123") == 0
        assert "already exists" in capsys.readouterr().out
        assert len(asyncio.run(components.storages.users.list_users())) == 1

    def test_rejects_short_password(self, capsys):
        components = AppComponents(create_memory_storages())
        assert run_script(components, "--password", "x") == 1
        assert "Cannot create admin account" in capsys.readouterr().out

    def test_nothing_to_do(self, monkeypatch):
        monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
        components = AppComponents(create_memory_storages())
        assert run_script(components) == 1

    def test_backfill_and_migrate(self, capsys, monkeypatch):
        monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
        components = AppComponents(create_memory_storages())
        legacy = User(name="Admin User", email=ADMIN_EMAIL)
        asyncio.run(components.storages.users.create_user(legacy))

        assert run_script(components, "--backfill", "--migrate-admin-flags") == 0
        out = capsys.readouterr().out
        assert "1 budgets and 1 settings created" in out
        assert "Admin flag set on 1 accounts" in out

        stored = asyncio.run(components.storages.users.get_user(legacy.id))
        assert stored.is_admin is True
