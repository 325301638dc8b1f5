"""Unit-test conftest: DB isolation safety net.

Every unit test runs with the storage accessors replaced by guards that
raise immediately, so a test that forgets to mock the database fails
loudly instead of trying to reach Postgres.
"""

from __future__ import annotations

import pytest

import flowline.storage as _storage_mod


def _install_db_guard(monkeypatch: pytest.MonkeyPatch | None = None) -> None:
    """Install guard functions that prevent real DB access in unit tests."""

    def _guarded_get_engine(settings=None):
        raise RuntimeError(
            "Unit test attempted a real DB connection via get_engine(). "
            "Mock the database dependency."
        )

    def _guarded_get_session_factory(settings=None):
        raise RuntimeError(
            "Unit test attempted a real DB connection via get_session_factory(). "
            "Mock the database dependency."
        )

    def _guarded_get_session():
        raise RuntimeError(
            "Unit test attempted a real DB connection via get_session(). "
            "Mock the database dependency."
        )

    guards = {
        "get_engine": _guarded_get_engine,
        "get_session_factory": _guarded_get_session_factory,
        "get_session": _guarded_get_session,
    }
    for name, guard in guards.items():
        if monkeypatch:
            monkeypatch.setattr(_storage_mod, name, guard)
        else:
            setattr(_storage_mod, name, guard)


def pytest_configure() -> None:
    """Install DB guards before unit test modules are imported."""
    _storage_mod._engine = None  # type: ignore[attr-defined]
    _storage_mod._session_factory = None  # type: ignore[attr-defined]
    _install_db_guard()


@pytest.fixture(autouse=True)
def _isolate_db(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset storage singletons and guard the accessors for each test."""
    monkeypatch.setattr(_storage_mod, "_engine", None)
    monkeypatch.setattr(_storage_mod, "_session_factory", None)
    _install_db_guard(monkeypatch)
