from __future__ import annotations

import ctypes
from types import SimpleNamespace

from worktime.identity import is_elevated


def _windll(is_admin):
    return SimpleNamespace(shell32=SimpleNamespace(IsUserAnAdmin=lambda: is_admin))


def test_admin_is_elevated(monkeypatch):
    monkeypatch.setattr(ctypes, "windll", _windll(1), raising=False)
    assert is_elevated() is True


def test_standard_user_is_not_elevated(monkeypatch):
    monkeypatch.setattr(ctypes, "windll", _windll(0), raising=False)
    assert is_elevated() is False


def test_without_windll_is_not_elevated(monkeypatch):
    monkeypatch.delattr(ctypes, "windll", raising=False)
    assert is_elevated() is False
