"""Identity and privilege checks for the current process."""

from __future__ import annotations

import ctypes
import logging

from .errors import IdentityUnavailable

logger = logging.getLogger(__name__)


def current_user_sid() -> str:
    """Return the SID string of the user running this process."""
    try:
        import pywintypes
        import win32api
        import win32security
    except ImportError as exc:
        raise IdentityUnavailable("pywin32 is required to read the process identity.") from exc

    try:
        token = win32security.OpenProcessToken(
            win32api.GetCurrentProcess(), win32security.TOKEN_QUERY
        )
        try:
            sid, _attributes = win32security.GetTokenInformation(
                token, win32security.TokenUser
            )
        finally:
            win32api.CloseHandle(token)
        return win32security.ConvertSidToStringSid(sid)
    except pywintypes.error as exc:
        raise IdentityUnavailable(f"Could not read the process token: {exc.strerror}") from exc


def is_elevated() -> bool:
    """Return True when running with administrator rights."""
    windll = getattr(ctypes, "windll", None)
    if windll is None:
        return False
    try:
        return bool(windll.shell32.IsUserAnAdmin())
    except OSError:  # pragma: no cover - defensive log path
        logger.exception("Failed to query elevation; assuming not elevated.")
        return False
