"""Recovery Manager - One-time codes that reset a forgotten parent gesture.

Flow:
1. A parent stores a recovery e-mail. Only its SHA-256 hash and a masked hint
   (``jo***@example.com``) are kept in the family state.
2. ``async_send_code(email)`` checks the e-mail against the hash, creates a
   6-digit code valid for 10 minutes and delivers it through the configured
   notify service.
3. ``verify_code(code)`` clears the gate secret on a match; the next gated
   action then starts gesture setup again.

Only one code is outstanding at a time. Codes live in memory and are lost on
restart.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
import hashlib
import secrets
from typing import TYPE_CHECKING

from .. import const
from ..notification_helper import async_send_notification
from ..utils.dt_utils import dt_now_utc

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .family_manager import FamilyEconomyManager


def normalize_email(email: str) -> str:
    """Lower-case and strip an address before hashing."""
    return (email or "").strip().lower()


def hash_email(email: str) -> str:
    """SHA-256 hex digest of the normalized address."""
    return hashlib.sha256(normalize_email(email).encode("utf-8")).hexdigest()


def email_hint(email: str) -> str | None:
    """Masked address for display, e.g. ``jo***@example.com``."""
    normalized = normalize_email(email)
    local, sep, domain = normalized.partition("@")
    if not sep or not local or not domain:
        return None
    return f"{local[:2]}***@{domain}"


class RecoveryManager:
    """Issues and checks recovery codes for the parent gate."""

    def __init__(
        self,
        hass: HomeAssistant,
        family: FamilyEconomyManager,
        notify_service: str,
        *,
        now_func: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the recovery manager."""
        self.hass = hass
        self._family = family
        self.notify_service = notify_service
        self._now = now_func or dt_now_utc
        self._pending_code: str | None = None
        self._code_expiry: datetime | None = None

    @property
    def has_recovery_email(self) -> bool:
        """True once a recovery address is stored."""
        return bool(self._family.recovery.get(const.DATA_RECOVERY_EMAIL_HASH))

    @property
    def email_hint(self) -> str | None:
        """Masked stored address."""
        return self._family.recovery.get(const.DATA_RECOVERY_EMAIL_HINT)

    @property
    def code_pending(self) -> bool:
        """True while an unexpired code is outstanding."""
        return self.time_remaining() > 0

    def set_recovery_email(self, email: str) -> bool:
        """Store the hash and hint of ``email``. Returns False for malformed addresses."""
        hint = email_hint(email)
        if hint is None:
            const.LOGGER.warning("WARNING: Ignoring malformed recovery e-mail")
            return False
        self._family.set_recovery(hash_email(email), hint)
        const.LOGGER.info("INFO: Recovery e-mail set (%s)", hint)
        return True

    def verify_email(self, email: str) -> bool:
        """Compare an address against the stored hash in constant time."""
        stored = self._family.recovery.get(const.DATA_RECOVERY_EMAIL_HASH)
        if not stored:
            return False
        return secrets.compare_digest(stored, hash_email(email))

    @staticmethod
    def generate_code() -> str:
        """Random numeric code of RECOVERY_CODE_LENGTH digits."""
        low = 10 ** (const.RECOVERY_CODE_LENGTH - 1)
        return str(low + secrets.randbelow(9 * low))

    async def async_send_code(self, email: str) -> bool:
        """Create a new code and notify it. False when the e-mail does not match."""
        if not self.verify_email(email):
            const.LOGGER.warning("WARNING: Recovery requested for a non-matching e-mail")
            return False

        code = self.generate_code()
        sent = await async_send_notification(
            self.hass,
            self.notify_service,
            const.RECOVERY_NOTIFY_TITLE,
            const.RECOVERY_NOTIFY_MESSAGE_FMT.format(
                code=code, minutes=const.RECOVERY_CODE_EXPIRY_MINUTES
            ),
        )
        if not sent:
            return False

        self._pending_code = code
        self._code_expiry = self._now() + timedelta(
            minutes=const.RECOVERY_CODE_EXPIRY_MINUTES
        )
        const.LOGGER.info("INFO: Recovery code sent to %s", self.email_hint)
        return True

    def verify_code(self, code: str) -> bool:
        """Clear the gate secret when ``code`` matches an unexpired code."""
        if self._pending_code is None:
            return False
        if self.time_remaining() <= 0:
            const.LOGGER.debug("DEBUG: Recovery code expired")
            self.clear_code()
            return False
        if not secrets.compare_digest(self._pending_code, str(code).strip()):
            return False

        self.clear_code()
        self._family.set_parent_pattern(None)
        const.LOGGER.info("INFO: Parent pattern cleared through recovery code")
        return True

    def time_remaining(self) -> int:
        """Whole seconds until the outstanding code expires (0 when none)."""
        if self._code_expiry is None:
            return 0
        return max(int((self._code_expiry - self._now()).total_seconds()), 0)

    def clear_code(self) -> None:
        """Forget the outstanding code."""
        self._pending_code = None
        self._code_expiry = None
