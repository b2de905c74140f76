"""Pattern Gate - Secret gesture check for parent-only operations.

A gesture is a sequence of unique dot indexes on a 3x3 grid (0-8). The gate
is a small state machine with a single pending-action slot:

    IDLE ──request_access──▶ SETTING_UP  (no secret stored yet)
    IDLE ──request_access──▶ VERIFYING   (secret stored)
    SETTING_UP ──valid gesture──▶ IDLE   (gesture becomes the secret, action runs)
    VERIFYING ──matching gesture──▶ IDLE (action runs)
    any ──cancel──▶ IDLE                 (pending action dropped)

Invalid or wrong gestures keep the gate in its current state so the caller
can retry. A new ``request_access`` replaces any pending action.

ARCHITECTURE: Pure logic that calls no Home Assistant APIs. Drawing and
capture of the gesture are the caller's concern.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import logging
from typing import Any

from .. import const

_LOGGER = logging.getLogger(__name__)

GATE_STATE_IDLE = "idle"
GATE_STATE_SETTING_UP = "setting_up"
GATE_STATE_VERIFYING = "verifying"

GATE_OUTCOME_SECRET_SET = "secret_set"
GATE_OUTCOME_VERIFIED = "verified"
GATE_OUTCOME_MISMATCH = "mismatch"
GATE_OUTCOME_INVALID = "invalid"
GATE_OUTCOME_NO_REQUEST = "no_request"

PendingAction = Callable[[], Any]


@dataclass
class GateResult:
    """Outcome of submitting a gesture.

    Attributes:
        granted: True when the pending action was run
        outcome: One of the GATE_OUTCOME_* constants
        action_result: Return value of the pending action, if it ran
    """

    granted: bool
    outcome: str
    action_result: Any = None


class PatternGate:
    """Setup/verify state machine guarding parent-only actions."""

    def __init__(
        self,
        secret: Sequence[int] | None = None,
        *,
        on_secret_changed: Callable[[list[int] | None], None] | None = None,
        min_length: int = const.PATTERN_MIN_DOTS,
        dot_count: int = const.PATTERN_DOT_COUNT,
    ) -> None:
        """Initialize the gate with an optional stored secret."""
        self._min_length = min_length
        self._dot_count = dot_count
        self._secret: list[int] | None = (
            list(secret) if secret and self.is_valid_pattern(secret) else None
        )
        self._on_secret_changed = on_secret_changed
        self._state = GATE_STATE_IDLE
        self._pending: PendingAction | None = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> str:
        """Current GATE_STATE_* value."""
        return self._state

    @property
    def has_secret(self) -> bool:
        """True when a secret gesture is stored."""
        return self._secret is not None

    @property
    def has_pending_action(self) -> bool:
        """True while an action waits for a gesture."""
        return self._pending is not None

    @property
    def secret(self) -> list[int] | None:
        """A copy of the stored secret (for persistence)."""
        return list(self._secret) if self._secret is not None else None

    # -------------------------------------------------------------------------
    # Secret management
    # -------------------------------------------------------------------------

    def is_valid_pattern(self, gesture: Any) -> bool:
        """Return True for a sequence of >= min_length unique in-range dots."""
        if isinstance(gesture, (str, bytes)) or not isinstance(gesture, Sequence):
            return False
        if len(gesture) < self._min_length or len(set(gesture)) != len(gesture):
            return False
        return all(
            isinstance(dot, int)
            and not isinstance(dot, bool)
            and 0 <= dot < self._dot_count
            for dot in gesture
        )

    def set_secret(self, gesture: Sequence[int]) -> bool:
        """Store a new secret. Returns False (and keeps the old one) if invalid."""
        if not self.is_valid_pattern(gesture):
            return False
        self._secret = list(gesture)
        self._notify_secret_changed()
        return True

    def clear_secret(self) -> None:
        """Forget the stored secret; the next access request starts setup."""
        if self._secret is None:
            return
        self._secret = None
        self._notify_secret_changed()

    def verify(self, gesture: Sequence[int]) -> bool:
        """Exact sequence match against the stored secret."""
        if self._secret is None or not self.is_valid_pattern(gesture):
            return False
        return list(gesture) == self._secret

    def _notify_secret_changed(self) -> None:
        if self._on_secret_changed is None:
            return
        try:
            self._on_secret_changed(self.secret)
        except Exception:  # pylint: disable=broad-exception-caught
            _LOGGER.exception("ERROR: Pattern gate secret-change callback failed")

    # -------------------------------------------------------------------------
    # Access flow
    # -------------------------------------------------------------------------

    def request_access(self, action: PendingAction) -> str:
        """Park ``action`` until a gesture is submitted. Returns the new state."""
        if self._pending is not None:
            _LOGGER.debug("DEBUG: Pattern gate replacing pending action")
        self._pending = action
        self._state = GATE_STATE_VERIFYING if self.has_secret else GATE_STATE_SETTING_UP
        return self._state

    def submit_gesture(self, gesture: Sequence[int]) -> GateResult:
        """Feed a captured gesture into the current sub-flow."""
        if self._state == GATE_STATE_IDLE or self._pending is None:
            return GateResult(granted=False, outcome=GATE_OUTCOME_NO_REQUEST)

        if not self.is_valid_pattern(gesture):
            return GateResult(granted=False, outcome=GATE_OUTCOME_INVALID)

        if self._state == GATE_STATE_SETTING_UP:
            self.set_secret(gesture)
            outcome = GATE_OUTCOME_SECRET_SET
        elif self.verify(gesture):
            outcome = GATE_OUTCOME_VERIFIED
        else:
            _LOGGER.debug("DEBUG: Pattern gate gesture mismatch")
            return GateResult(granted=False, outcome=GATE_OUTCOME_MISMATCH)

        action = self._pending
        self._pending = None
        self._state = GATE_STATE_IDLE
        return GateResult(granted=True, outcome=outcome, action_result=action())

    def cancel(self) -> None:
        """Drop the pending action and return to IDLE."""
        self._pending = None
        self._state = GATE_STATE_IDLE

    def run_gated(self, gesture: Sequence[int], action: PendingAction) -> GateResult:
        """Request access for ``action`` and submit ``gesture`` in one step.

        On failure the request is cancelled so no action stays parked.
        """
        self.request_access(action)
        result = self.submit_gesture(gesture)
        if not result.granted:
            self.cancel()
        return result
