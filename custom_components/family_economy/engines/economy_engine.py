"""Economy Engine - Pure logic for cash balances and the transaction ledger.

This engine provides stateless, pure Python functions for:
- Balance movements between ``pending_balance`` and ``cash_balance``
- Sufficient funds validation (NSF checks)
- Ledger entry creation for earn/redeem/bonus/adjust transactions

ARCHITECTURE: Pure logic engine that calls no Home Assistant APIs (const.py
supplies the shared vocabulary, nothing else).
All functions are static methods returning NEW user dicts. Every amount is
integer cents and every credit to ``cash_balance`` is paired with exactly one
ledger entry by the caller.
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import TYPE_CHECKING

from .. import const
from ..data_builders import build_transaction
from ..utils.currency_utils import add_cents, can_afford, subtract_cents

if TYPE_CHECKING:
    from ..type_defs import TransactionData, UserData


class InsufficientFundsError(Exception):
    """Raised when a withdrawal would exceed the user's cash balance.

    Attributes:
        user_id: The user attempting the withdrawal
        current_balance: Cash balance in cents
        requested_amount: Amount attempted to withdraw in cents
        shortfall: How much more is needed (requested - current)
    """

    def __init__(
        self,
        user_id: str,
        current_balance: int,
        requested_amount: int,
    ) -> None:
        """Initialize InsufficientFundsError."""
        self.user_id = user_id
        self.current_balance = current_balance
        self.requested_amount = requested_amount
        self.shortfall = requested_amount - current_balance
        super().__init__(
            f"Insufficient funds for user {user_id}: "
            f"balance={current_balance}, requested={requested_amount}, "
            f"shortfall={self.shortfall}"
        )


def earn_description(title: str, count: int) -> str:
    """Ledger description for job earnings, e.g. "Wash car (3×)"."""
    return f"{title} ({count}×)" if count > 1 else title


class EconomyEngine:
    """Pure logic engine for balances and ledger entries.

    All methods are static - no instance state.

    Balance flows:
        complete (approval required):  + pending
        approve:                        pending → cash
        reject / reset auto-reject:    - pending
        complete (no approval):         + cash
        redeem:                         - cash (NSF checked)
        adjust / bonus:                 ± cash
    """

    @staticmethod
    def validate_sufficient_funds(balance: int, cost: int) -> bool:
        """Check if balance is sufficient for a withdrawal."""
        return can_afford(balance, cost)

    # =========================================================================
    # BALANCE MOVEMENTS
    # =========================================================================

    @staticmethod
    def credit_cash(user: UserData, amount: int) -> UserData:
        """Add ``amount`` (may be negative) to the cash balance."""
        updated = copy.deepcopy(user)
        updated["cash_balance"] = add_cents(user.get("cash_balance"), amount)
        return updated

    @staticmethod
    def debit_cash(user: UserData, amount: int) -> UserData:
        """Withdraw ``amount`` from the cash balance.

        Raises:
            InsufficientFundsError: If the balance does not cover ``amount``
        """
        balance = int(user.get(const.DATA_USER_CASH_BALANCE) or 0)
        if not EconomyEngine.validate_sufficient_funds(balance, amount):
            raise InsufficientFundsError(user[const.DATA_ID], balance, amount)  # type: ignore[literal-required]
        updated = copy.deepcopy(user)
        updated["cash_balance"] = subtract_cents(balance, amount)
        return updated

    @staticmethod
    def add_pending(user: UserData, amount: int) -> UserData:
        """Hold earnings that await approval."""
        updated = copy.deepcopy(user)
        updated["pending_balance"] = add_cents(user.get("pending_balance"), amount)
        return updated

    @staticmethod
    def release_pending(user: UserData, amount: int) -> UserData:
        """Move approved earnings from pending to cash."""
        updated = copy.deepcopy(user)
        updated["pending_balance"] = subtract_cents(user.get("pending_balance"), amount)
        updated["cash_balance"] = add_cents(user.get("cash_balance"), amount)
        return updated

    @staticmethod
    def discard_pending(user: UserData, amount: int) -> UserData:
        """Drop rejected earnings from pending without crediting cash."""
        updated = copy.deepcopy(user)
        updated["pending_balance"] = subtract_cents(user.get("pending_balance"), amount)
        return updated

    @staticmethod
    def add_gems(user: UserData, points: int) -> UserData:
        """Award chore points as gems. Gems never touch the cash ledger."""
        updated = copy.deepcopy(user)
        updated["gems"] = int(user.get("gems") or 0) + max(int(points or 0), 0)
        return updated

    # =========================================================================
    # LEDGER ENTRIES
    # =========================================================================

    @staticmethod
    def create_earn_transaction(
        user_id: str,
        amount: int,
        job_id: str,
        job_title: str,
        completion_count: int,
        approved_by: str | None = None,
        now: datetime | None = None,
    ) -> TransactionData:
        """Ledger entry for approved job earnings."""
        return build_transaction(
            user_id,
            const.TRANSACTION_TYPE_EARN,
            amount,
            earn_description(job_title, completion_count),
            job_id=job_id,
            completion_count=completion_count,
            approved_by=approved_by,
            now=now,
        )

    @staticmethod
    def create_redeem_transaction(
        user_id: str,
        amount: int,
        description: str,
        now: datetime | None = None,
    ) -> TransactionData:
        """Ledger entry for spending; stored as a negative amount."""
        return build_transaction(
            user_id,
            const.TRANSACTION_TYPE_REDEEM,
            -abs(amount),
            description,
            now=now,
        )

    @staticmethod
    def create_adjust_transaction(
        user_id: str,
        amount: int,
        description: str,
        adjusted_by: str | None,
        now: datetime | None = None,
    ) -> TransactionData:
        """Ledger entry for a parent's direct credit or debit."""
        return build_transaction(
            user_id,
            const.TRANSACTION_TYPE_ADJUST,
            amount,
            description,
            approved_by=adjusted_by,
            now=now,
        )

    @staticmethod
    def create_bonus_transaction(
        user_id: str,
        amount: int,
        description: str,
        awarded_by: str | None,
        now: datetime | None = None,
    ) -> TransactionData:
        """Ledger entry for a bonus reward."""
        return build_transaction(
            user_id,
            const.TRANSACTION_TYPE_BONUS,
            amount,
            description,
            approved_by=awarded_by,
            now=now,
        )

    @staticmethod
    def balance_from_ledger(
        transactions: list[TransactionData], user_id: str
    ) -> int:
        """Sum of approved ledger amounts for a user."""
        return sum(
            int(txn.get(const.DATA_TXN_AMOUNT, 0))
            for txn in transactions
            if txn.get(const.DATA_TXN_USER_ID) == user_id
            and txn.get(const.DATA_TXN_STATUS) == const.STATUS_APPROVED
        )
