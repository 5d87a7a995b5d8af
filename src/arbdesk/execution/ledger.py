"""
Platform credit ledger.

Every credit movement goes through here: debits for commissions,
refunds for orders that did not fill and administrative deposits.
Check-and-decrement is atomic per user, so concurrent debits can never
take a balance below zero.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from arbdesk.core.errors import InsufficientBalanceError, InvalidInputError
from arbdesk.core.types import LedgerEntry, LedgerEntryKind, OrderRepository, UserBalance
from arbdesk.utils.locks import KeyedLock
from arbdesk.utils.math import ZERO, to_decimal
from arbdesk.utils.time import Clock, get_timestamp_us


logger = logging.getLogger(__name__)


class BalanceLedger:
    """
    Serializes credit balance mutations per user.

    Balances live in the repository; this class is their only writer.
    Each user has a dedicated lock, so operations on different users
    never wait on each other.
    """

    def __init__(self, repository: OrderRepository, clock: Clock | None = None) -> None:
        """
        Initialize ledger.

        Args:
            repository: Persistence holding the balances.
            clock: Microsecond clock for journal entries.
        """
        self._repository = repository
        self._clock = clock or get_timestamp_us
        self._locks = KeyedLock()
        self._journal: defaultdict[str, list[LedgerEntry]] = defaultdict(list)

    async def debit(
        self,
        user_id: str,
        amount: Decimal,
        reference: str = "",
        description: str = "",
    ) -> Decimal:
        """
        Remove credits if the balance covers them.

        Args:
            user_id: User to charge.
            amount: Credits to remove, must be positive.
            reference: Related order id, if any.
            description: Human-readable journal text.

        Returns:
            Balance after the debit.

        Raises:
            InvalidInputError: If amount is not positive.
            InsufficientBalanceError: If the balance is lower than amount.
                Nothing is debited in that case.
        """
        amount = self._validate(amount)

        async with self._locks.hold(user_id):
            balance = await self._repository.get_balance(user_id)
            if balance < amount:
                raise InsufficientBalanceError(user_id, amount, balance)

            new_balance = balance - amount
            await self._repository.set_balance(user_id, new_balance)
            self._record(user_id, LedgerEntryKind.DEBIT, amount, new_balance, reference, description)

        logger.debug(f"Debited {amount} credits from {user_id}, balance {new_balance}")
        return new_balance

    async def credit(
        self,
        user_id: str,
        amount: Decimal,
        reference: str = "",
        description: str = "",
    ) -> Decimal:
        """
        Add credits to a balance.

        Returns:
            Balance after the credit.

        Raises:
            InvalidInputError: If amount is not positive.
        """
        amount = self._validate(amount)

        async with self._locks.hold(user_id):
            balance = await self._repository.get_balance(user_id)
            new_balance = balance + amount
            await self._repository.set_balance(user_id, new_balance)
            self._record(user_id, LedgerEntryKind.CREDIT, amount, new_balance, reference, description)

        logger.debug(f"Credited {amount} credits to {user_id}, balance {new_balance}")
        return new_balance

    async def deposit(self, user_id: str, amount: Decimal, description: str = "Deposit") -> Decimal:
        """Administrative credit distribution."""
        new_balance = await self.credit(user_id, amount, description=description)
        logger.info(f"Deposited {amount} credits to {user_id}")
        return new_balance

    async def get_balance(self, user_id: str) -> Decimal:
        """Current balance (zero for unknown users)."""
        return await self._repository.get_balance(user_id)

    async def get_user_balance(self, user_id: str) -> UserBalance:
        return UserBalance(user_id=user_id, credit_balance=await self.get_balance(user_id))

    def history(self, user_id: str, limit: int | None = None) -> list[LedgerEntry]:
        """
        Journal of a user's credit movements, newest first.

        Args:
            user_id: User to look up.
            limit: Maximum number of entries.
        """
        entries = self._journal.get(user_id, [])[::-1]
        return entries if limit is None else entries[:limit]

    def _record(
        self,
        user_id: str,
        kind: LedgerEntryKind,
        amount: Decimal,
        balance_after: Decimal,
        reference: str,
        description: str,
    ) -> None:
        self._journal[user_id].append(
            LedgerEntry(
                user_id=user_id,
                kind=kind,
                amount=amount,
                balance_after=balance_after,
                timestamp_us=self._clock(),
                reference=reference,
                description=description,
            )
        )

    @staticmethod
    def _validate(amount: Decimal | int | str) -> Decimal:
        try:
            value = to_decimal(amount)
        except ValueError as e:
            raise InvalidInputError(f"Credit amount must be a number: {amount!r}") from e
        if value <= ZERO:
            raise InvalidInputError(f"Credit amount must be positive: {amount!r}")
        return value
