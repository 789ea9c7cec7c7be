"""IdGenerator port - unique identifiers produced by the application."""

import uuid
from abc import ABC, abstractmethod

from machine_booking.domain.constants import TRANSACTION_ID_PREFIX


class IdGenerator(ABC):
    """
    Generates identifiers the application owns (document ids belong to the store).

    Lets tests inject predictable values.
    """

    @abstractmethod
    def generate_transaction_id(self) -> str:
        """
        Returns:
            Transaction id in the form ``TXN-<UUID in upper case>``.
        """
        raise NotImplementedError

    @abstractmethod
    def generate_lock_owner(self) -> str:
        """
        Returns:
            Unique owner tag for a machine lock lease.
        """
        raise NotImplementedError


class RealIdGenerator(IdGenerator):
    def generate_transaction_id(self) -> str:
        return f"{TRANSACTION_ID_PREFIX}{str(uuid.uuid4()).upper()}"

    def generate_lock_owner(self) -> str:
        return uuid.uuid4().hex


class FakeIdGenerator(IdGenerator):
    """Counter-based ids for deterministic tests."""

    def __init__(self, prefix: str = "TEST"):
        self._prefix = prefix
        self._txn_counter = 0
        self._lock_counter = 0

    def generate_transaction_id(self) -> str:
        self._txn_counter += 1
        return f"{TRANSACTION_ID_PREFIX}{self._prefix}-{self._txn_counter:06d}"

    def generate_lock_owner(self) -> str:
        self._lock_counter += 1
        return f"lock-{self._prefix.lower()}-{self._lock_counter:06d}"

    def reset(self) -> None:
        self._txn_counter = 0
        self._lock_counter = 0
