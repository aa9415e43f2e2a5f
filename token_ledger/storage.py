"""
Storage Backend Module

Key-value storage interface backing the balance and allowance maps, with an
in-memory implementation. Records are JSON-compatible dictionaries and all
token amounts are stored as decimal strings.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
import copy
import json
import threading
from contextlib import contextmanager


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def save(self, table: str, key: str, data: Dict[str, Any]) -> None:
        """Insert or replace a record"""
        pass

    @abstractmethod
    def load(self, table: str, key: str) -> Optional[Dict[str, Any]]:
        """Load a record, or None if absent"""
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table"""
        pass

    @abstractmethod
    def delete(self, table: str, key: str) -> bool:
        """Remove a record, returning whether it existed"""
        pass

    @abstractmethod
    def exists(self, table: str, key: str) -> bool:
        """Check if a record exists"""
        pass

    @abstractmethod
    def count(self, table: str) -> int:
        """Count records in table"""
        pass

    @abstractmethod
    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    def begin_transaction(self) -> None:
        """Start a transaction (default no-op)"""
        pass

    def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

    @contextmanager
    def atomic(self):
        """Context manager for atomic operations"""
        self.begin_transaction()
        try:
            yield
            self.commit()
        except Exception:
            self.rollback()
            raise


class InMemoryStorage(StorageInterface):
    """
    Dict-backed storage.

    Transactions snapshot every table on begin and restore the snapshot on
    rollback. Nested atomic() blocks join the outermost transaction.
    """

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()
        self._snapshot: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None
        self._depth = 0

    def _ensure_table(self, table: str) -> None:
        if table not in self._data:
            self._data[table] = {}

    def save(self, table: str, key: str, data: Dict[str, Any]) -> None:
        """Save a record to memory"""
        with self._lock:
            self._ensure_table(table)
            # Copy through JSON so stored records stay JSON-compatible
            self._data[table][key] = json.loads(json.dumps(data))

    def load(self, table: str, key: str) -> Optional[Dict[str, Any]]:
        """Load a record from memory"""
        with self._lock:
            record = self._data.get(table, {}).get(key)
            if record is None:
                return None
            return copy.deepcopy(record)

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table in insertion order"""
        with self._lock:
            return [copy.deepcopy(record) for record in self._data.get(table, {}).values()]

    def delete(self, table: str, key: str) -> bool:
        """Delete a record from memory"""
        with self._lock:
            records = self._data.get(table, {})
            if key in records:
                del records[key]
                return True
            return False

    def exists(self, table: str, key: str) -> bool:
        """Check if a record exists"""
        with self._lock:
            return key in self._data.get(table, {})

    def count(self, table: str) -> int:
        """Count records in table"""
        with self._lock:
            return len(self._data.get(table, {}))

    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        with self._lock:
            self._data[table] = {}

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass

    def begin_transaction(self) -> None:
        """Snapshot all tables, or join the open transaction"""
        with self._lock:
            if self._depth == 0:
                self._snapshot = copy.deepcopy(self._data)
            self._depth += 1

    def commit(self) -> None:
        """Drop the snapshot once the outermost transaction commits"""
        with self._lock:
            if self._depth == 0:
                return
            self._depth -= 1
            if self._depth == 0:
                self._snapshot = None

    def rollback(self) -> None:
        """Restore the snapshot taken when the outermost transaction began"""
        with self._lock:
            if self._depth == 0:
                return
            if self._snapshot is not None:
                self._data = self._snapshot
                self._snapshot = None
            self._depth = 0

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def get_all_data(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Get all data for debugging/inspection"""
        with self._lock:
            return copy.deepcopy(self._data)
