"""
fake_storage.py - Test Helper for Storage

Provides a Storage that records every write and removal, so tests can prove
that a rejected operation never touched storage.
"""

from __future__ import annotations
from typing import List, Tuple

from tokenledger import MemoryStorage


class RecordingStorage(MemoryStorage):
    """
    MemoryStorage that logs mutations.

    Example:
        storage = RecordingStorage()
        token = TokenLedger.create(storage, metadata, verbose=False)
        storage.reset()
        with pytest.raises(InsufficientBalance):
            token.transfer("alice", "bob", 1)
        assert storage.writes == []
    """

    def __init__(self):
        super().__init__()
        self.writes: List[Tuple[str, bytes]] = []

    def set(self, key: bytes, value: bytes) -> None:
        self.writes.append(("set", key))
        super().set(key, value)

    def remove(self, key: bytes) -> None:
        self.writes.append(("remove", key))
        super().remove(key)

    def reset(self) -> None:
        """Forget recorded writes (the contents stay)."""
        self.writes = []
