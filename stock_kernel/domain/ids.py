"""
Identifier generation.

Scan session ids are produced by an injected generator so tests can
assert on exact ids instead of random ones.
"""

from abc import ABC, abstractmethod
from itertools import count
from uuid import uuid4


class IdGenerator(ABC):
    """Produces unique string identifiers with a caller-chosen prefix."""

    @abstractmethod
    def next_id(self, prefix: str) -> str:
        ...


class UuidIdGenerator(IdGenerator):
    """Random ids of the form ``<prefix>-<32 hex chars>``."""

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{uuid4().hex}"


class SequentialIdGenerator(IdGenerator):
    """Deterministic ids ``<prefix>-1``, ``<prefix>-2``, ...  For tests and replay."""

    def __init__(self, start: int = 1):
        self._counter = count(start)

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter)}"
