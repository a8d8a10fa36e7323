"""
stock_services.scan_sessions -- Scan session lifecycle and statistics.

Responsibility:
    Own the lifecycle of scanning workflows (stock count, goods receipt,
    transfer): start a session, append scan results while it is active,
    end it, and report per-session statistics.  Also the entry point the
    scanner front-end calls with each decoded barcode string.

Architecture position:
    Services -- the one stateful component.  Sessions live in an injected
    ``ScanSessionRepository``; time comes from an injected ``Clock`` and
    ids from an injected ``IdGenerator``.  Barcode cleaning and validation
    are delegated to ``stock_engines.barcode``.

Invariants enforced:
    - Lifecycle: Active -> Ended.  Scans are appended only while Active;
      ``end_time`` is set exactly once.
    - Mutual exclusion per session: every mutation and every statistics
      snapshot of a session runs under that session's lock, so concurrent
      scans keep append order.  Distinct sessions do not contend.
    - No idle expiry: a session never ended stays Active.
    - Callers receive frozen ``ScanSessionSnapshot`` copies, so an ended
      session cannot be changed from outside the manager.

Failure modes:
    - Misuse is reported as ``None``, not raised: adding to a missing or
      ended session, ending or querying a missing session.
    - ``require_session`` raises ``SessionNotFoundError`` for callers that
      want an exception instead.

Usage:
    manager = ScanSessionManager(InMemoryScanSessionRepository(), SystemClock())
    session = manager.start_session(ScanSessionType.COUNT, "loc-1", "user-7")
    manager.scan(session.id, "036000291452", lookup=items_by_barcode.get)
    manager.end_session(session.id)
    stats = manager.session_stats(session.id)
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.ids import IdGenerator, UuidIdGenerator
from stock_kernel.domain.inventory import InventoryItem
from stock_kernel.domain.scanning import (
    BarcodeFormat,
    ScanResult,
    ScanSession,
    ScanSessionSnapshot,
    ScanSessionType,
)
from stock_kernel.domain.values import to_decimal
from stock_kernel.exceptions import SessionNotFoundError
from stock_kernel.logging_config import LogContext, get_logger
from stock_engines.barcode import clean_barcode, validate_barcode

logger = get_logger("services.scan_sessions")

SESSION_ID_PREFIX = "scan"
SECONDS_PER_MINUTE = Decimal("60")

ItemLookup = Callable[[str], InventoryItem | None]


@dataclass(frozen=True)
class SessionStats:
    """Counts and elapsed time of one scan session."""

    total_scans: int
    successful_scans: int
    failed_scans: int
    unique_items: int
    duration_minutes: Decimal


# =============================================================================
# Repository
# =============================================================================


class ScanSessionRepository(ABC):
    """
    Storage for scan sessions and their locks.

    Contract:
        ``lock_for`` returns the same lock object for a session for as
        long as the session is stored, and ``None`` for unknown ids.
    """

    @abstractmethod
    def add(self, session: ScanSession) -> None:
        ...

    @abstractmethod
    def get(self, session_id: str) -> ScanSession | None:
        ...

    @abstractmethod
    def list_sessions(self) -> list[ScanSession]:
        ...

    @abstractmethod
    def lock_for(self, session_id: str) -> threading.Lock | None:
        ...


class InMemoryScanSessionRepository(ScanSessionRepository):
    """Process-local repository; each instance is independent."""

    def __init__(self) -> None:
        self._sessions: dict[str, ScanSession] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def add(self, session: ScanSession) -> None:
        with self._registry_lock:
            if session.id in self._sessions:
                raise ValueError(f"Scan session already exists: {session.id}")
            self._sessions[session.id] = session
            self._locks[session.id] = threading.Lock()

    def get(self, session_id: str) -> ScanSession | None:
        with self._registry_lock:
            return self._sessions.get(session_id)

    def list_sessions(self) -> list[ScanSession]:
        with self._registry_lock:
            return list(self._sessions.values())

    def lock_for(self, session_id: str) -> threading.Lock | None:
        with self._registry_lock:
            return self._locks.get(session_id)


# =============================================================================
# Manager
# =============================================================================


class ScanSessionManager:
    """
    Starts, feeds, ends and reports on scan sessions.

    Contract:
        Receives repository, clock and id generator via constructor
        injection.  Two managers over two repositories share nothing.
    Guarantees:
        - Sessions leave the manager only as ``ScanSessionSnapshot`` copies
          taken under the session lock; the stored ``ScanSession`` is never
          handed out.
        - ``add_scan`` and ``scan`` return the appended ``ScanResult`` or
          ``None`` when the session is missing or ended.
        - ``end_session`` is idempotent: a second call returns the session
          with its original ``end_time``.
    """

    def __init__(
        self,
        repository: ScanSessionRepository | None = None,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
    ):
        self._repository = repository if repository is not None else InMemoryScanSessionRepository()
        self._clock = clock or SystemClock()
        self._ids = id_generator or UuidIdGenerator()

    @property
    def repository(self) -> ScanSessionRepository:
        return self._repository

    def start_session(
        self,
        session_type: ScanSessionType | str,
        location_id: str,
        user_id: str,
    ) -> ScanSessionSnapshot:
        """Create and store a new Active session."""
        session = ScanSession(
            id=self._ids.next_id(SESSION_ID_PREFIX),
            session_type=ScanSessionType(session_type),
            location_id=location_id,
            user_id=user_id,
            start_time=self._clock.now(),
        )
        self._repository.add(session)
        logger.info("scan_session_started", extra={
            "session_id": session.id,
            "session_type": session.session_type.value,
            "location_id": location_id,
            "user_id": user_id,
        })
        return session.snapshot()

    def add_scan(
        self,
        session_id: str,
        barcode: str,
        barcode_format: BarcodeFormat | str,
        success: bool,
        item: InventoryItem | None = None,
    ) -> ScanResult | None:
        """Timestamp a scan and append it to an Active session."""
        barcode_format = BarcodeFormat(barcode_format)
        session, lock = self._locate(session_id)
        if session is None or lock is None:
            logger.warning("scan_rejected_session_not_found", extra={"session_id": session_id})
            return None

        with lock, LogContext.bind(session_id=session_id):
            if not session.is_active:
                logger.warning("scan_rejected_session_ended", extra={
                    "session_id": session_id,
                    "barcode": barcode,
                })
                return None
            result = ScanResult(
                barcode=barcode,
                format=barcode_format,
                success=success,
                timestamp=self._clock.now(),
                item=item,
            )
            session.scans.append(result)
            logger.debug("scan_added", extra={
                "session_id": session_id,
                "barcode": barcode,
                "format": barcode_format.value,
                "success": success,
                "item_id": result.item_id,
                "scan_count": len(session.scans),
            })
            return result

    def scan(self, session_id: str, raw_code: str, lookup: ItemLookup) -> ScanResult | None:
        """
        Clean and validate a decoded barcode, resolve its item and append
        the result to the session.

        ``lookup`` is only consulted for codes that validate.  The scan is
        successful when the code validates, whether or not an item matches.
        """
        code = clean_barcode(raw_code)
        validation = validate_barcode(code)
        item = lookup(code) if validation.is_valid else None
        return self.add_scan(session_id, code, validation.format, validation.is_valid, item)

    def end_session(self, session_id: str) -> ScanSessionSnapshot | None:
        """End a session; ending an already-ended session changes nothing."""
        session, lock = self._locate(session_id)
        if session is None or lock is None:
            return None

        with lock:
            if session.is_active:
                session.is_active = False
                session.end_time = self._clock.now()
                logger.info("scan_session_ended", extra={
                    "session_id": session_id,
                    "scan_count": len(session.scans),
                })
            else:
                logger.debug("scan_session_already_ended", extra={"session_id": session_id})
            return session.snapshot()

    def session_stats(self, session_id: str) -> SessionStats | None:
        """Totals and elapsed minutes (to end time, or to now if Active)."""
        snapshot = self.get_session(session_id)
        if snapshot is None:
            return None

        scans = snapshot.scans
        end = snapshot.end_time or self._clock.now()
        successful = sum(1 for scan in scans if scan.success)
        unique_items = len({scan.item_id for scan in scans if scan.item_id is not None})
        duration = to_decimal((end - snapshot.start_time).total_seconds()) / SECONDS_PER_MINUTE

        return SessionStats(
            total_scans=len(scans),
            successful_scans=successful,
            failed_scans=len(scans) - successful,
            unique_items=unique_items,
            duration_minutes=duration,
        )

    def get_session(self, session_id: str) -> ScanSessionSnapshot | None:
        session, lock = self._locate(session_id)
        if session is None or lock is None:
            return None
        with lock:
            return session.snapshot()

    def require_session(self, session_id: str) -> ScanSessionSnapshot:
        """Like ``get_session`` but raises ``SessionNotFoundError``."""
        snapshot = self.get_session(session_id)
        if snapshot is None:
            raise SessionNotFoundError(session_id)
        return snapshot

    def user_sessions(self, user_id: str) -> list[ScanSessionSnapshot]:
        return [s for s in self._all_snapshots() if s.user_id == user_id]

    def active_sessions(self, location_id: str | None = None) -> list[ScanSessionSnapshot]:
        return [
            s for s in self._all_snapshots()
            if s.is_active and (location_id is None or s.location_id == location_id)
        ]

    def _all_snapshots(self) -> list[ScanSessionSnapshot]:
        snapshots = []
        for session in self._repository.list_sessions():
            lock = self._repository.lock_for(session.id)
            if lock is None:
                continue
            with lock:
                snapshots.append(session.snapshot())
        return snapshots

    def _locate(self, session_id: str) -> tuple[ScanSession | None, threading.Lock | None]:
        return self._repository.get(session_id), self._repository.lock_for(session_id)
