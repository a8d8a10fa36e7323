"""
Scanning Domain Records (``stock_kernel.domain.scanning``).

Barcode symbologies, individual scan results, scan sessions and the
historical scan log used by analytics.

``ScanSession`` is the one mutable record in the system.  It is created
Active, accepts appended scans while Active, and becomes read-only once
ended.  Only ``stock_services.scan_sessions.ScanSessionManager`` mutates
it, under the session's lock, and callers outside the manager only ever
see a frozen ``ScanSessionSnapshot``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from stock_kernel.domain.inventory import InventoryItem
from stock_kernel.domain.values import coerce_fields


class BarcodeFormat(str, Enum):
    """Barcode symbologies recognized by format detection."""

    UPC_A = "UPC-A"
    UPC_E = "UPC-E"
    EAN_13 = "EAN-13"
    EAN_8 = "EAN-8"
    CODE_39 = "CODE-39"
    CODABAR = "CODABAR"
    ITF = "ITF"
    CODE_128 = "CODE-128"
    UNKNOWN = "UNKNOWN"


class ScanSessionType(str, Enum):
    """Workflow a scan session drives."""

    COUNT = "count"
    RECEIVE = "receive"
    TRANSFER = "transfer"


class ScanType(str, Enum):
    """Kind of scan recorded in the barcode log."""

    LOOKUP = "lookup"
    COUNT = "count"
    RECEIVE = "receive"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one scan: the code, its detected format and matched item."""

    barcode: str
    format: BarcodeFormat
    success: bool
    timestamp: datetime
    item: InventoryItem | None = None

    @property
    def item_id(self) -> str | None:
        return self.item.id if self.item is not None else None


@dataclass
class ScanSession:
    """
    A scanning workflow at one location.

    Lifecycle: Active -> Ended.  ``end_time`` is set exactly once.
    """

    id: str
    session_type: ScanSessionType
    location_id: str
    user_id: str
    start_time: datetime
    scans: list[ScanResult] = field(default_factory=list)
    end_time: datetime | None = None
    is_active: bool = True

    @property
    def is_ended(self) -> bool:
        return not self.is_active

    def snapshot(self) -> ScanSessionSnapshot:
        """Frozen copy of the session as it stands now."""
        return ScanSessionSnapshot(
            id=self.id,
            session_type=self.session_type,
            location_id=self.location_id,
            user_id=self.user_id,
            start_time=self.start_time,
            scans=tuple(self.scans),
            end_time=self.end_time,
            is_active=self.is_active,
        )


@dataclass(frozen=True)
class ScanSessionSnapshot:
    """Read-only view of a ``ScanSession`` handed out by the session manager."""

    id: str
    session_type: ScanSessionType
    location_id: str
    user_id: str
    start_time: datetime
    scans: tuple[ScanResult, ...] = ()
    end_time: datetime | None = None
    is_active: bool = True

    @property
    def is_ended(self) -> bool:
        return not self.is_active


@dataclass(frozen=True)
class BarcodeLog:
    """Historical record of a scan attempt."""

    id: str
    barcode: str
    scanned_by: str
    scan_type: ScanType
    location_id: str
    is_successful: bool
    created_at: datetime
    item_id: str | None = None
    item_name: str | None = None
    quantity: Decimal | None = None
    error_message: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        coerce_fields(self, optional=("quantity",))
        object.__setattr__(self, "scan_type", ScanType(self.scan_type))
