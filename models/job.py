"""
Print job data models.

A Job is one unit of print work in the shared queue. Jobs are frozen
dataclasses: the queue engine never edits a job in place, it builds a
replacement with dataclasses.replace() and swaps the whole collection.
That makes any list of jobs handed out by the engine a safe snapshot.

Lifecycle:
    Queued -> Printing -> Ready -> Collected
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum, IntEnum
from typing import Dict, Any, Optional


ONLINE_TOKEN_PREFIX = "PS"
WALK_IN_TOKEN_PREFIX = "FO"

WALK_IN_FILE_NAME = "Walk-in Order"
WALK_IN_CUSTOMER_NAME = "Walk-in Customer"


class JobStatus(Enum):
    """
    Production status of a job.

    Strictly linear, one step at a time; COLLECTED is terminal.
    """

    QUEUED = "Queued"
    """Waiting for its turn at the printer."""

    PRINTING = "Printing"
    """On the printer. At most one job is printing at any time."""

    READY = "Ready"
    """Printed and waiting at the counter."""

    COLLECTED = "Collected"
    """Handed over to the customer."""


class PaymentStatus(Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"


class Priority(IntEnum):
    """
    Operator-assigned priority.

    Lower value is served first. The numeric values are the ones the
    dashboard priority selector sends.
    """

    HIGH = 1
    NORMAL = 2
    LOW = 3


class ColorMode(Enum):
    BW = "bw"
    COLOR = "color"


class Sides(Enum):
    SINGLE = "single"
    DOUBLE = "double"


@dataclass(frozen=True)
class PrintOptions:
    """
    Customer's print choices for one document.

    Captured by the submit form; priced by modules.pricing.
    """

    pages: str = "all"
    """Page selection: 'all', a range like '2-5', or a list like '1,3,7'."""

    total_pages: int = 0
    """Page count of the whole document (handed in by the upload collaborator)."""

    color_mode: ColorMode = ColorMode.BW
    sides: Sides = Sides.SINGLE
    copies: int = 1
    is_expedited: bool = False

    @property
    def duplex(self) -> bool:
        return self.sides is Sides.DOUBLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages": self.pages,
            "total_pages": self.total_pages,
            "color_mode": self.color_mode.value,
            "sides": self.sides.value,
            "copies": self.copies,
            "is_expedited": self.is_expedited,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrintOptions":
        """
        Build options from loosely-typed form data.

        Unknown color modes and sides fall back to the defaults, and a copy
        count that does not parse becomes 1.
        """
        try:
            color_mode = ColorMode(str(data.get("color_mode", "bw")).lower())
        except ValueError:
            color_mode = ColorMode.BW

        try:
            sides = Sides(str(data.get("sides", "single")).lower())
        except ValueError:
            sides = Sides.SINGLE

        try:
            copies = int(data.get("copies", 1))
        except (TypeError, ValueError):
            copies = 1

        try:
            total_pages = int(data.get("total_pages", 0))
        except (TypeError, ValueError):
            total_pages = 0

        return cls(
            pages=str(data.get("pages", "all") or "all").strip(),
            total_pages=total_pages,
            color_mode=color_mode,
            sides=sides,
            copies=copies,
            is_expedited=_as_bool(data.get("is_expedited", False)),
        )


@dataclass(frozen=True)
class JobRequest:
    """
    Everything a submitter hands the engine for a new job.

    The engine fills in id, token, cost, priority and status.
    """

    file_name: str
    options: PrintOptions
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    customer_name: Optional[str] = None
    payer_reference: Optional[str] = None
    document_handle: Optional[str] = None


@dataclass(frozen=True)
class Job:
    """
    A print job in the shared queue.

    Thread Safety:
        Frozen. The engine publishes tuples of Job objects; readers may keep
        them as long as they like.
    """

    id: int
    """Creation-time based, strictly increasing; FIFO tie-break."""

    file_name: str
    page_count: int
    is_walk_in: bool
    token: str
    """Public code, 'PS-xxx' for online and 'FO-xxx' for walk-in orders."""

    cost: float
    """Price fixed at submission; later rate changes do not touch it."""

    is_expedited: bool = False
    priority: Priority = Priority.NORMAL
    status: JobStatus = JobStatus.QUEUED
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    customer_name: Optional[str] = None
    payer_reference: Optional[str] = None
    document_handle: Optional[str] = field(default=None, compare=False)
    """Opaque reference to the uploaded file. Never persisted."""

    @property
    def is_paid(self) -> bool:
        return self.payment_status is PaymentStatus.PAID

    @property
    def has_document(self) -> bool:
        return bool(self.document_handle)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON-ready dictionary.

        The document handle is deliberately left out: it refers to a file
        owned by the process that accepted the upload.
        """
        data = asdict(self)
        data.pop("document_handle", None)
        data["priority"] = int(self.priority)
        data["status"] = self.status.value
        data["payment_status"] = self.payment_status.value
        return data

    def to_public_dict(self) -> Dict[str, Any]:
        """Dictionary for API responses (adds the has_document flag)."""
        data = self.to_dict()
        data["has_document"] = self.has_document
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        """
        Create a Job from a stored dictionary.

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field does not hold a valid value
        """
        page_count = int(data["page_count"])
        if page_count <= 0:
            raise ValueError(f"page_count must be positive, got {page_count}")

        return cls(
            id=int(data["id"]),
            file_name=str(data["file_name"]),
            page_count=page_count,
            is_walk_in=bool(data.get("is_walk_in", False)),
            token=str(data["token"]),
            cost=float(data["cost"]),
            is_expedited=bool(data.get("is_expedited", False)),
            priority=Priority(int(data.get("priority", Priority.NORMAL))),
            status=JobStatus(data["status"]),
            payment_status=PaymentStatus(data.get("payment_status", PaymentStatus.UNPAID.value)),
            customer_name=data.get("customer_name"),
            payer_reference=data.get("payer_reference"),
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)
