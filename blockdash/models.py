"""Data model shared between the scanning host and the renderer.

``BlockReport`` values are produced by the host's scan loop, one per
processed block, and are immutable once created.  ``RenderContext`` is the
mutable context the host passes to every renderer entry point.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class BlockStatus(IntEnum):
    """Outcome of reading one block.

    ``OK`` is zero so that any non-zero status is an error kind.
    """

    OK = 0
    ERROR = 1  # generic I/O error
    TIMEOUT = 2  # command timed out
    UNC = 3  # uncorrectable data
    IDNF = 4  # sector id not found
    ABRT = 5  # command aborted

    @property
    def is_error(self) -> bool:
        return self is not BlockStatus.OK


ERROR_KINDS: tuple[BlockStatus, ...] = tuple(s for s in BlockStatus if s.is_error)


@dataclass(frozen=True, slots=True)
class BlockReport:
    """Status of a single processed block.

    Attributes:
        lba: Logical block address of the block.
        status: Read outcome.
        access_time: Time taken to service the block, in microseconds.
    """

    lba: int
    status: BlockStatus = BlockStatus.OK
    access_time: int = 0

    def __post_init__(self) -> None:
        if self.lba < 0:
            raise ValueError(f"lba must be non-negative, got {self.lba}")
        if self.access_time < 0:
            raise ValueError(
                f"access_time must be non-negative, got {self.access_time}"
            )


@dataclass(frozen=True)
class DeviceInfo:
    """The device being scanned."""

    path: str
    capacity: int  # bytes
    model: str = ""


@dataclass
class RenderContext:
    """Context shared by the host and the renderer across one scan session.

    The host fills ``device``, ``block_size`` and ``procedure_name`` before
    ``open``; updates ``report`` and ``progress`` before each
    ``handle_report``; and sets ``interrupted`` before ``close``.
    """

    device: DeviceInfo
    block_size: int = 512
    procedure_name: str = "read-test"
    report: BlockReport | None = None
    progress: int = 0  # 1-based count of reports handed over so far
    interrupted: bool = False

    @property
    def end_lba(self) -> int:
        """Number of addressable blocks on the device."""
        return self.device.capacity // self.block_size

    def advance(self, report: BlockReport) -> None:
        """Set the next report and bump the progress counter."""
        self.report = report
        self.progress += 1
