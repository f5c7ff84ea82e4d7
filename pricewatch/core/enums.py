"""
Centralized Enums for PriceWatch
"""

from enum import Enum

# ======================== CHANGE DETECTION ENUMS ========================

class PriceChangeType(str, Enum):
    """Classification of a price transition."""
    INITIAL = "INITIAL"
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"
    RESET = "RESET"

    def get_description(self) -> str:
        """Get human-readable description."""
        return {
            PriceChangeType.INITIAL: "First price recorded for item",
            PriceChangeType.INCREASE: "Price increased",
            PriceChangeType.DECREASE: "Price decreased",
            PriceChangeType.RESET: "Price cleared"
        }[self]

class ScanStatus(str, Enum):
    """Outcome of a scan cycle."""
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"

    def is_successful(self) -> bool:
        """Watermark advances for these outcomes."""
        return self in (ScanStatus.SUCCESS, ScanStatus.PARTIAL)

class ChangeReason(str, Enum):
    """Provenance strings attached to change events."""
    POLLING = "External price change detected via polling"
    AUTOMATIC = "Automatic price change detection"
    CATALOG_WRITE = "Price updated through catalog write"
