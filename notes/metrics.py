"""Prometheus metrics for the notes core.

All metric objects are defined here so they can be imported from any module.
"""

from prometheus_client import Counter, Gauge

# ---------------------------------------------------------------------------
# Storage metrics
# ---------------------------------------------------------------------------

STORAGE_OPERATIONS = Counter(
    "notes_storage_operations_total",
    "Total key-value storage operations",
    ["operation", "status"],  # read/write/remove × ok/miss/unavailable/corrupt/error
)

# ---------------------------------------------------------------------------
# Repository metrics
# ---------------------------------------------------------------------------

NOTE_OPERATIONS = Counter(
    "notes_operations_total",
    "Total note mutations",
    ["operation"],  # create, update, delete, seed
)

NOTES_TOTAL = Gauge(
    "notes_total",
    "Number of notes currently held in memory",
)
