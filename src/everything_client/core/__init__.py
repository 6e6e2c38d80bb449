"""Transport-agnostic change detection and file monitoring."""

from everything_client.core.changes import detect_changes
from everything_client.core.monitor import FileMonitor

__all__ = ["FileMonitor", "detect_changes"]
