"""Change detection — Diff two result snapshots by full path.

The detector is transport-agnostic: snapshots from the CLI, native and HTTP
adapters are compared the same way.

  - path only in ``previous``          -> ``deleted``
  - path only in ``current``           -> ``added``
  - path in both, ``date_modified`` differs (ms resolution) -> ``modified``

Ordering of the returned records is not meaningful.
"""

from __future__ import annotations

from collections.abc import Iterable

from everything_client.models.result import ChangeType, FileChange, SearchResult


def _index_by_path(results: Iterable[SearchResult]) -> dict[str, SearchResult]:
    return {result.full_path: result for result in results}


def detect_changes(
    previous: Iterable[SearchResult],
    current: Iterable[SearchResult],
) -> list[FileChange]:
    """Compare two snapshots and return the change records between them.

    Args:
        previous: The earlier snapshot.
        current: The later snapshot.

    Returns:
        One ``FileChange`` per added, deleted or modified path. Unchanged
        paths produce no record.
    """
    old = _index_by_path(previous)
    new = _index_by_path(current)

    changes: list[FileChange] = [
        FileChange(path=path, type=ChangeType.DELETED) for path in old if path not in new
    ]

    for path, result in new.items():
        before = old.get(path)
        if before is None:
            changes.append(FileChange(path=path, type=ChangeType.ADDED))
        elif before.modified_ms != result.modified_ms:
            changes.append(FileChange(path=path, type=ChangeType.MODIFIED))

    return changes
