"""Parent/child linking of table rows after persistence.

Reviewers flag sub-rows by the parent's position in the extracted table.
Rows are created first without parents; once the store has assigned
identities, a second pass points each sub-row at its parent's identity.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from sanad_ocr.extraction.models import TableRow
from sanad_ocr.utils.logger import get_logger

logger = get_logger(__name__)


class PersistedRow(Protocol):
    id: Any


class RowStore(Protocol):
    """Persistence operations the linker needs from the document store."""

    def create_rows(self, rows: Sequence[TableRow]) -> Sequence[PersistedRow]:
        """Persist rows in order and return them with identities."""
        ...

    def update_row(self, row_id: Any, *, parent_row_id: Any) -> None:
        """Set a persisted row's parent."""
        ...


@dataclass
class LinkedRow:
    """Persisted identity of a row and of its parent, if any."""

    row_id: Any
    parent_row_id: Any | None = None


def resolve_parent_index(rows: Sequence[TableRow], position: int) -> int | None:
    """Return a usable parent index for the row at ``position``.

    Only earlier positions are accepted, which rules out self-references
    and cycles.
    """
    row = rows[position]
    index = row.parent_row_index
    if not row.is_sub_row or index is None:
        return None
    if isinstance(index, bool) or not isinstance(index, int):
        return None
    if 0 <= index < position:
        return index
    return None


def link_parent_rows(rows: Sequence[TableRow], store: RowStore) -> list[LinkedRow]:
    """Persist rows and then link sub-rows to their parents.

    Args:
        rows: Rows in original extraction order, possibly flagged as
            sub-rows with ``parent_row_index``.
        store: Document store that assigns row identities.

    Returns:
        One ``LinkedRow`` per persisted row, in order.
    """
    persisted = list(store.create_rows(rows))
    if len(persisted) != len(rows):
        logger.warning(
            "Store returned %d rows for %d created; linking the common prefix",
            len(persisted),
            len(rows),
        )

    linked = [LinkedRow(row_id=row.id) for row in persisted]

    for position in range(min(len(rows), len(persisted))):
        row = rows[position]
        if not row.is_sub_row:
            continue

        parent_index = resolve_parent_index(rows, position)
        if parent_index is None:
            logger.warning(
                "Ignoring invalid parent index %r for row %d",
                row.parent_row_index,
                position,
            )
            continue

        parent_id = persisted[parent_index].id
        store.update_row(linked[position].row_id, parent_row_id=parent_id)
        linked[position].parent_row_id = parent_id

    linked_count = sum(1 for row in linked if row.parent_row_id is not None)
    logger.info("Linked %d of %d rows to parents", linked_count, len(linked))
    return linked
