"""In-memory row collection for human review of an enriched batch.

Manual corrections are trusted over AI and validation output: editing any
enriched field resets the row to OK and clears its messages.
"""

import logging
from typing import Any

from app.schemas.shipment import EnrichedFields, ReviewRow, RowStatus

logger = logging.getLogger("clearpath.review")

STATUS_FILTER_ALL = "all"

EDITABLE_FIELDS = frozenset(EnrichedFields.model_fields)


class ReviewStore:
    """Rows of one import batch, addressed by ordinal id."""

    def __init__(self, rows: list[ReviewRow] | None = None):
        self._rows: list[ReviewRow] = []
        self.load(rows or [])

    def load(self, rows: list[ReviewRow]) -> None:
        self._rows = sorted(rows, key=lambda r: r.id)

    @property
    def rows(self) -> list[ReviewRow]:
        return list(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self):
        return iter(list(self._rows))

    def get(self, row_id: int) -> ReviewRow | None:
        for row in self._rows:
            if row.id == row_id:
                return row
        return None

    def _replace(self, row: ReviewRow) -> None:
        for i, existing in enumerate(self._rows):
            if existing.id == row.id:
                self._rows[i] = row
                return

    def filter(self, search_term: str = "", status_filter: str | RowStatus = STATUS_FILTER_ALL) -> list[ReviewRow]:
        """Rows whose order id or description contains `search_term` and whose status matches."""
        needle = (search_term or "").strip().lower()

        wanted: RowStatus | None = None
        if isinstance(status_filter, RowStatus):
            wanted = status_filter
        elif status_filter and status_filter.strip().lower() != STATUS_FILTER_ALL:
            wanted = RowStatus(status_filter)

        return [
            row for row in self._rows
            if (
                not needle
                or needle in row.original.order_id.lower()
                or needle in row.original.description.lower()
            )
            and (wanted is None or row.status is wanted)
        ]

    def update_field(self, row_id: int, field_name: str, value: Any) -> ReviewRow | None:
        """Apply a manual correction to one enriched field.

        The row drops any invoice rendered before the edit.

        Returns the updated row, or None (no-op) when the row does not exist or
        has no enriched data.

        Raises:
            ValueError: If `field_name` is not an enriched field or `value` does not fit it.
        """
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(
                f"Invalid field: {field_name}. Must be one of {', '.join(sorted(EDITABLE_FIELDS))}."
            )

        row = self.get(row_id)
        if row is None or row.enriched is None:
            return None

        enriched = EnrichedFields.model_validate({**row.enriched.model_dump(), field_name: value})
        # The invoice rendered from the old values no longer matches the row
        updated = row.model_copy(update={
            "enriched": enriched,
            "status": RowStatus.OK,
            "messages": [],
            "is_user_confirmed": True,
            "document_handle": None,
            "shipment_id": None,
        })
        self._replace(updated)

        logger.info("Row %d: %s manually set, status reset to OK", row_id, field_name)
        return updated

    def attach_document(self, row_id: int, handle: str, shipment_id: str) -> None:
        row = self.get(row_id)
        if row is None:
            raise ValueError(f"Row {row_id} not found")
        self._replace(row.model_copy(update={"document_handle": handle, "shipment_id": shipment_id}))

    def detach_document(self, row_id: int) -> None:
        row = self.get(row_id)
        if row is None:
            raise ValueError(f"Row {row_id} not found")
        self._replace(row.model_copy(update={"document_handle": None, "shipment_id": None}))

    def add_message(self, row_id: int, message: str) -> None:
        """Append `message` unless the row already carries it."""
        row = self.get(row_id)
        if row is None:
            raise ValueError(f"Row {row_id} not found")
        if message not in row.messages:
            self._replace(row.model_copy(update={"messages": [*row.messages, message]}))

    def discard_message(self, row_id: int, message: str) -> None:
        row = self.get(row_id)
        if row is None:
            raise ValueError(f"Row {row_id} not found")
        if message in row.messages:
            self._replace(row.model_copy(update={"messages": [m for m in row.messages if m != message]}))

    def counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in RowStatus}
        for row in self._rows:
            counts[row.status.value] += 1
        return counts

    def with_documents(self) -> list[ReviewRow]:
        return [row for row in self._rows if row.document_handle]
