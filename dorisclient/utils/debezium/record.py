"""
Row-level change records for Doris stream load.

Every normalized row carries the Doris delete sign column, so the stream
loader treats all writes as inserts and tombstones uniformly:

- read/create: after image, sign "0"
- delete:      before image, sign "1"
- update:      before image with sign "1" followed by the after image with
               sign "0" (or only the after image when ignore_update_before)
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from dorisclient import metrics
from dorisclient.exceptions import SerializationException
from dorisclient.logging_utils import log_record_dropped
from .envelope import ChangeEnvelope, ChangeOperation, dumps, source_table_identifier

logger = logging.getLogger(__name__)

DORIS_DELETE_SIGN = '__DORIS_DELETE_SIGN__'


@dataclass(frozen=True)
class DorisRecord:
    """
    A stream-load payload addressed to one Doris table.

    Attributes:
        table: Target table identifier 'database.table'
        payload: UTF-8 JSON lines
    """
    table: str
    payload: bytes

    @property
    def database(self) -> str:
        return self.table.split('.', 1)[0]

    @property
    def table_name(self) -> str:
        return self.table.split('.', 1)[-1]


def extract_row(row_node: Any) -> Dict[str, Any]:
    """
    Flatten a before/after image into a column -> value dict.

    An absent or null image yields an empty dict. The delete sign is not set.
    """
    if not isinstance(row_node, dict):
        return {}
    return dict(row_node)


def add_delete_sign(row: Dict[str, Any], delete: bool) -> Dict[str, Any]:
    row[DORIS_DELETE_SIGN] = '1' if delete else '0'
    return row


class TableResolver:
    """
    Resolve a captured source table to its Doris table.

    A non-blank table_identifier routes every source table to that one
    Doris table (single-table sink). Otherwise the static mapping decides,
    and an unmapped table resolves to None.
    """

    def __init__(
        self,
        table_identifier: Optional[str] = None,
        table_mapping: Optional[Mapping[str, str]] = None
    ):
        self.table_identifier = table_identifier
        self.table_mapping = MappingProxyType(dict(table_mapping or {}))

    def resolve(self, source_identifier: Optional[str]) -> Optional[str]:
        """
        Args:
            source_identifier: 'db.table' or 'db.schema.table'

        Returns:
            Doris 'database.table', or None when the table is not listened to
        """
        if self.table_identifier and self.table_identifier.strip():
            return self.table_identifier
        if not self.table_mapping or not source_identifier or not source_identifier.strip():
            return None
        return self.table_mapping.get(source_identifier)


class ChangeRecordBuilder:
    """Builds DorisRecords from decoded row-change envelopes."""

    def __init__(
        self,
        resolver: TableResolver,
        ignore_update_before: bool = True,
        line_delimiter: str = '\n'
    ):
        self.resolver = resolver
        self.ignore_update_before = ignore_update_before
        self.line_delimiter = line_delimiter

    def build(self, envelope: ChangeEnvelope) -> Optional[DorisRecord]:
        """
        Build the Doris record for one row change.

        Returns:
            DorisRecord, or None if the table is not mapped or op is unknown

        Raises:
            SerializationException: If a row cannot be rendered as JSON
        """
        cdc_table = source_table_identifier(envelope)
        doris_table = self.resolver.resolve(cdc_table)
        if not doris_table:
            log_record_dropped(cdc_table, 'table is not listened')
            metrics.records_dropped_total.labels(reason='unresolved_table').inc()
            return None

        operation = envelope.operation
        if operation in (ChangeOperation.READ, ChangeOperation.CREATE):
            payload = self._render(add_delete_sign(extract_row(envelope.after), False))
        elif operation == ChangeOperation.DELETE:
            payload = self._render(add_delete_sign(extract_row(envelope.before), True))
        elif operation == ChangeOperation.UPDATE:
            payload = self._render_update(envelope)
        else:
            logger.error(f"parse record fail, unknown op {envelope.op_code} in {envelope.root}")
            metrics.records_dropped_total.labels(reason='unknown_op').inc()
            return None

        metrics.records_serialized_total.labels(operation=operation.name.lower()).inc()
        return DorisRecord(doris_table, payload.encode('utf-8'))

    def _render_update(self, envelope: ChangeEnvelope) -> str:
        """Turn an update into delete-old plus insert-new lines."""
        lines = []
        if not self.ignore_update_before:
            lines.append(self._render(add_delete_sign(extract_row(envelope.before), True)))
        lines.append(self._render(add_delete_sign(extract_row(envelope.after), False)))
        return self.line_delimiter.join(lines)

    @staticmethod
    def _render(row: Dict[str, Any]) -> str:
        try:
            return dumps(row)
        except (TypeError, ValueError) as e:
            raise SerializationException(f"Failed to serialize row: {e}") from e

