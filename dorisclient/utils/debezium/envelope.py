"""
Debezium JSON change envelope decoding.

A change envelope is either a row event:

    {"op": "u", "source": {"db": "d", "table": "t"},
     "before": {...}, "after": {...}}

or a schema history entry, which carries no "op":

    {"source": {"db": "d", "table": "t"},
     "historyRecord": "{\"ddl\": \"ALTER TABLE ...\", \"tableChanges\": [...]}"}

All field accessors are null-safe: a missing key or an explicit JSON null
yields None instead of an error.
"""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union

from dorisclient.exceptions import MalformedPayloadException

logger = logging.getLogger(__name__)


class ChangeOperation(str, Enum):
    """Debezium row operation codes."""
    READ = 'r'      # snapshot read
    CREATE = 'c'    # insert
    UPDATE = 'u'    # update
    DELETE = 'd'    # delete


@dataclass
class ChangeEnvelope:
    """
    A decoded change event.

    Attributes:
        op_code: Raw 'op' value, None for schema history entries
        source: Source block (db, schema, table, ...)
        before: Row image before the change
        after: Row image after the change
        history_record: Schema history payload (JSON text or decoded object)
        root: The full decoded document
    """
    op_code: Optional[str]
    source: Dict[str, Any] = field(default_factory=dict)
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    history_record: Optional[Any] = None
    root: Dict[str, Any] = field(default_factory=dict)

    @property
    def operation(self) -> Optional[ChangeOperation]:
        """Row operation, or None when op is absent or unknown."""
        try:
            return ChangeOperation(self.op_code)
        except ValueError:
            return None

    @property
    def is_row_change(self) -> bool:
        return self.op_code is not None

    @property
    def is_schema_change(self) -> bool:
        return self.op_code is None and self.history_record is not None


def loads(payload: Union[bytes, str]) -> Any:
    """
    Parse JSON text, keeping floating point numbers exact as Decimal.
    NaN and Infinity are not JSON and are rejected.

    Raises:
        MalformedPayloadException: If the payload is not valid JSON
    """
    try:
        if isinstance(payload, (bytes, bytearray)):
            payload = payload.decode('utf-8')
        return json.loads(payload, parse_float=Decimal, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError, TypeError) as e:
        raise MalformedPayloadException(f"Failed to parse change payload: {e}") from e


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Invalid JSON number: {token}")


def decode_envelope(payload: Union[bytes, str]) -> ChangeEnvelope:
    """
    Decode a raw change event into a ChangeEnvelope.

    Args:
        payload: UTF-8 encoded JSON document

    Returns:
        ChangeEnvelope

    Raises:
        MalformedPayloadException: If the payload is not a JSON object
    """
    root = loads(payload)
    if not isinstance(root, dict):
        raise MalformedPayloadException(
            f"Change payload must be a JSON object, got {type(root).__name__}"
        )

    source = root.get('source')
    before = root.get('before')
    after = root.get('after')

    return ChangeEnvelope(
        op_code=extract_json_node(root, 'op'),
        source=source if isinstance(source, dict) else {},
        before=before if isinstance(before, dict) else None,
        after=after if isinstance(after, dict) else None,
        history_record=root.get('historyRecord'),
        root=root,
    )


def extract_json_node(node: Any, key: str) -> Optional[str]:
    """
    Read a field as text.

    Args:
        node: Decoded JSON object (or None)
        key: Field name

    Returns:
        Text value, or None when the node or field is missing or null
    """
    if not isinstance(node, dict):
        return None
    value = node.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (dict, list)):
        return dumps(value)
    return str(value)


def dumps(value: Any) -> str:
    """Render a decoded value as compact JSON, writing Decimal exactly."""
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False, allow_nan=False,
                      default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def extract_database(envelope: ChangeEnvelope) -> Optional[str]:
    """
    Source database name.

    'schema' wins over 'db' when the source block has it, which keeps
    schema-based sources (PostgreSQL, Oracle) compatible.
    """
    if 'schema' in envelope.source:
        return extract_json_node(envelope.source, 'schema')
    return extract_json_node(envelope.source, 'db')


def extract_table(envelope: ChangeEnvelope) -> Optional[str]:
    return extract_json_node(envelope.source, 'table')


def source_table_identifier(envelope: ChangeEnvelope) -> str:
    """
    Identity used to look up the target table: 'db.table' or 'db.schema.table'.
    """
    db = extract_json_node(envelope.source, 'db')
    schema = extract_json_node(envelope.source, 'schema')
    table = extract_table(envelope)
    return table_identifier(db, schema, table)


def table_identifier(db: Optional[str], schema: Optional[str], table: Optional[str]) -> str:
    """Join the non-blank identity parts with '.'."""
    return '.'.join(part for part in (db, schema, table) if part and part.strip())


def history_table_identifier(envelope: ChangeEnvelope) -> str:
    """Identity compared against the configured source table for DDL: 'db.table'."""
    return f"{extract_database(envelope)}.{extract_table(envelope)}"
