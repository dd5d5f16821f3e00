"""
Schema history DDL extraction for Doris light schema change.

Debezium schema history entry format (historyRecord, usually JSON text):
{
    "source": {...},
    "position": {...},
    "databaseName": "mydb",
    "ddl": "ALTER TABLE mytable ADD COLUMN age INT",
    "tableChanges": [
        {
            "type": "ALTER",
            "id": "\"mydb\".\"mytable\"",
            "table": {
                "columns": [..., {"name": "age", "typeName": "INT", ...}],
                "primaryKeyColumnNames": [...]
            }
        }
    ]
}

The DDL text is only used to recover the verb (ADD/DROP) and a first-pass
column name. For ADD, the column name, type, length, scale, default and
comment are taken from the last column of tableChanges, which Debezium
builds from parsed metadata.

Known limitation: only one column per ALTER statement is supported. For a
statement that changes several columns, only the first clause is matched.
"""

import logging
import re
from typing import Any, Dict, Optional, Union

from dorisclient.exceptions import UnsupportedTypeException
from dorisclient.utils.debezium.envelope import ChangeEnvelope, extract_json_node, loads
from .operations import SchemaChangeIntent, SchemaChangeOperation
from .type_maps import to_doris_type

logger = logging.getLogger(__name__)

# Groups: 1 = ADD|DROP, 3 = column name. Custom patterns must keep both.
ADD_DROP_DDL_REGEX = r'ALTER\s+TABLE\s+[^\s]+\s+(ADD|DROP)\s+(COLUMN\s+)?([^\s]+)(\s+([^\s]+))?.*'

EXECUTE_DDL = 'ALTER TABLE {table} {op} COLUMN {column}'

# Debezium reports CURRENT_TIMESTAMP defaults as the zero epoch
ZERO_EPOCH_DEFAULT = '1970-01-01 00:00:00'
CURRENT_TIMESTAMP = 'current_timestamp'

_QUOTED_VALUE = re.compile(r'([\'"]).*\1', re.DOTALL)


class DDLParser:
    """
    Translate schema history entries into Doris ALTER TABLE statements.
    """

    def __init__(self, pattern: Optional[Union[str, re.Pattern]] = None):
        """
        Args:
            pattern: Regex (text or compiled) overriding the ADD/DROP matcher
        """
        if pattern is None:
            pattern = ADD_DROP_DDL_REGEX
        self.pattern = re.compile(pattern, re.IGNORECASE) if isinstance(pattern, str) else pattern

    def extract_ddl(self, envelope: ChangeEnvelope, target_table: str) -> Optional[str]:
        """
        Build the Doris DDL for a schema history envelope.

        Args:
            envelope: Decoded schema history envelope
            target_table: Doris 'database.table'

        Returns:
            ALTER TABLE statement, or None when the entry is not a supported
            column change
        """
        intent = self.extract_intent(envelope)
        if intent is None:
            return None
        return self.render(intent, target_table)

    def extract_intent(self, envelope: ChangeEnvelope) -> Optional[SchemaChangeIntent]:
        """
        Extract the single-column change carried by a schema history entry.

        Raises:
            MalformedPayloadException: If historyRecord is not valid JSON
        """
        history_record = self._decode_history_record(envelope.history_record)
        if history_record is None:
            return None

        table_change = self._first_table_change(history_record)
        if table_change is None or str(table_change.get('type', '')).upper() != 'ALTER':
            logger.debug("Schema history entry is not an ALTER, skipping")
            return None

        ddl = extract_json_node(history_record, 'ddl')
        logger.debug(f"received debezium ddl: {ddl}")
        if not ddl or not ddl.strip():
            return None

        matcher = self.pattern.search(ddl)
        if not matcher:
            logger.info(f"DDL is not a single column ADD/DROP, skipping: {ddl}")
            return None

        operation = SchemaChangeOperation(matcher.group(1).upper())
        column_name = matcher.group(3).strip('`')

        if operation == SchemaChangeOperation.DROP:
            intent = SchemaChangeIntent(operation=operation, column_name=column_name)
        else:
            intent = self._build_add_intent(table_change)

        if intent is None or not intent.is_valid:
            logger.warning(f"Incomplete column change parsed from DDL, skipping: {ddl}")
            return None
        return intent

    def _build_add_intent(self, table_change: Dict[str, Any]) -> Optional[SchemaChangeIntent]:
        """Build an ADD intent from the last column of the ALTER table change."""
        table_info = table_change.get('table')
        columns = table_info.get('columns') if isinstance(table_info, dict) else None
        if not columns:
            logger.warning("ALTER table change carries no columns")
            return None

        column = columns[-1]
        type_name = extract_json_node(column, 'typeName')
        length = int(column.get('length') or 0)
        scale = int(column.get('scale') or 0)

        try:
            column_type = to_doris_type(type_name, length, scale)
        except UnsupportedTypeException as e:
            logger.warning(f"Cannot add column {column.get('name')}: {e}")
            return None

        return SchemaChangeIntent(
            operation=SchemaChangeOperation.ADD,
            column_name=extract_json_node(column, 'name'),
            column_type=column_type,
            default_value=handle_default_value(extract_json_node(column, 'defaultValueExpression')),
            comment=extract_json_node(column, 'comment'),
        )

    def render(self, intent: SchemaChangeIntent, target_table: str) -> str:
        """
        Render 'ALTER TABLE <table> <op> COLUMN <name> <type>[ default <v>][ comment <c>]'.
        """
        alter_ddl = EXECUTE_DDL.format(
            table=target_table,
            op=intent.operation.value,
            column=intent.column_name,
        )
        if intent.column_type:
            alter_ddl += f" {intent.column_type}"
        if intent.default_value and intent.default_value.strip():
            alter_ddl += f" default {intent.default_value}"
        if intent.comment and intent.comment.strip():
            alter_ddl += f" comment {quote_comment(intent.comment)}"
        logger.info(f"parsed alterDDL: {alter_ddl}")
        return alter_ddl

    @staticmethod
    def _decode_history_record(history_record: Any) -> Optional[Dict[str, Any]]:
        if isinstance(history_record, (str, bytes)):
            history_record = loads(history_record)
        return history_record if isinstance(history_record, dict) else None

    @staticmethod
    def _first_table_change(history_record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        table_changes = history_record.get('tableChanges')
        if not isinstance(table_changes, list) or not table_changes:
            return None
        first = table_changes[0]
        return first if isinstance(first, dict) else None


def handle_default_value(default_value: Optional[str]) -> Optional[str]:
    """
    Quote a column default for Doris.

    - blank -> None (no default clause)
    - already quoted -> unchanged
    - '1970-01-01 00:00:00' -> current_timestamp
    - anything else -> wrapped in single quotes, inner quotes escaped
    """
    if default_value is None or not default_value.strip():
        return None
    if _QUOTED_VALUE.fullmatch(default_value):
        return default_value
    if default_value == ZERO_EPOCH_DEFAULT:
        return CURRENT_TIMESTAMP
    escaped = default_value.replace("'", "\\'")
    return f"'{escaped}'"


def quote_comment(comment: str) -> str:
    """Single-quote a column comment unless it is already quoted."""
    if _QUOTED_VALUE.fullmatch(comment):
        return comment
    escaped = comment.replace("'", "\\'")
    return f"'{escaped}'"
