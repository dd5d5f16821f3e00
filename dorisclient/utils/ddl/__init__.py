"""
DDL (Data Definition Language) handling for Doris light schema change.

Supports:
- MySQL sources via the Debezium schema history (ddl + tableChanges)
- Single-column ADD COLUMN / DROP COLUMN

Targets:
- Apache Doris
"""

from .operations import SchemaChangeIntent, SchemaChangeOperation
from .type_maps import MYSQL_TYPE_MAP, to_doris_type
from .ddl_parser import DDLParser, handle_default_value

__all__ = [
    'SchemaChangeIntent',
    'SchemaChangeOperation',
    'DDLParser',
    'handle_default_value',
    'to_doris_type',
    'MYSQL_TYPE_MAP',
]
