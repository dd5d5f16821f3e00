"""
Type mappings for source databases to Doris column types.

Provides the MySQL source type table used when an ADD COLUMN is replayed
on Doris. Length and scale come from the Debezium tableChanges column
description and default to 0 when absent.
"""

import re
from typing import Dict, Optional

from dorisclient.exceptions import UnsupportedTypeException

# Doris types
BOOLEAN = 'BOOLEAN'
TINYINT = 'TINYINT'
SMALLINT = 'SMALLINT'
INT = 'INT'
BIGINT = 'BIGINT'
LARGEINT = 'LARGEINT'
FLOAT = 'FLOAT'
DOUBLE = 'DOUBLE'
DECIMAL_V3 = 'DECIMALV3'
DATE_V2 = 'DATEV2'
DATETIME_V2 = 'DATETIMEV2'
VARCHAR = 'VARCHAR'
STRING = 'STRING'
JSONB = 'JSONB'

MAX_VARCHAR_LENGTH = 65533
MAX_DECIMAL_PRECISION = 38
MAX_DATETIME_SCALE = 6


# MySQL source types -> Doris types (fixed-width types only; parameterized
# types are handled in to_doris_type)
MYSQL_TYPE_MAP: Dict[str, str] = {
    # Boolean types
    'BIT': BOOLEAN,
    'BOOL': BOOLEAN,
    'BOOLEAN': BOOLEAN,

    # Integer types (unsigned widens to the next Doris type)
    'TINYINT': TINYINT,
    'TINYINT UNSIGNED': SMALLINT,
    'SMALLINT': SMALLINT,
    'SMALLINT UNSIGNED': INT,
    'MEDIUMINT': INT,
    'MEDIUMINT UNSIGNED': INT,
    'INT': INT,
    'INTEGER': INT,
    'INT UNSIGNED': BIGINT,
    'INTEGER UNSIGNED': BIGINT,
    'BIGINT': BIGINT,
    'BIGINT UNSIGNED': LARGEINT,

    # Floating point types
    'FLOAT': FLOAT,
    'FLOAT UNSIGNED': FLOAT,
    'DOUBLE': DOUBLE,
    'DOUBLE UNSIGNED': DOUBLE,
    'DOUBLE PRECISION': DOUBLE,
    'REAL': DOUBLE,

    # Date/Time types
    'DATE': DATE_V2,
    'YEAR': SMALLINT,
    'TIME': STRING,

    # String types
    'TINYTEXT': STRING,
    'TEXT': STRING,
    'MEDIUMTEXT': STRING,
    'LONGTEXT': STRING,
    'ENUM': STRING,
    'SET': STRING,

    # Binary types
    'BINARY': STRING,
    'VARBINARY': STRING,
    'TINYBLOB': STRING,
    'BLOB': STRING,
    'MEDIUMBLOB': STRING,
    'LONGBLOB': STRING,

    # Other types
    'JSON': JSONB,
}

DECIMAL_TYPES = ('DECIMAL', 'DECIMAL UNSIGNED', 'NUMERIC', 'NUMERIC UNSIGNED', 'DEC', 'DEC UNSIGNED')
DATETIME_TYPES = ('DATETIME', 'TIMESTAMP')
CHAR_TYPES = ('CHAR', 'VARCHAR')


def normalize_type_name(source_type: str) -> str:
    """
    Normalize a Debezium typeName: upper case, single spaces, ZEROFILL and
    any '(...)' parameters dropped.

    Examples:
        >>> normalize_type_name('int unsigned zerofill')
        'INT UNSIGNED'
        >>> normalize_type_name('VARCHAR(32)')
        'VARCHAR'
    """
    type_upper = re.sub(r'\([^)]*\)', ' ', source_type.upper())
    parts = [p for p in type_upper.split() if p != 'ZEROFILL']
    return ' '.join(parts)


def to_doris_type(source_type: Optional[str], length: Optional[int] = 0, scale: Optional[int] = 0) -> str:
    """
    Map a MySQL column type to a Doris column type.

    Args:
        source_type: MySQL type name (e.g., 'VARCHAR', 'INT UNSIGNED')
        length: Column length/precision (0 when unknown)
        scale: Column scale (0 when unknown)

    Returns:
        Doris type string

    Raises:
        UnsupportedTypeException: If the type has no Doris equivalent

    Examples:
        >>> to_doris_type('INT')
        'INT'
        >>> to_doris_type('VARCHAR', 32)
        'VARCHAR(96)'
        >>> to_doris_type('DECIMAL', 10, 2)
        'DECIMALV3(10,2)'
    """
    if not source_type or not source_type.strip():
        raise UnsupportedTypeException("Empty source type")

    length = length or 0
    scale = scale or 0
    type_name = normalize_type_name(source_type)

    if type_name in DECIMAL_TYPES:
        if 0 < length <= MAX_DECIMAL_PRECISION:
            return f"{DECIMAL_V3}({length},{max(scale, 0)})"
        return STRING

    if type_name in DATETIME_TYPES:
        # Debezium reports fractional seconds precision as length when scale is absent
        fsp = scale if scale > 0 else length
        if fsp > 19:
            # JDBC-style display size: 'yyyy-MM-dd HH:mm:ss.' followed by the fraction
            fsp = fsp - 20
        return f"{DATETIME_V2}({min(max(fsp, 0), MAX_DATETIME_SCALE)})"

    if type_name in CHAR_TYPES:
        # Doris counts bytes, MySQL counts characters (utf8 up to 3 bytes)
        if length <= 0:
            return STRING
        doris_length = length * 3
        return STRING if doris_length > MAX_VARCHAR_LENGTH else f"{VARCHAR}({doris_length})"

    if type_name == 'TINYINT' and length == 1:
        return BOOLEAN

    doris_type = MYSQL_TYPE_MAP.get(type_name)
    if doris_type is None:
        raise UnsupportedTypeException(f"Unsupported MySQL type: {source_type}")
    return doris_type
