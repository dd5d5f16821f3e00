"""
Doris connection and serializer configuration.

Options can be built directly or read from Django settings:

    DORIS_CONFIG = {
        'FENODES': 'fe1:8030,fe2:8030',
        'USERNAME': 'root',
        'PASSWORD': '',
        'TABLE_IDENTIFIER': 'db.tbl',          # optional single-table override
        'TABLE_MAPPING': {'src_db.src_tbl': 'db.tbl'},
        'IGNORE_UPDATE_BEFORE': True,
        'LINE_DELIMITER': '\\n',
        'SOURCE_TABLE_NAME': 'src_db.src_tbl',  # optional DDL filter
        'DDL_PATTERN': None,
        'REQUEST_TIMEOUT': 10,
        'KAFKA': {'bootstrap.servers': 'localhost:9092', 'group.id': 'doris-sink'},
    }
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from django.conf import settings

from dorisclient.exceptions import DorisConfigException

logger = logging.getLogger(__name__)

DEFAULT_LINE_DELIMITER = '\n'
DEFAULT_REQUEST_TIMEOUT = 10


@dataclass(frozen=True)
class DorisOptions:
    """
    Connection options for a Doris cluster.

    Attributes:
        fenodes: Comma-separated FE http endpoints (host:port)
        username: Doris user
        password: Doris password
        table_identifier: Fixed target table 'db.tbl' (optional)
        request_timeout: Timeout in seconds for REST calls to the FE
    """
    fenodes: str
    username: str = 'root'
    password: str = ''
    table_identifier: Optional[str] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


@dataclass(frozen=True)
class SerializerOptions:
    """
    Options controlling how change envelopes are turned into Doris records.

    Attributes:
        table_mapping: Source 'db.[schema.]table' -> Doris 'db.table'
        ignore_update_before: Emit only the after image for updates
        line_delimiter: Delimiter between JSON lines in one payload
        source_table_name: Only apply schema changes captured for this 'db.table'
        ddl_pattern: Regex overriding the ADD/DROP column matcher
    """
    table_mapping: Dict[str, str] = field(default_factory=dict)
    ignore_update_before: bool = True
    line_delimiter: str = DEFAULT_LINE_DELIMITER
    source_table_name: Optional[str] = None
    ddl_pattern: Optional[str] = None


def split_table_identifier(table_identifier: Optional[str]) -> Tuple[str, str]:
    """
    Split a 'database.table' identifier.

    Raises:
        DorisConfigException: If the identifier is not of the form db.table
    """
    parts = (table_identifier or '').split('.')
    if len(parts) != 2 or not all(p.strip() for p in parts):
        raise DorisConfigException(
            f"Table identifier must be 'database.table', got: {table_identifier!r}"
        )
    return parts[0].strip(), parts[1].strip()


def get_doris_config() -> Dict[str, Any]:
    """
    Get the DORIS_CONFIG dictionary from Django settings.

    Returns:
        The configured dictionary, or an empty one when unset
    """
    return getattr(settings, 'DORIS_CONFIG', {}) or {}


def load_doris_options(config: Optional[Dict[str, Any]] = None) -> DorisOptions:
    """
    Build DorisOptions from a DORIS_CONFIG style dictionary.

    Args:
        config: Configuration dictionary (defaults to Django settings)
    """
    doris_config = get_doris_config() if config is None else config

    fenodes = doris_config.get('FENODES', '')
    if not fenodes or not str(fenodes).strip():
        raise DorisConfigException("DORIS_CONFIG['FENODES'] is required")

    return DorisOptions(
        fenodes=fenodes,
        username=doris_config.get('USERNAME', 'root'),
        password=doris_config.get('PASSWORD', ''),
        table_identifier=doris_config.get('TABLE_IDENTIFIER'),
        request_timeout=doris_config.get('REQUEST_TIMEOUT', DEFAULT_REQUEST_TIMEOUT),
    )


def load_serializer_options(config: Optional[Dict[str, Any]] = None) -> SerializerOptions:
    """
    Build SerializerOptions from a DORIS_CONFIG style dictionary.

    Args:
        config: Configuration dictionary (defaults to Django settings)
    """
    doris_config = get_doris_config() if config is None else config

    options = SerializerOptions(
        table_mapping=dict(doris_config.get('TABLE_MAPPING') or {}),
        ignore_update_before=doris_config.get('IGNORE_UPDATE_BEFORE', True),
        line_delimiter=doris_config.get('LINE_DELIMITER', DEFAULT_LINE_DELIMITER),
        source_table_name=doris_config.get('SOURCE_TABLE_NAME'),
        ddl_pattern=doris_config.get('DDL_PATTERN'),
    )
    logger.debug(
        f"Serializer options loaded: {len(options.table_mapping)} mapped tables, "
        f"ignore_update_before={options.ignore_update_before}"
    )
    return options
