"""
Debezium JSON serializer for Doris with light schema change.

Entry points:
- serialize(payload): one raw change event -> DorisRecord or None
- schema_change(envelope): replay a schema history entry on Doris -> bool
"""

import logging
import re
import time
from typing import Mapping, Optional, Union

from dorisclient import metrics
from dorisclient.config import (
    DorisOptions,
    load_doris_options,
    load_serializer_options,
    split_table_identifier,
)
from dorisclient.logging_utils import log_operation, log_record_dropped, log_schema_change, schema_logger
from dorisclient.utils.ddl.ddl_parser import DDLParser
from dorisclient.utils.doris.rest_client import DorisRestClient
from .envelope import ChangeEnvelope, decode_envelope, history_table_identifier, source_table_identifier
from .record import ChangeRecordBuilder, DorisRecord, TableResolver

logger = logging.getLogger(__name__)


class JsonDebeziumSchemaSerializer:
    """
    Serialize Debezium JSON change events for Doris stream load.

    Row events become JSON lines carrying the Doris delete sign. Schema
    history events (no 'op') are translated to ALTER TABLE statements and
    applied through the FE light schema change API.
    """

    def __init__(
        self,
        doris_options: DorisOptions,
        pattern: Optional[Union[str, re.Pattern]] = None,
        source_table_name: Optional[str] = None,
        table_mapping: Optional[Mapping[str, str]] = None,
        ignore_update_before: bool = True,
        line_delimiter: str = '\n',
        rest_client: Optional[DorisRestClient] = None
    ):
        """
        Args:
            doris_options: Doris connection options
            pattern: Regex overriding the ADD/DROP column DDL matcher
            source_table_name: Only replay schema changes of this source 'db.table'
            table_mapping: Source 'db.[schema.]table' -> Doris 'db.table'
            ignore_update_before: Emit only the after image for updates
            line_delimiter: Delimiter between JSON lines in one payload
            rest_client: Doris REST client (defaults to one built from doris_options)
        """
        self.doris_options = doris_options
        self.source_table_name = source_table_name
        self.resolver = TableResolver(doris_options.table_identifier, table_mapping)
        self.record_builder = ChangeRecordBuilder(
            self.resolver,
            ignore_update_before=ignore_update_before,
            line_delimiter=line_delimiter,
        )
        self.ddl_parser = DDLParser(pattern)
        self.rest_client = rest_client or DorisRestClient(doris_options)

    @classmethod
    def from_settings(cls, rest_client: Optional[DorisRestClient] = None) -> 'JsonDebeziumSchemaSerializer':
        """Build a serializer from settings.DORIS_CONFIG."""
        options = load_serializer_options()
        return cls(
            load_doris_options(),
            pattern=options.ddl_pattern,
            source_table_name=options.source_table_name,
            table_mapping=options.table_mapping,
            ignore_update_before=options.ignore_update_before,
            line_delimiter=options.line_delimiter,
            rest_client=rest_client,
        )

    def serialize(self, payload: Union[bytes, str]) -> Optional[DorisRecord]:
        """
        Serialize one change event.

        Args:
            payload: Raw Debezium JSON

        Returns:
            DorisRecord for row events, None for schema changes and dropped events

        Raises:
            MalformedPayloadException: If the payload is not a JSON object
            SerializationException: If a row cannot be rendered
        """
        logger.debug(f"received debezium json data: {payload!r}")
        envelope = decode_envelope(payload)

        if envelope.is_row_change:
            return self.record_builder.build(envelope)

        if envelope.is_schema_change:
            self.schema_change(envelope)
            return None

        log_record_dropped(
            source_table_identifier(envelope) or 'unknown',
            'envelope has neither op nor historyRecord',
        )
        metrics.records_dropped_total.labels(reason='invalid_envelope').inc()
        return None

    def schema_change(self, envelope: ChangeEnvelope) -> bool:
        """
        Replay a schema history entry on Doris.

        Returns:
            bool: True if the ALTER was executed. Filtered, non-ALTER,
            refused and failed changes all return False.
        """
        status = False
        try:
            if self.source_table_name and self.source_table_name.strip() and not self.check_table(envelope):
                metrics.schema_changes_total.labels(status='skipped').inc()
                return False

            doris_table = self.resolver.resolve(source_table_identifier(envelope))
            if not doris_table:
                logger.info(f"No Doris table for schema change of {source_table_identifier(envelope)}")
                metrics.schema_changes_total.labels(status='skipped').inc()
                return False

            intent = self.ddl_parser.extract_intent(envelope)
            if intent is None:
                logger.info(f"ddl can not do schema change: {envelope.root}")
                metrics.schema_changes_total.labels(status='skipped').inc()
                return False
            ddl = self.ddl_parser.render(intent, doris_table)

            database, table = split_table_identifier(doris_table)
            if not self.rest_client.check_schema_change(database, table, intent.to_request_params()):
                log_schema_change(doris_table, ddl, 'refused')
                metrics.schema_changes_total.labels(status='refused').inc()
                return False

            start_time = time.time()
            with log_operation(schema_logger, 'schema_change', table_name=doris_table):
                status = self.rest_client.execute_schema_change(database, ddl)

            log_schema_change(doris_table, ddl, 'success' if status else 'failed', time.time() - start_time)
            metrics.schema_changes_total.labels(status='success' if status else 'failed').inc()
        except Exception as e:
            logger.warning(f"schema change error: {e}", exc_info=True)
            metrics.schema_changes_total.labels(status='failed').inc()
        return status

    def check_table(self, envelope: ChangeEnvelope) -> bool:
        """
        Whether a schema history entry belongs to the configured source table.

        One capture stream can carry schema changes of several tables.
        """
        return self.source_table_name == history_table_identifier(envelope)
