"""
Kafka consumer driving the Doris serializer.

Reads Debezium JSON change events from Kafka, serializes each one and hands
the resulting DorisRecords to a sink callable (a stream-load writer).
Offsets are committed once per batch, after the sink has seen every record.
Retry and backoff belong to the caller.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from confluent_kafka import Consumer, KafkaError, KafkaException

from dorisclient.config import get_doris_config
from dorisclient.exceptions import MalformedPayloadException, SerializationException
from dorisclient.logging_utils import log_kafka_batch
from dorisclient.utils.debezium.record import DorisRecord
from dorisclient.utils.debezium.schema_serializer import JsonDebeziumSchemaSerializer

logger = logging.getLogger(__name__)

DEFAULT_CONSUMER_CONFIG = {
    'bootstrap.servers': 'localhost:9092',
    'group.id': 'doris-cdc-sink',
    'auto.offset.reset': 'earliest',
    'enable.auto.commit': False,
    'session.timeout.ms': 30000,
    'max.poll.interval.ms': 300000,
}


class DorisCDCConsumer:
    """
    Consume Debezium topics and feed the Doris serializer.
    """

    def __init__(
        self,
        serializer: JsonDebeziumSchemaSerializer,
        sink: Callable[[DorisRecord], Any],
        topics: List[str],
        consumer_config: Optional[Dict[str, Any]] = None,
        consumer: Optional[Any] = None
    ):
        """
        Args:
            serializer: Serializer for change events
            sink: Called with every DorisRecord produced
            topics: Kafka topics to subscribe to
            consumer_config: confluent_kafka config (defaults to DORIS_CONFIG['KAFKA'])
            consumer: Pre-built consumer (optional)
        """
        self.serializer = serializer
        self.sink = sink
        self.topics = topics

        if consumer is None:
            config = dict(DEFAULT_CONSUMER_CONFIG)
            config.update(consumer_config if consumer_config is not None else get_doris_config().get('KAFKA', {}))
            consumer = Consumer(config)
            logger.info(f"Kafka consumer created with group.id={config.get('group.id')}")

        self.consumer = consumer
        self.consumer.subscribe(self.topics)
        logger.info(f"Subscribed to CDC topics: {', '.join(self.topics)}")

    def process(self, timeout_sec: int = 30, max_messages: int = 100) -> Tuple[int, int]:
        """
        Process one batch of change events.

        Args:
            timeout_sec: Total time budget (seconds) to wait for messages
            max_messages: Maximum messages to process per call

        Returns:
            Tuple[int, int]: (processed_count, error_count)
        """
        processed = 0
        errors = 0
        last_msg = None
        start_time = time.time()

        try:
            messages = self.consumer.consume(num_messages=max_messages, timeout=timeout_sec)

            for msg in messages:
                if msg.error():
                    if msg.error().code() == KafkaError._PARTITION_EOF:
                        continue
                    logger.error(f"Kafka error: {msg.error()}")
                    errors += 1
                    continue

                last_msg = msg
                value = msg.value()
                if value is None:
                    # Debezium tombstone following a delete
                    continue

                try:
                    record = self.serializer.serialize(value)
                except (MalformedPayloadException, SerializationException) as e:
                    logger.error(
                        f"Failed to serialize message at {msg.topic()}[{msg.partition()}]@{msg.offset()}: {e}"
                    )
                    errors += 1
                    continue

                if record is not None:
                    self.sink(record)
                processed += 1

            if last_msg is not None:
                # Commits the consumed position of every assigned partition
                self.consumer.commit(asynchronous=False)

        except KafkaException as e:
            logger.error(f"Kafka exception: {e}")
            errors += 1

        log_kafka_batch(self.topics, processed, errors, time.time() - start_time)
        return processed, errors

    def close(self):
        """Close the underlying consumer."""
        try:
            self.consumer.close()
            logger.info("Kafka consumer closed")
        except KafkaException as e:
            logger.warning(f"Error closing Kafka consumer: {e}")
