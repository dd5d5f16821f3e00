"""
Logging utility functions for structured logging
"""
import logging
import time
from contextlib import contextmanager

# Get loggers for different parts of the serializer
serializer_logger = logging.getLogger('dorisclient.serializer')
schema_logger = logging.getLogger('dorisclient.schema_change')
kafka_logger = logging.getLogger('dorisclient.kafka')


def log_with_context(logger, level, message, **context):
    """
    Log a message with additional context fields

    Args:
        logger: The logger instance to use
        level: Log level (INFO, ERROR, WARNING, etc.)
        message: The log message
        **context: Additional context fields (table_name, column_name, etc.)

    Example:
        log_with_context(
            schema_logger,
            'INFO',
            'Schema change applied',
            table_name='db.tbl',
            column_name='age',
            duration=0.4
        )
    """
    extra = {k: v for k, v in context.items() if v is not None}
    logger.log(getattr(logging, level.upper()), message, extra=extra)


@contextmanager
def log_operation(logger, operation_name, **context):
    """
    Context manager to log the start, end, and duration of an operation

    Example:
        with log_operation(schema_logger, 'schema_change', table_name='db.tbl'):
            client.execute_schema_change('db', ddl)
    """
    start_time = time.time()

    log_with_context(
        logger,
        'DEBUG',
        f'{operation_name} started',
        operation=operation_name,
        **context
    )

    try:
        yield

        duration = time.time() - start_time
        log_with_context(
            logger,
            'DEBUG',
            f'{operation_name} completed',
            operation=operation_name,
            duration=duration,
            status='success',
            **context
        )

    except Exception as e:
        duration = time.time() - start_time
        log_with_context(
            logger,
            'ERROR',
            f'{operation_name} failed: {str(e)}',
            operation=operation_name,
            duration=duration,
            status='failed',
            error_type=type(e).__name__,
            error_message=str(e),
            **context
        )
        raise


# ====================================
# SERIALIZER-SPECIFIC LOGGING FUNCTIONS
# ====================================

def log_record_dropped(table_name, reason, level='WARNING', **context):
    """Log a change envelope that produced no Doris record"""
    log_with_context(
        serializer_logger,
        level,
        f'Dropped change record for {table_name}: {reason}',
        table_name=table_name,
        operation='record_drop',
        reason=reason,
        **context
    )


def log_schema_change(table_name, ddl, status, duration=None):
    """Log the outcome of a light schema change"""
    level = 'INFO' if status == 'success' else 'WARNING'
    log_with_context(
        schema_logger,
        level,
        f'Schema change {status} for {table_name}: {ddl}',
        table_name=table_name,
        ddl=ddl,
        operation='schema_change',
        status=status,
        duration=duration
    )


def log_kafka_batch(topics, processed, errors, duration=None):
    """Log a consumed Kafka batch"""
    level = 'WARNING' if errors else 'DEBUG'
    log_with_context(
        kafka_logger,
        level,
        f'Kafka batch complete: {processed} processed, {errors} errors',
        topics=topics,
        operation='batch_consume',
        processed=processed,
        errors=errors,
        duration=duration
    )
