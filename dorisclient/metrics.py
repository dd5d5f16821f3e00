"""
Prometheus metrics for Doris CDC serialization and schema changes
"""
from prometheus_client import Counter, Histogram

# ====================================
# ROW SERIALIZATION METRICS
# ====================================
records_serialized_total = Counter(
    'doris_cdc_records_serialized_total',
    'Total number of change envelopes serialized into Doris records',
    ['operation']  # operation: read/create/update/delete
)

records_dropped_total = Counter(
    'doris_cdc_records_dropped_total',
    'Total number of change envelopes dropped without a Doris record',
    ['reason']  # reason: unresolved_table/unknown_op/invalid_envelope
)

# ====================================
# SCHEMA CHANGE METRICS
# ====================================
schema_changes_total = Counter(
    'doris_cdc_schema_changes_total',
    'Total number of schema change attempts',
    ['status']  # status: success/refused/failed/skipped
)

doris_request_duration = Histogram(
    'doris_cdc_rest_request_duration_seconds',
    'Time taken by Doris FE REST calls',
    ['api'],  # api: check_schema_change/execute_schema_change
    buckets=(0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, float("inf"))
)
