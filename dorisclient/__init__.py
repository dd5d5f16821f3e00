"""
Debezium JSON change-event serializer for Apache Doris.

Turns row-level change envelopes into stream-load JSON lines carrying the
Doris delete sign, and propagates single-column ADD/DROP schema changes to
Doris through the FE light schema change API.
"""

__version__ = '0.1.0'
