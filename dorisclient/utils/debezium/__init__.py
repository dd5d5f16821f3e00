"""
Debezium JSON change envelope handling for Doris stream load.
"""

from .envelope import ChangeEnvelope, ChangeOperation, decode_envelope
from .record import DORIS_DELETE_SIGN, ChangeRecordBuilder, DorisRecord, TableResolver

__all__ = [
    'ChangeEnvelope',
    'ChangeOperation',
    'ChangeRecordBuilder',
    'DORIS_DELETE_SIGN',
    'DorisRecord',
    'TableResolver',
    'decode_envelope',
]
