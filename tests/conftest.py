
import pytest
from django.conf import settings

from dorisclient.config import DorisOptions

if not settings.configured:
    settings.configure(
        DORIS_CONFIG={
            'FENODES': 'fe1:8030,fe2:8030',
            'USERNAME': 'root',
            'PASSWORD': 'secret',
            'TABLE_MAPPING': {'d.t': 'd2.t2'},
            'IGNORE_UPDATE_BEFORE': False,
            'LINE_DELIMITER': '\n',
            'KAFKA': {'bootstrap.servers': 'kafka:9092', 'group.id': 'test-group'},
        }
    )


@pytest.fixture
def doris_options() -> DorisOptions:
    return DorisOptions(fenodes='127.0.0.1:8030', username='root', password='secret')
