from decimal import Decimal

import pytest

from dorisclient.exceptions import MalformedPayloadException
from dorisclient.utils.debezium.envelope import (
    ChangeOperation,
    decode_envelope,
    extract_database,
    extract_json_node,
    extract_table,
    history_table_identifier,
    source_table_identifier,
)


def test_decode_row_event():
    envelope = decode_envelope(
        b'{"op":"c","before":null,"after":{"id":1},"source":{"db":"d","table":"t"}}'
    )

    assert envelope.op_code == 'c'
    assert envelope.operation == ChangeOperation.CREATE
    assert envelope.before is None
    assert envelope.after == {'id': 1}
    assert envelope.is_row_change is True
    assert envelope.is_schema_change is False


def test_decode_schema_history_event():
    envelope = decode_envelope('{"source":{"db":"d","table":"t"},"historyRecord":"{}"}')

    assert envelope.op_code is None
    assert envelope.is_row_change is False
    assert envelope.is_schema_change is True


def test_envelope_without_op_or_history_is_neither():
    envelope = decode_envelope(b'{"source":{"db":"d","table":"t"}}')

    assert envelope.is_row_change is False
    assert envelope.is_schema_change is False


@pytest.mark.parametrize("payload", [b'{"op": "c",', b'not json', b'\xff\xfe', b''])
def test_decode_rejects_malformed_payload(payload: bytes):
    with pytest.raises(MalformedPayloadException):
        decode_envelope(payload)


@pytest.mark.parametrize("token", ['NaN', 'Infinity', '-Infinity'])
def test_decode_rejects_non_finite_number_tokens(token: str):
    payload = f'{{"op":"c","after":{{"x":{token}}},"source":{{"db":"d","table":"t"}}}}'

    with pytest.raises(MalformedPayloadException, match=token.lstrip('-')):
        decode_envelope(payload.encode('utf-8'))


@pytest.mark.parametrize("payload", [b'[1, 2]', b'"text"', b'42', b'null'])
def test_decode_rejects_non_object_payload(payload: bytes):
    with pytest.raises(MalformedPayloadException, match="JSON object"):
        decode_envelope(payload)


def test_decode_keeps_decimal_precision():
    envelope = decode_envelope(b'{"op":"c","after":{"price":12345678901234567890.10}}')

    assert envelope.after['price'] == Decimal('12345678901234567890.10')


def test_unknown_op_has_no_operation():
    envelope = decode_envelope(b'{"op":"x","after":{}}')

    assert envelope.operation is None
    assert envelope.is_row_change is True


def test_extract_json_node_is_null_safe():
    node = {'a': None, 'b': 'x', 'c': True, 'd': 3, 'e': {'k': 1}}

    assert extract_json_node(node, 'a') is None
    assert extract_json_node(node, 'missing') is None
    assert extract_json_node(None, 'a') is None
    assert extract_json_node(node, 'b') == 'x'
    assert extract_json_node(node, 'c') == 'true'
    assert extract_json_node(node, 'd') == '3'
    assert extract_json_node(node, 'e') == '{"k":1}'


def test_extract_database_prefers_schema():
    with_schema = decode_envelope(b'{"op":"c","source":{"db":"d","schema":"s","table":"t"}}')
    without_schema = decode_envelope(b'{"op":"c","source":{"db":"d","table":"t"}}')

    assert extract_database(with_schema) == 's'
    assert extract_database(without_schema) == 'd'
    assert extract_table(with_schema) == 't'


def test_extract_database_with_missing_source():
    envelope = decode_envelope(b'{"op":"c"}')

    assert extract_database(envelope) is None
    assert extract_table(envelope) is None
    assert source_table_identifier(envelope) == ''


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ('{"db":"d","table":"t"}', 'd.t'),
        ('{"db":"d","schema":"s","table":"t"}', 'd.s.t'),
        ('{"db":"d","schema":null,"table":"t"}', 'd.t'),
        ('{"db":"d","schema":" ","table":"t"}', 'd.t'),
    ],
)
def test_source_table_identifier(source: str, expected: str):
    envelope = decode_envelope(f'{{"op":"c","source":{source}}}')

    assert source_table_identifier(envelope) == expected


def test_history_table_identifier_uses_schema_when_present():
    envelope = decode_envelope(b'{"source":{"db":"d","schema":"s","table":"t"},"historyRecord":"{}"}')

    assert history_table_identifier(envelope) == 's.t'
