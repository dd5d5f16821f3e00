import json
import re
from unittest.mock import MagicMock

import pytest

from dorisclient.exceptions import MalformedPayloadException
from dorisclient.utils.ddl.ddl_parser import DDLParser, handle_default_value, quote_comment
from dorisclient.utils.ddl.operations import SchemaChangeIntent, SchemaChangeOperation
from dorisclient.utils.debezium.envelope import decode_envelope
from tests.factories import column, history_event


def _envelope(*args, **kwargs):
    return decode_envelope(json.dumps(history_event(*args, **kwargs)))


def test_add_int_column_renders_plain_alter():
    envelope = _envelope(
        'ALTER TABLE t ADD COLUMN age INT',
        columns=[column('id', 'INT', 1), column('age', 'INT', 2, length=0, scale=0)],
    )

    ddl = DDLParser().extract_ddl(envelope, 'db.tbl')

    assert ddl == 'ALTER TABLE db.tbl ADD COLUMN age INT'


def test_add_column_trusts_table_changes_over_ddl_text():
    envelope = _envelope(
        'alter table t add `Age` int(11) default 0',
        columns=[column('id', 'INT', 1), column('Age', 'VARCHAR', 2, length=10)],
    )

    ddl = DDLParser().extract_ddl(envelope, 'db.tbl')

    assert ddl == 'ALTER TABLE db.tbl ADD COLUMN Age VARCHAR(30)'


def test_add_column_with_default_and_comment():
    envelope = _envelope(
        "ALTER TABLE t ADD COLUMN price DECIMAL(10,2) DEFAULT 1.5 COMMENT 'unit price'",
        columns=[
            column('id', 'INT', 1),
            column('price', 'DECIMAL', 2, length=10, scale=2, default='1.5', comment='unit price'),
        ],
    )

    ddl = DDLParser().extract_ddl(envelope, 'db.tbl')

    assert ddl == "ALTER TABLE db.tbl ADD COLUMN price DECIMALV3(10,2) default '1.5' comment 'unit price'"


def test_add_column_default_with_inner_quote_is_escaped():
    envelope = _envelope(
        "ALTER TABLE t ADD COLUMN note VARCHAR(10) DEFAULT 'it''s'",
        columns=[column('id', 'INT', 1), column('note', 'VARCHAR', 2, length=10, default="it's")],
    )

    ddl = DDLParser().extract_ddl(envelope, 'db.tbl')

    assert ddl == "ALTER TABLE db.tbl ADD COLUMN note VARCHAR(30) default 'it\\'s'"


def test_add_timestamp_column_with_zero_epoch_default():
    envelope = _envelope(
        'ALTER TABLE t ADD COLUMN created TIMESTAMP DEFAULT CURRENT_TIMESTAMP',
        columns=[column('id', 'INT', 1), column('created', 'TIMESTAMP', 2, default='1970-01-01 00:00:00')],
    )

    ddl = DDLParser().extract_ddl(envelope, 'db.tbl')

    assert ddl == 'ALTER TABLE db.tbl ADD COLUMN created DATETIMEV2(0) default current_timestamp'


@pytest.mark.parametrize(
    "ddl_text",
    [
        'ALTER TABLE t DROP COLUMN age',
        'ALTER TABLE t DROP age',
        'alter table `d`.`t` drop column `age`',
    ],
)
def test_drop_column(ddl_text: str):
    envelope = _envelope(ddl_text, columns=[column('id', 'INT', 1)])

    parser = DDLParser()
    intent = parser.extract_intent(envelope)

    assert intent == SchemaChangeIntent(operation=SchemaChangeOperation.DROP, column_name='age')
    assert parser.render(intent, 'db.tbl') == 'ALTER TABLE db.tbl DROP COLUMN age'


def test_history_record_may_be_decoded_object():
    envelope = decode_envelope(json.dumps(history_event(
        'ALTER TABLE t DROP COLUMN age', as_text=False,
    )))

    assert DDLParser().extract_ddl(envelope, 'db.tbl') == 'ALTER TABLE db.tbl DROP COLUMN age'


@pytest.mark.parametrize("change_type", ['CREATE', 'DROP'])
def test_non_alter_entry_skips_pattern_matching(change_type: str):
    pattern = MagicMock()
    envelope = _envelope('CREATE TABLE t (id INT)', columns=[column('id', 'INT', 1)], change_type=change_type)

    assert DDLParser(pattern).extract_ddl(envelope, 'db.tbl') is None
    pattern.search.assert_not_called()


def test_missing_table_changes_is_not_a_ddl():
    envelope = decode_envelope(json.dumps({
        'source': {'db': 'd', 'table': 't'},
        'historyRecord': json.dumps({'ddl': 'ALTER TABLE t ADD COLUMN age INT', 'tableChanges': []}),
    }))

    assert DDLParser().extract_ddl(envelope, 'db.tbl') is None


@pytest.mark.parametrize(
    "ddl_text",
    [
        'ALTER TABLE t RENAME COLUMN a TO b',
        'ALTER TABLE t MODIFY COLUMN a BIGINT',
        '',
    ],
)
def test_unsupported_alter_is_not_a_ddl(ddl_text: str):
    envelope = _envelope(ddl_text, columns=[column('a', 'BIGINT', 1)])

    assert DDLParser().extract_ddl(envelope, 'db.tbl') is None


def test_add_unsupported_type_is_not_a_ddl():
    envelope = _envelope(
        'ALTER TABLE t ADD COLUMN pos POINT',
        columns=[column('id', 'INT', 1), column('pos', 'POINT', 2)],
    )

    assert DDLParser().extract_ddl(envelope, 'db.tbl') is None


def test_add_without_columns_is_not_a_ddl():
    envelope = _envelope('ALTER TABLE t ADD COLUMN age INT', columns=[])

    assert DDLParser().extract_ddl(envelope, 'db.tbl') is None


def test_malformed_history_record_raises():
    envelope = decode_envelope(b'{"source":{"db":"d","table":"t"},"historyRecord":"{not json"}')

    with pytest.raises(MalformedPayloadException):
        DDLParser().extract_intent(envelope)


def test_custom_pattern_is_used():
    pattern = re.compile(r'ALTER\s+TABLE\s+\S+\s+(ADD|DROP)\s+(COLUMN\s+)?(\S+)')
    envelope = _envelope('ALTER TABLE t DROP COLUMN age', columns=[column('id', 'INT', 1)])

    assert DDLParser(pattern).extract_ddl(envelope, 'db.tbl') == 'ALTER TABLE db.tbl DROP COLUMN age'

    case_sensitive = _envelope('alter table t drop column age', columns=[column('id', 'INT', 1)])
    assert DDLParser(pattern).extract_ddl(case_sensitive, 'db.tbl') is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('1970-01-01 00:00:00', 'current_timestamp'),
        ("'x'", "'x'"),
        ('"x"', '"x"'),
        ('abc', "'abc'"),
        ("it's", "'it\\'s'"),
        ('0', "'0'"),
        ('', None),
        ('   ', None),
        (None, None),
    ],
)
def test_handle_default_value(raw, expected):
    assert handle_default_value(raw) == expected


def test_quote_comment():
    assert quote_comment('user age') == "'user age'"
    assert quote_comment("'already'") == "'already'"
    assert quote_comment("it's") == "'it\\'s'"


def test_intent_request_params():
    drop = SchemaChangeIntent(operation=SchemaChangeOperation.DROP, column_name='age')
    add = SchemaChangeIntent(operation=SchemaChangeOperation.ADD, column_name='age', column_type='INT')
    nameless = SchemaChangeIntent(operation=SchemaChangeOperation.DROP, column_name=None)

    assert drop.to_request_params() == {'isDropColumn': True, 'columnName': 'age'}
    assert add.to_request_params() == {'isDropColumn': False, 'columnName': 'age'}
    assert nameless.to_request_params() == {'isDropColumn': True}


def test_intent_validity():
    assert SchemaChangeIntent(SchemaChangeOperation.DROP, 'age').is_valid
    assert SchemaChangeIntent(SchemaChangeOperation.ADD, 'age', 'INT').is_valid
    assert not SchemaChangeIntent(SchemaChangeOperation.ADD, 'age', '').is_valid
    assert not SchemaChangeIntent(SchemaChangeOperation.ADD, 'age').is_valid
    assert not SchemaChangeIntent(SchemaChangeOperation.DROP, ' ').is_valid
