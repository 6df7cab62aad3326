from datetime import date
from unittest.mock import MagicMock, patch

import pytest
import yaml
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import types as sqltypes

from schema_load.metadata_parser.main import (
    dump_descriptors,
    load_descriptors,
    main,
    parse,
    parse_database,
)
from schema_load.metadata_parser.sources import (
    ColumnInfo,
    SqlAlchemyMetadataSource,
    TableRef,
    YamlMetadataSource,
    sql_type_for,
)
from schema_load.pojo_generator.main import GenerationOptions, check, generate_all
from schema_load.pojo_generator.overwrite import OverwriteState, always_yes
from schema_load.shared.errors import (
    MetadataAccessError,
    SchemaError,
    SchemaValidationError,
)
from schema_load.shared.model import NamingOptions
from schema_load.shared.schema_loader import SchemaCache
from schema_load.shared.types import SqlType

PRIMITIVES_DDL = """
CREATE TABLE PRIMITIVES (
    pk INTEGER PRIMARY KEY,
    boolCol BOOLEAN NOT NULL,
    smallIntCol SMALLINT NOT NULL,
    intCol INTEGER NOT NULL,
    bigIntCol BIGINT NOT NULL,
    doubleCol DOUBLE NOT NULL,
    realCol REAL,
    bigDecimalCol DECIMAL(10, 2),
    strCol VARCHAR(10),
    dateCol DATE,
    tsCol TIMESTAMP,
    binCol BLOB
)
"""

ORDER_ITEMS_DDL = """
CREATE TABLE ORDER_ITEMS (
    item_no INTEGER NOT NULL,
    order_id BIGINT NOT NULL,
    qty INTEGER,
    PRIMARY KEY (order_id, item_no)
)
"""


class FakeSource:
    """In-memory metadata source."""

    def __init__(self, tables, fail_on=None):
        self._tables = tables
        self._fail_on = fail_on
        self.calls = []

    def list_tables(self):
        if self._fail_on == "*":
            raise RuntimeError("connection reset")
        return [ref for ref in self._tables]

    def list_columns(self, table):
        self.calls.append(table.name)
        if table.name == self._fail_on:
            raise RuntimeError("connection reset")
        return self._tables[table][0]

    def list_primary_key_columns(self, table):
        return self._tables[table][1]


def _fake_tables():
    return {
        TableRef("ORDERS"): (
            [
                ColumnInfo("ID", SqlType.INTEGER, nullable=False),
                ColumnInfo("NAME", SqlType.VARCHAR, precision=64),
            ],
            ["ID"],
        ),
        TableRef("ITEMS"): (
            [ColumnInfo("SKU", SqlType.VARCHAR), ColumnInfo("QTY", SqlType.INTEGER)],
            [],
        ),
    }


@pytest.fixture
def sqlite_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'app.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text(PRIMITIVES_DDL))
        conn.execute(text(ORDER_ITEMS_DDL))
    engine.dispose()
    return url


def _write_schema(path, tables):
    path.write_text(yaml.safe_dump({"tables": tables}, sort_keys=False))
    return path


class TestParse:
    def test_enumeration_order(self):
        descriptors = parse(FakeSource(_fake_tables()))
        assert [d.table for d in descriptors] == ["ORDERS", "ITEMS"]

    def test_partition(self):
        orders, items = parse(FakeSource(_fake_tables()))
        assert [c.name for c in orders.key_columns] == ["ID"]
        assert [c.name for c in orders.value_columns] == ["NAME"]
        assert items.key_columns == ()
        assert items.key_class_name == ""

    def test_naming_options(self):
        orders, _ = parse(FakeSource(_fake_tables()), naming=NamingOptions(key_suffix="Id"))
        assert orders.key_class_name == "OrdersId"

    def test_column_failure_names_table(self):
        source = FakeSource(_fake_tables(), fail_on="ITEMS")

        with pytest.raises(MetadataAccessError) as exc_info:
            parse(source)

        assert exc_info.value.table == "ITEMS"
        assert "connection reset" in str(exc_info.value)

    def test_listing_failure(self):
        with pytest.raises(MetadataAccessError) as exc_info:
            parse(FakeSource(_fake_tables(), fail_on="*"))
        assert "Failed to list tables" in str(exc_info.value)

    def test_empty_table_rejected(self):
        source = FakeSource({TableRef("EMPTY"): ([], [])})
        with pytest.raises(SchemaValidationError):
            parse(source)

    def test_empty_database(self):
        assert parse(FakeSource({})) == []

    def test_scalar_key_with_unmapped_type(self):
        source = FakeSource(
            {
                TableRef("GOOD"): ([ColumnInfo("ID", SqlType.INTEGER, nullable=False)], ["ID"]),
                TableRef("ODD"): (
                    [ColumnInfo("ID", SqlType.ARRAY), ColumnInfo("NAME", SqlType.VARCHAR)],
                    ["ID"],
                ),
            }
        )

        good, odd = parse(source, naming=NamingOptions(single_key_as_scalar=True))

        assert good.key_class_name == "Integer"
        assert odd.key_is_scalar
        assert odd.key_class_name == ""
        assert odd.value_class_name == "Odd"


class TestSqlTypeFor:
    @pytest.mark.parametrize(
        "type_,expected",
        [
            (sqltypes.INTEGER(), SqlType.INTEGER),
            (sqltypes.BigInteger(), SqlType.BIGINT),
            (sqltypes.SmallInteger(), SqlType.SMALLINT),
            (sqltypes.Boolean(), SqlType.BOOLEAN),
            (sqltypes.VARCHAR(20), SqlType.VARCHAR),
            (sqltypes.Text(), SqlType.LONGVARCHAR),
            (sqltypes.DECIMAL(10, 2), SqlType.DECIMAL),
            (sqltypes.Numeric(10, 2), SqlType.NUMERIC),
            (sqltypes.Float(), SqlType.FLOAT),
            (sqltypes.DateTime(), SqlType.TIMESTAMP),
            (sqltypes.Date(), SqlType.DATE),
            (sqltypes.LargeBinary(), SqlType.LONGVARBINARY),
            (sqltypes.NullType(), SqlType.NULL),
        ],
    )
    def test_known_types(self, type_, expected):
        assert sql_type_for(type_) == expected

    def test_unknown_type(self):
        assert sql_type_for(sqltypes.JSON()) == SqlType.OTHER


class TestSqlAlchemySource:
    def test_parse_database(self, sqlite_url):
        descriptors = {d.table: d for d in parse_database(sqlite_url)}
        assert set(descriptors) == {"PRIMITIVES", "ORDER_ITEMS"}

        primitives = descriptors["PRIMITIVES"]
        assert [c.name for c in primitives.key_columns] == ["pk"]
        assert primitives.key_columns[0].nullable is False
        assert [c.name for c in primitives.value_columns][:3] == ["boolCol", "smallIntCol", "intCol"]

        types = {c.name: c.java_type().name for c in primitives.columns}
        assert types["pk"] == "int"
        assert types["boolCol"] == "boolean"
        assert types["smallIntCol"] == "short"
        assert types["bigIntCol"] == "long"
        assert types["doubleCol"] == "double"
        assert types["realCol"] == "Float"
        assert types["bigDecimalCol"] == "BigDecimal"
        assert types["strCol"] == "String"
        assert types["dateCol"] == "Date"
        assert types["tsCol"] == "Timestamp"
        assert types["binCol"] == "byte[]"

    def test_composite_key_in_ordinal_order(self, sqlite_url):
        descriptors = {d.table: d for d in parse_database(sqlite_url)}
        items = descriptors["ORDER_ITEMS"]
        assert [c.name for c in items.key_columns] == ["order_id", "item_no"]
        assert [c.name for c in items.value_columns] == ["qty"]
        assert items.key_class_name == "OrderItemsKey"

    def test_precision_and_scale(self, sqlite_url):
        primitives = next(d for d in parse_database(sqlite_url) if d.table == "PRIMITIVES")
        decimal = next(c for c in primitives.columns if c.name == "bigDecimalCol")
        assert (decimal.precision, decimal.scale) == (10, 2)

    def test_views(self, sqlite_url):
        engine = create_engine(sqlite_url)
        with engine.begin() as conn:
            conn.execute(text("CREATE VIEW ORDER_QTY AS SELECT order_id, qty FROM ORDER_ITEMS"))

        try:
            without = [d.table for d in parse_database(engine)]
            with_views = {d.table: d for d in parse_database(engine, include_views=True)}
        finally:
            engine.dispose()

        assert "ORDER_QTY" not in without
        view = with_views["ORDER_QTY"]
        assert view.is_view
        assert view.key_columns == ()

    def test_connect_failure(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'missing' / 'app.db'}"
        with pytest.raises(MetadataAccessError) as exc_info:
            parse_database(url)
        assert "Failed to connect" in str(exc_info.value)

    def test_connection_closed_on_error(self, sqlite_url):
        engine = create_engine(sqlite_url)
        try:
            with pytest.raises(RuntimeError):
                with SqlAlchemyMetadataSource.connect(engine):
                    raise RuntimeError("boom")
            assert engine.pool.checkedout() == 0
        finally:
            engine.dispose()

    def test_engine_disposed_when_connect_fails(self):
        engine = MagicMock()
        engine.connect.side_effect = SQLAlchemyError("server closed the connection")

        with patch("schema_load.metadata_parser.sources.create_engine", return_value=engine):
            with pytest.raises(MetadataAccessError) as exc_info:
                parse_database("postgresql://db.example/app")

        assert "server closed the connection" in str(exc_info.value)
        engine.dispose.assert_called_once_with()

    def test_caller_engine_not_disposed(self, sqlite_url):
        engine = create_engine(sqlite_url)
        try:
            with patch.object(engine, "dispose") as dispose:
                parse_database(engine)
            dispose.assert_not_called()
        finally:
            engine.dispose()


class TestYamlSource:
    def test_tables_and_keys(self, tmp_path):
        path = _write_schema(
            tmp_path / "app.yaml",
            [
                {
                    "name": "ORDERS",
                    "schema": "PUBLIC",
                    "primary_key": ["ID"],
                    "columns": [
                        {"name": "ID", "type": "INTEGER", "nullable": False},
                        {"name": "TOTAL", "type": "DECIMAL", "precision": 12, "scale": 2},
                    ],
                },
                {
                    "name": "TAGS",
                    "columns": [
                        {"name": "TAG", "type": "varchar", "primary_key": True},
                        {"name": "LABEL", "type": 12},
                    ],
                },
            ],
        )
        source = YamlMetadataSource([path], cache=SchemaCache())

        tables = source.list_tables()
        assert tables == [TableRef("ORDERS", "PUBLIC"), TableRef("TAGS")]
        assert source.list_primary_key_columns(tables[1]) == ["TAG"]
        assert source.list_columns(tables[0])[1] == ColumnInfo(
            "TOTAL", SqlType.DECIMAL, True, 12, 2
        )

    def test_missing_tables_list(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("version: 1\n")

        with pytest.raises(SchemaValidationError) as exc_info:
            YamlMetadataSource([path], cache=SchemaCache()).list_tables()
        assert "'tables' list" in str(exc_info.value)

    def test_missing_column_type(self, tmp_path):
        path = _write_schema(tmp_path / "app.yaml", [{"name": "T", "columns": [{"name": "A"}]}])

        with pytest.raises(SchemaValidationError) as exc_info:
            YamlMetadataSource([path], cache=SchemaCache()).list_tables()
        assert exc_info.value.field == "A"

    def test_duplicate_table(self, tmp_path):
        table = {"name": "T", "columns": [{"name": "A", "type": "INTEGER"}]}
        path = _write_schema(tmp_path / "app.yaml", [table, table])

        with pytest.raises(SchemaValidationError) as exc_info:
            YamlMetadataSource([path], cache=SchemaCache()).list_tables()
        assert "duplicate table 'T'" in str(exc_info.value)

    def test_unknown_type_name_maps_to_other(self, tmp_path):
        path = _write_schema(
            tmp_path / "app.yaml",
            [{"name": "T", "columns": [{"name": "G", "type": "GEOMETRY"}]}],
        )
        source = YamlMetadataSource([path], cache=SchemaCache())
        assert source.list_columns(TableRef("T"))[0].sql_type == SqlType.OTHER


class TestDumpDescriptors:
    def test_dump_loads_back_equal(self, sqlite_url, tmp_path):
        descriptors = parse_database(sqlite_url)
        path = tmp_path / "dump.yaml"
        path.write_text(yaml.safe_dump(dump_descriptors(descriptors), sort_keys=False))

        assert parse(YamlMetadataSource([path], cache=SchemaCache())) == descriptors

    def test_layout(self):
        orders, _ = parse(FakeSource(_fake_tables()))
        data = dump_descriptors([orders])
        assert data == {
            "tables": [
                {
                    "name": "ORDERS",
                    "primary_key": ["ID"],
                    "columns": [
                        {"name": "ID", "type": "INTEGER", "nullable": False},
                        {"name": "NAME", "type": "VARCHAR", "nullable": True, "precision": 64},
                    ],
                }
            ]
        }


class TestLoadDescriptors:
    def test_from_directory(self, tmp_path):
        _write_schema(
            tmp_path / "app.yaml",
            [{"name": "T", "primary_key": "A", "columns": [{"name": "A", "type": "INT"}]}],
        )
        (descriptor,) = load_descriptors([tmp_path])
        assert descriptor.key_class_name == "TKey"

    def test_from_url(self, sqlite_url):
        assert len(load_descriptors([], url=sqlite_url)) == 2

    def test_both_inputs(self, tmp_path, sqlite_url):
        with pytest.raises(SchemaError) as exc_info:
            load_descriptors([tmp_path], url=sqlite_url)
        assert "not both" in str(exc_info.value)

    def test_no_schema_files(self, tmp_path):
        with pytest.raises(SchemaError) as exc_info:
            load_descriptors([tmp_path])
        assert "No schema files found" in str(exc_info.value)


class TestMain:
    def test_prints_yaml(self, sqlite_url, capsys):
        main(["--url", sqlite_url])

        data = yaml.safe_load(capsys.readouterr().out)
        assert {t["name"] for t in data["tables"]} == {"PRIMITIVES", "ORDER_ITEMS"}

    def test_writes_output(self, sqlite_url, tmp_path, capsys):
        output = tmp_path / "schema.yaml"
        main(["--url", sqlite_url, "-o", str(output)])

        assert "Wrote 2 table(s)" in capsys.readouterr().out
        assert "PRIMITIVES" in output.read_text()

    def test_error_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "missing.yaml")])
        assert str(exc_info.value.code).startswith("Error:")


class TestEndToEnd:
    def test_database_to_java_sources(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'e2e.db'}"
        engine = create_engine(url)
        with engine.begin() as conn:
            conn.execute(
                text(
                    "CREATE TABLE PRIMITIVES ("
                    "pk INTEGER PRIMARY KEY, "
                    "boolCol BOOLEAN NOT NULL, "
                    "strCol VARCHAR(10), "
                    "bigDecimalCol DECIMAL(10, 0))"
                )
            )
        engine.dispose()

        descriptors = parse_database(url)
        options = GenerationOptions(
            output_dir=tmp_path / "out", package="com.example", generated_on=date(2024, 1, 2)
        )
        result = generate_all(descriptors, options, always_yes)

        package_dir = options.output_dir / "com/example"
        assert result.written == [package_dir / "PrimitivesKey.java", package_dir / "Primitives.java"]
        key = (package_dir / "PrimitivesKey.java").read_text(encoding="utf-8")
        value = (package_dir / "Primitives.java").read_text(encoding="utf-8")
        assert "private int pk;" in key
        assert "private boolean boolCol;" in value
        assert "private String strCol;" in value
        assert "private BigDecimal bigDecimalCol;" in value
        assert "private int pk;" not in value

        later = GenerationOptions(
            output_dir=options.output_dir, package="com.example", generated_on=date(2030, 5, 5)
        )
        assert check(descriptors, later) == {}

        rerun = generate_all(parse_database(url), options, always_yes)

        assert rerun.state is OverwriteState.FORCE_YES
        assert rerun.written == result.written
        assert check(descriptors, later) == {}
