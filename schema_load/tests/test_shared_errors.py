from schema_load.shared.errors import (
    FileWriteError,
    MetadataAccessError,
    OverwriteAborted,
    SchemaError,
    SchemaValidationError,
    TypeMappingError,
    UnsupportedSqlTypeError,
)


class TestSchemaError:
    def test_init_no_path(self):
        error = SchemaError("test message")
        assert str(error) == "test message"
        assert error.schema_path is None

    def test_init_with_path(self):
        error = SchemaError("test message", "path/to/schema.yaml")
        assert str(error) == "[path/to/schema.yaml] test message"
        assert error.schema_path == "path/to/schema.yaml"


class TestSchemaValidationError:
    def test_init_no_field_no_path(self):
        error = SchemaValidationError("validation failed")
        assert str(error) == "validation failed"
        assert error.field is None
        assert error.schema_path is None

    def test_init_with_field(self):
        error = SchemaValidationError("invalid value", field="name")
        assert str(error) == "Field 'name': invalid value"
        assert error.field == "name"

    def test_init_with_field_and_path(self):
        error = SchemaValidationError("invalid value", "schema.yaml", "name")
        assert str(error) == "[schema.yaml] Field 'name': invalid value"
        assert error.schema_path == "schema.yaml"


class TestTypeMappingError:
    def test_init(self):
        error = TypeMappingError("uuid", "table creation")
        assert str(error) == "No type mapping for 'uuid' (table creation)"
        assert error.type_name == "uuid"


class TestUnsupportedSqlTypeError:
    def test_names_code_table_and_column(self):
        error = UnsupportedSqlTypeError(2003, "ORDERS", "tags")
        assert str(error) == "No type mapping for 'ARRAY [code 2003]' (column 'ORDERS.tags')"
        assert error.sql_type == 2003
        assert error.table == "ORDERS"
        assert error.column == "tags"

    def test_unknown_code(self):
        error = UnsupportedSqlTypeError(4242, column="c")
        assert str(error) == "No type mapping for 'UNKNOWN [code 4242]' (column 'c')"

    def test_is_type_mapping_error(self):
        assert isinstance(UnsupportedSqlTypeError(0), TypeMappingError)


class TestMetadataAccessError:
    def test_with_table(self):
        error = MetadataAccessError("connection lost", "PUBLIC.ORDERS")
        assert str(error) == "Table 'PUBLIC.ORDERS': connection lost"
        assert error.table == "PUBLIC.ORDERS"

    def test_without_table(self):
        assert str(MetadataAccessError("no driver")) == "no driver"


class TestFileWriteError:
    def test_names_path(self):
        error = FileWriteError("/out/Foo.java", "disk full")
        assert str(error) == "Failed to write '/out/Foo.java': disk full"
        assert error.path == "/out/Foo.java"


class TestOverwriteAborted:
    def test_with_path(self):
        error = OverwriteAborted("/out/Foo.java")
        assert str(error) == "Generation cancelled by user at '/out/Foo.java'"
        assert error.path == "/out/Foo.java"

    def test_without_path(self):
        assert str(OverwriteAborted()) == "Generation cancelled by user"

    def test_is_distinguishable_from_write_failures(self):
        assert not isinstance(OverwriteAborted(), FileWriteError)
