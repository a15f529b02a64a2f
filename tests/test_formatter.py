"""
Unit tests for formatter.py
"""

from datetime import datetime
from unittest import mock

import pytest

from sqldump.connection import DatabaseConnection
from sqldump.dialects import DRIZZLE
from sqldump.exceptions import MetadataError
from sqldump.formatter import (
    SqlDumpFormatter,
    format_date,
    resolve_select_columns,
    split_select_list,
)
from sqldump.models import (
    ColumnInfo,
    ConstraintSet,
    ExportMode,
    ExportOptions,
    ExportType,
    FieldMeta,
    InsertSyntax,
    ServerInfo,
    StatementType,
    StructureOrData,
    TableStatus,
    Trigger,
)
from sqldump.output import BufferOutputSink
from sqldump.relations import StaticRelationStore
from sqldump.utils import add_slashes

PLAIN = dict(include_comments=False, utc_time=False, as_file=False)

CREATE_USERS = (
    "CREATE TABLE `users` (\n"
    "  `id` int(11) NOT NULL AUTO_INCREMENT,\n"
    "  `name` varchar(50) DEFAULT NULL,\n"
    "  PRIMARY KEY (`id`)\n"
    ") ENGINE=InnoDB AUTO_INCREMENT=5 DEFAULT CHARSET=utf8"
)

CREATE_ORDERS = (
    "CREATE TABLE `orders` (\n"
    "  `id` int(11) NOT NULL,\n"
    "  `user_id` int(11) DEFAULT NULL,\n"
    "  KEY `user_id` (`user_id`),\n"
    "  CONSTRAINT `orders_ibfk_1` FOREIGN KEY (`user_id`) REFERENCES `users` (`id`)\n"
    ") ENGINE=InnoDB"
)

NUMBERS = [
    FieldMeta(name="a", type="int", numeric=True),
    FieldMeta(name="b", type="int", numeric=True),
    FieldMeta(name="c", type="int", numeric=True),
]


@pytest.fixture
def access():
    """Mocked database access layer."""
    access = mock.MagicMock(spec=DatabaseConnection)
    access.escape_string.side_effect = add_slashes
    access.is_view.return_value = False
    access.get_table_status.return_value = TableStatus(name="users")
    access.get_create_table.return_value = CREATE_USERS
    access.get_triggers.return_value = []
    access.get_procedures_or_functions.return_value = []
    access.get_events.return_value = []
    return access


@pytest.fixture
def sink():
    return BufferOutputSink()


@pytest.fixture
def make_formatter(access, sink):
    """Build a formatter with plain (comment free) options plus overrides."""
    def _make(dialect=None, relations=None, **overrides):
        options = ExportOptions(**{**PLAIN, **overrides})
        kwargs = {"relations": relations}
        if dialect is not None:
            kwargs["dialect"] = dialect
        return SqlDumpFormatter(access, sink, options, **kwargs)
    return _make


class TestHeaderFooter:
    """Tests for export_header and export_footer."""

    def test_header_comments(self, access, sink):
        options = ExportOptions(utc_time=False, as_file=False, header_comment="first\\nsecond")
        formatter = SqlDumpFormatter(
            access, sink, options,
            server_info=ServerInfo(host="db.example.com", port=3307, version="8.0.36")
        )

        assert formatter.export_header() is True

        text = sink.getvalue()
        assert text.startswith("-- SQL Dump\n")
        assert "-- Host: db.example.com:3307\n" in text
        assert "-- Server version: 8.0.36\n" in text
        assert "-- first\n-- second\n" in text
        assert 'SET SQL_MODE = "NO_AUTO_VALUE_ON_ZERO";\n' in text
        access.execute.assert_any_call('SET SQL_MODE=""')

    def test_header_without_comments(self, make_formatter, sink):
        formatter = make_formatter()
        formatter.export_header()
        assert sink.getvalue() == 'SET SQL_MODE = "NO_AUTO_VALUE_ON_ZERO";\n'

    def test_header_and_footer_flags(self, make_formatter, sink):
        formatter = make_formatter(disable_fk=True, use_transaction=True)
        formatter.export_header()
        formatter.export_footer()

        text = sink.getvalue()
        assert "SET FOREIGN_KEY_CHECKS=0;\n" in text
        assert "SET AUTOCOMMIT = 0;\nSTART TRANSACTION;\n" in text
        assert text.endswith("SET FOREIGN_KEY_CHECKS=1;\nCOMMIT;\n")

    def test_utc_time_switch_restored(self, access, make_formatter, sink):
        access.fetch_value.return_value = "SYSTEM"
        formatter = make_formatter(utc_time=True)

        formatter.export_header()
        formatter.export_footer()

        assert 'SET time_zone = "+00:00";\n' in sink.getvalue()
        access.execute.assert_any_call('SET time_zone = "+00:00"')
        access.execute.assert_any_call('SET time_zone = "SYSTEM"')

    def test_charset_directives(self, make_formatter, sink):
        formatter = make_formatter(as_file=True, charset_of_file="iso-8859-1")
        formatter.export_header()
        formatter.export_footer()

        text = sink.getvalue()
        assert "/*!40101 SET NAMES latin1 */;" in text
        assert "/*!40101 SET CHARACTER_SET_CLIENT=@OLD_CHARACTER_SET_CLIENT */;" in text

    def test_drizzle_skips_sql_mode_and_charset(self, access, make_formatter, sink):
        formatter = make_formatter(dialect=DRIZZLE, as_file=True)
        formatter.export_header()

        assert "SQL_MODE" not in sink.getvalue()
        assert "SET NAMES" not in sink.getvalue()
        access.execute.assert_not_called()


class TestDatabaseLevel:
    """Tests for database level statements."""

    def test_create_database_with_collation(self, access, make_formatter, sink):
        access.get_db_collation.return_value = "utf8_general_ci"
        formatter = make_formatter()

        assert formatter.export_db_create("shop") is True
        assert sink.getvalue() == (
            "CREATE DATABASE `shop` DEFAULT CHARACTER SET utf8 COLLATE utf8_general_ci;\n"
            "USE `shop`;\n"
        )

    def test_create_database_with_charset_only(self, access, make_formatter, sink):
        access.get_db_collation.return_value = "latin1"
        make_formatter().export_db_create("shop")
        assert sink.getvalue().startswith("CREATE DATABASE `shop` DEFAULT CHARACTER SET latin1;\n")

    def test_create_database_drizzle(self, access, make_formatter, sink):
        access.get_db_collation.return_value = "utf8_general_ci"
        make_formatter(dialect=DRIZZLE, compatibility="ANSI").export_db_create("shop")
        assert sink.getvalue() == (
            "CREATE DATABASE `shop` COLLATE utf8_general_ci;\n"
            "USE `shop`;\n"
        )

    def test_create_database_drizzle_without_backquotes(self, access, make_formatter, sink):
        access.get_db_collation.return_value = "utf8_general_ci"
        make_formatter(dialect=DRIZZLE, backquotes=False).export_db_create("shop")
        assert sink.getvalue() == "CREATE DATABASE shop COLLATE utf8_general_ci;\nUSE shop;\n"

    def test_use_unquoted_in_compatibility_mode(self, access, make_formatter, sink):
        access.get_db_collation.return_value = None
        make_formatter(compatibility="ANSI").export_db_create("shop")
        assert sink.getvalue() == "CREATE DATABASE `shop`;\nUSE shop;\n"

    def test_drop_database_without_backquotes(self, access, make_formatter, sink):
        access.get_db_collation.return_value = None
        make_formatter(drop_database=True, backquotes=False).export_db_create("shop")
        assert sink.getvalue() == "DROP DATABASE shop;\nCREATE DATABASE shop;\nUSE shop;\n"

    def test_db_header(self, access, sink):
        formatter = SqlDumpFormatter(access, sink, ExportOptions())
        formatter.export_db_header("shop")
        assert sink.getvalue() == "--\n-- Database: `shop`\n--\n"

    def test_routines(self, access, make_formatter, sink):
        access.get_procedures_or_functions.side_effect = lambda db, kind: ["p1"] if kind == "PROCEDURE" else []
        access.get_definition.return_value = "CREATE PROCEDURE `p1`()\nBEGIN\n  SELECT 1;\nEND"
        formatter = make_formatter(drop_table=True)

        assert formatter.export_routines("shop") is True
        assert sink.getvalue() == (
            "\nDELIMITER $$\n"
            "DROP PROCEDURE IF EXISTS `p1`$$\n"
            "CREATE PROCEDURE `p1`()\nBEGIN\n  SELECT 1;\nEND$$\n\n"
            "DELIMITER ;\n"
        )

    def test_no_routines_writes_nothing(self, make_formatter, sink):
        assert make_formatter().export_routines("shop") is True
        assert sink.getvalue() == ""

    def test_routines_error_comment(self, access, sink):
        access.get_procedures_or_functions.side_effect = MetadataError("denied")
        formatter = SqlDumpFormatter(access, sink, ExportOptions())

        assert formatter.export_routines("shop") is True
        assert sink.getvalue() == "-- Error reading routines: (denied)\n"

    def test_drizzle_has_no_routines(self, access, make_formatter):
        assert make_formatter(dialect=DRIZZLE).export_routines("shop") is True
        access.get_procedures_or_functions.assert_not_called()

    def test_footer_flushes_constraints_then_events(self, access, make_formatter, sink):
        access.get_events.return_value = ["cleanup"]
        access.get_definition.return_value = "CREATE EVENT `cleanup` ON SCHEDULE EVERY 1 DAY DO DELETE FROM t"
        formatter = make_formatter(procedure_function=True, drop_table=True)
        constraints = ConstraintSet(constraints="ALTER TABLE `orders`\n  ADD FOREIGN KEY (`a`) REFERENCES `b` (`c`);\n")

        assert formatter.export_db_footer("shop", constraints) is True
        assert sink.getvalue() == (
            "ALTER TABLE `orders`\n  ADD FOREIGN KEY (`a`) REFERENCES `b` (`c`);\n"
            "\nDELIMITER $$\n"
            "DROP EVENT IF EXISTS `cleanup`$$\n"
            "CREATE EVENT `cleanup` ON SCHEDULE EVERY 1 DAY DO DELETE FROM t$$\n\n"
            "DELIMITER ;\n"
        )

    def test_constraints_flushed_once(self, make_formatter, sink):
        formatter = make_formatter()
        constraints = ConstraintSet(constraints="ALTER TABLE `t`\n  ADD FOREIGN KEY (a) REFERENCES b (c);\n")

        formatter.flush_constraints(constraints)
        formatter.flush_constraints(constraints)

        assert sink.getvalue().count("ALTER TABLE") == 1
        assert constraints.is_empty


class TestTableDefinition:
    """Tests for get_table_def and export_structure."""

    def test_create_table_with_drop_and_auto_increment(self, access, make_formatter):
        access.get_table_status.return_value = TableStatus(name="users", auto_increment=5)
        formatter = make_formatter(drop_table=True)

        definition = formatter.get_table_def("shop", "users", ConstraintSet())

        assert definition == (
            "\nDROP TABLE IF EXISTS `users`;\n"
            "CREATE TABLE `users` (\n"
            "  `id` int(11) NOT NULL AUTO_INCREMENT,\n"
            "  `name` varchar(50) DEFAULT NULL,\n"
            "  PRIMARY KEY (`id`)\n"
            ") ENGINE=InnoDB  DEFAULT CHARSET=utf8 AUTO_INCREMENT=5 ;\n"
        )
        access.execute.assert_any_call("SET SQL_QUOTE_SHOW_CREATE = 1")

    def test_auto_increment_disabled(self, access, make_formatter):
        access.get_table_status.return_value = TableStatus(name="users", auto_increment=5)
        definition = make_formatter(auto_increment=False).get_table_def("shop", "users", ConstraintSet())
        assert "AUTO_INCREMENT=" not in definition

    def test_if_not_exists(self, make_formatter):
        definition = make_formatter(if_not_exists=True).get_table_def("shop", "users", ConstraintSet())
        assert "CREATE TABLE IF NOT EXISTS `users` (" in definition

    def test_without_semicolon(self, make_formatter):
        definition = make_formatter().get_table_def("shop", "users", ConstraintSet(), add_semicolon=False)
        assert definition.endswith("DEFAULT CHARSET=utf8")

    def test_line_endings_normalized(self, access, make_formatter):
        access.get_create_table.return_value = "CREATE TABLE `t` (\r\n  `a` int\r\n) ENGINE=InnoDB"
        definition = make_formatter(crlf="\n").get_table_def("shop", "t", ConstraintSet())
        assert "\r" not in definition
        assert "CREATE TABLE `t` (\n  `a` int\n) ENGINE=InnoDB;\n" in definition

    def test_crlf_output(self, make_formatter):
        formatter = make_formatter(crlf="\r\n")
        assert formatter.normalize_line_endings("CREATE TABLE `t` (\n  `a` int\n)") == (
            "CREATE TABLE `t` (\r\n  `a` int\r\n)"
        )

    def test_constraints_moved(self, access, make_formatter):
        access.get_create_table.return_value = CREATE_ORDERS
        constraints = ConstraintSet()

        definition = make_formatter().get_table_def("shop", "orders", constraints)

        assert "CONSTRAINT" not in definition
        assert "  KEY `user_id` (`user_id`)\n) ENGINE=InnoDB;\n" in definition
        assert "ADD CONSTRAINT `orders_ibfk_1`" in constraints.constraints
        assert "DROP FOREIGN KEY `orders_ibfk_1`" in constraints.drop_foreign_keys

    def test_constraint_headings(self, access, sink):
        access.get_create_table.return_value = CREATE_ORDERS
        constraints = ConstraintSet()
        formatter = SqlDumpFormatter(access, sink, ExportOptions(utc_time=False))

        formatter.get_table_def("shop", "orders", constraints)

        assert "-- Constraints for dumped tables\n" in constraints.constraints
        assert "-- Constraints for table `orders`\n" in constraints.constraints

    def test_constraint_headings_disabled(self, access, sink):
        access.get_create_table.return_value = CREATE_ORDERS
        constraints = ConstraintSet()
        formatter = SqlDumpFormatter(access, sink, ExportOptions(no_constraints_comments=True))

        formatter.get_table_def("shop", "orders", constraints)

        assert constraints.constraints.startswith("ALTER TABLE `orders`\n")

    def test_show_dates(self, access, make_formatter, sink):
        access.get_table_status.return_value = TableStatus(
            name="users", create_time=datetime(2024, 3, 5, 14, 7)
        )
        formatter = SqlDumpFormatter(access, sink, ExportOptions())

        definition = formatter.get_table_def("shop", "users", ConstraintSet(), show_dates=True)

        assert definition.startswith("-- Creation: Mar 05, 2024 at 02:07 PM\n--\n\n")

    def test_drizzle_row_format_and_dates(self, access, make_formatter):
        access.get_create_table.return_value = "CREATE TABLE `t` (\n  `a` int\n) ENGINE=InnoDB ROW_FORMAT='COMPACT'"
        access.get_table_dates.return_value = {"Create_time": datetime(2024, 1, 1)}
        formatter = make_formatter(dialect=DRIZZLE)

        definition = formatter.get_table_def("shop", "t", ConstraintSet(), show_dates=True)

        assert "ROW_FORMAT=COMPACT" in definition
        access.get_table_dates.assert_called_once_with("shop", "t")
        access.execute.assert_not_called()

    def test_crashed_table(self, access, make_formatter, sink):
        access.get_create_table.side_effect = MetadataError("Table is marked as crashed", 145)
        formatter = SqlDumpFormatter(access, sink, ExportOptions())

        definition = formatter.get_table_def("shop", "users", ConstraintSet())

        assert definition == "-- in use(Table is marked as crashed)\n"

    def test_status_error(self, access, sink):
        access.get_table_status.side_effect = MetadataError("denied")
        formatter = SqlDumpFormatter(access, sink, ExportOptions())
        assert formatter.get_table_def("shop", "users", ConstraintSet()) == "-- in use(denied)\n"

    def test_export_structure_create_table(self, make_formatter, sink):
        formatter = make_formatter()
        constraints = ConstraintSet(constraints_query="ALTER TABLE `x` ADD FOREIGN KEY (a) REFERENCES b (c);")

        assert formatter.export_structure(
            "shop", "users", ExportMode.CREATE_TABLE, ExportType.DATABASE, constraints
        ) is True

        assert sink.getvalue().startswith("\nCREATE TABLE `users` (\n")
        assert constraints.constraints_query == ""

    def test_export_structure_headings(self, access, sink):
        formatter = SqlDumpFormatter(access, sink, ExportOptions(utc_time=False))
        formatter.export_structure("shop", "users", ExportMode.CREATE_TABLE, ExportType.DATABASE, ConstraintSet())

        text = sink.getvalue()
        assert text.startswith("\n-- " + "-" * 56 + "\n\n--\n-- Table structure for table `users`\n--\n")

    def test_view_definition(self, access, make_formatter, sink):
        access.get_table_status.return_value = TableStatus(name="active_users")
        access.get_create_table.return_value = (
            "CREATE ALGORITHM=UNDEFINED VIEW `active_users` AS "
            "select `shop`.`users`.`id` AS `id` from `shop`.`users`"
        )
        formatter = make_formatter(drop_table=True)

        formatter.export_structure(
            "shop", "active_users", ExportMode.CREATE_VIEW, ExportType.DATABASE, ConstraintSet()
        )

        assert sink.getvalue() == (
            "DROP TABLE IF EXISTS `active_users`;\n"
            "\n"
            "CREATE ALGORITHM=UNDEFINED VIEW `active_users` AS "
            "select `users`.`id` AS `id` from `users`;\n"
        )

    def test_view_single_table_export_has_no_drop(self, access, make_formatter, sink):
        access.get_create_table.return_value = "CREATE VIEW `v` AS select 1 AS `one`"
        make_formatter().export_structure("shop", "v", ExportMode.CREATE_VIEW, ExportType.TABLE, ConstraintSet())
        assert "DROP TABLE" not in sink.getvalue()

    def test_stand_in(self, access, make_formatter, sink):
        access.get_columns_full.return_value = [
            ColumnInfo("id", "int(11)", "NO", "", None, ""),
            ColumnInfo("name", "varchar(50)", "YES", "", None, ""),
        ]
        formatter = make_formatter(drop_table=True, if_not_exists=True)

        formatter.export_structure("shop", "v", ExportMode.STAND_IN, ExportType.DATABASE, ConstraintSet())

        assert sink.getvalue() == (
            "DROP VIEW IF EXISTS `v`;\n"
            "CREATE TABLE IF NOT EXISTS `v` (\n"
            "`id` int(11)\n"
            ",`name` varchar(50)\n"
            ");\n"
        )

    def test_triggers(self, access, make_formatter, sink):
        access.get_triggers.return_value = [
            Trigger("users_bi", "BEFORE", "INSERT", "users", "SET NEW.name = TRIM(NEW.name)")
        ]
        make_formatter().export_structure("shop", "users", ExportMode.TRIGGERS, ExportType.DATABASE, ConstraintSet())

        assert sink.getvalue() == (
            "DROP TRIGGER IF EXISTS `users_bi`;\n"
            "DELIMITER //\n"
            "CREATE TRIGGER `users_bi` BEFORE INSERT ON `users`\n"
            " FOR EACH ROW SET NEW.name = TRIM(NEW.name)\n"
            "//\n"
            "DELIMITER ;\n"
        )

    def test_no_triggers(self, make_formatter, sink):
        make_formatter().export_structure("shop", "users", ExportMode.TRIGGERS, ExportType.DATABASE, ConstraintSet())
        assert sink.getvalue() == ""

    def test_relation_and_mime_comments(self, access, sink):
        relations = StaticRelationStore({
            "shop.orders": {
                "foreign_keys": {"user_id": "users.id"},
                "mime": {"invoice": "application/pdf"},
            }
        })
        formatter = SqlDumpFormatter(access, sink, ExportOptions(), relations=relations)

        comments = formatter.get_table_comments("shop", "orders", do_relation=True, do_mime=True)

        assert "-- MIME TYPES FOR TABLE `orders`:\n--   `invoice`\n--       `application/pdf`\n" in comments
        assert "-- RELATIONS FOR TABLE `orders`:\n--   `user_id`\n--       `users` -> `id`\n" in comments

    def test_no_relation_store(self, make_formatter):
        assert make_formatter().get_table_comments("shop", "orders", True, True) == ""


class TestExportData:
    """Tests for export_data."""

    def test_extended_insert_single_statement(self, access, make_formatter, sink):
        access.stream_query.return_value = (NUMBERS, iter([(1, 2, 3), (4, 5, 6)]))
        formatter = make_formatter()

        assert formatter.export_data("shop", "t", "SELECT * FROM `shop`.`t`") is True

        assert sink.getvalue() == (
            "\nINSERT INTO `t` (`a`, `b`, `c`) VALUES\n"
            "(1,2,3),\n"
            "(4,5,6);\n"
        )
        assert formatter.rows_exported == 2

    def test_extended_insert_split_by_size(self, access, make_formatter, sink):
        access.stream_query.return_value = (NUMBERS, iter([(1, 2, 3), (1, 2, 3), (1, 2, 3)]))
        formatter = make_formatter(max_query_size=40)

        formatter.export_data("shop", "t", "SELECT * FROM `shop`.`t`")

        text = sink.getvalue()
        assert text.count("INSERT INTO `t` (`a`, `b`, `c`) VALUES\n(1,2,3);\n") == 3
        assert formatter.rows_exported == 3

    def test_extended_insert_batches_until_limit(self, access, make_formatter, sink):
        access.stream_query.return_value = (NUMBERS, iter([(1, 2, 3)] * 4))
        formatter = make_formatter(insert_syntax=InsertSyntax.EXTENDED, max_query_size=40)

        formatter.export_data("shop", "t", "SELECT * FROM `shop`.`t`")

        # "INSERT INTO `t` VALUES\n(1,2,3)" is 30 bytes, one more tuple fits
        assert sink.getvalue() == (
            "\nINSERT INTO `t` VALUES\n(1,2,3),\n(1,2,3);\n"
            "INSERT INTO `t` VALUES\n(1,2,3),\n(1,2,3);\n"
        )

    def test_complete_insert(self, access, make_formatter, sink):
        fields = [FieldMeta(name="id", numeric=True), FieldMeta(name="name")]
        access.stream_query.return_value = (fields, iter([(1, "O'Brien"), (2, None)]))
        formatter = make_formatter(insert_syntax=InsertSyntax.COMPLETE)

        formatter.export_data("shop", "users", "SELECT * FROM `shop`.`users`")

        assert sink.getvalue() == (
            "\nINSERT INTO `users` (`id`, `name`) VALUES(1,'O''Brien');\n"
            "INSERT INTO `users` (`id`, `name`) VALUES(2,NULL);\n"
        )

    def test_replace_without_columns(self, access, make_formatter, sink):
        access.stream_query.return_value = (NUMBERS, iter([(1, 2, 3)]))
        make_formatter(type=StatementType.REPLACE, insert_syntax=InsertSyntax.NONE).export_data(
            "shop", "t", "SELECT * FROM `shop`.`t`"
        )
        assert sink.getvalue() == "\nREPLACE INTO `t` VALUES(1,2,3);\n"

    def test_insert_delayed_ignore(self, access, make_formatter, sink):
        access.stream_query.return_value = (NUMBERS, iter([(1, 2, 3)]))
        make_formatter(delayed=True, ignore=True, insert_syntax=InsertSyntax.NONE).export_data(
            "shop", "t", "SELECT * FROM `shop`.`t`"
        )
        assert "INSERT DELAYED IGNORE INTO `t` VALUES(1,2,3);" in sink.getvalue()

    def test_drizzle_has_no_delayed(self, access, make_formatter, sink):
        access.stream_query.return_value = (NUMBERS, iter([(1, 2, 3)]))
        make_formatter(dialect=DRIZZLE, delayed=True, insert_syntax=InsertSyntax.NONE).export_data(
            "shop", "t", "SELECT * FROM `shop`.`t`"
        )
        assert "INSERT INTO `t` VALUES(1,2,3);" in sink.getvalue()

    def test_truncate(self, access, make_formatter, sink):
        access.stream_query.return_value = (NUMBERS, iter([(1, 2, 3)]))
        make_formatter(truncate=True, insert_syntax=InsertSyntax.NONE).export_data(
            "shop", "t", "SELECT * FROM `shop`.`t`"
        )
        assert sink.getvalue().startswith("\nTRUNCATE TABLE `t`;\n")

    def test_update_statements(self, access, make_formatter, sink):
        fields = [
            FieldMeta(name="id", numeric=True, primary_key=True),
            FieldMeta(name="name"),
        ]
        access.stream_query.return_value = (fields, iter([(1, "a"), (2, "b")]))
        access.get_unique_condition.side_effect = lambda f, row: (f"`id` = {row[0]}", True)

        make_formatter(type=StatementType.UPDATE, ignore=True).export_data(
            "shop", "users", "SELECT * FROM `shop`.`users`"
        )

        assert sink.getvalue() == (
            "\nUPDATE IGNORE `users` SET `id` = 1,`name` = 'a' WHERE `id` = 1;\n"
            "UPDATE IGNORE `users` SET `id` = 2,`name` = 'b' WHERE `id` = 2;\n"
        )

    def test_view_has_no_data(self, access, sink):
        access.is_view.return_value = True
        formatter = SqlDumpFormatter(access, sink, ExportOptions())

        assert formatter.export_data("shop", "v", "SELECT * FROM `shop`.`v`") is True

        assert sink.getvalue() == "\n--\n-- VIEW  `v`\n-- Data: None\n--\n\n"
        access.stream_query.assert_not_called()

    def test_empty_table(self, access, make_formatter, sink):
        access.stream_query.return_value = (NUMBERS, iter([]))
        formatter = make_formatter()

        assert formatter.export_data("shop", "t", "SELECT * FROM `shop`.`t`") is True
        assert sink.getvalue() == ""
        assert formatter.rows_exported == 0

    def test_data_heading(self, access, sink):
        access.stream_query.return_value = (NUMBERS, iter([(1, 2, 3)]))
        formatter = SqlDumpFormatter(access, sink, ExportOptions(utc_time=False))

        formatter.export_data("shop", "t", "SELECT * FROM `shop`.`t`")

        assert sink.getvalue().startswith("\n--\n-- Dumping data for table `t`\n--\n\n")

    def test_query_error(self, access, sink):
        access.stream_query.side_effect = MetadataError("Unknown column 'x'")
        formatter = SqlDumpFormatter(access, sink, ExportOptions())

        assert formatter.export_data("shop", "t", "SELECT x FROM `shop`.`t`") is True
        assert sink.getvalue() == "-- Error reading data: (Unknown column 'x')\n"

    def test_error_while_streaming(self, access, make_formatter, sink):
        def rows():
            yield (1, 2, 3)
            raise MetadataError("Lost connection")

        access.stream_query.return_value = (NUMBERS, rows())
        formatter = SqlDumpFormatter(access, sink, ExportOptions(utc_time=False, as_file=False))

        assert formatter.export_data("shop", "t", "SELECT * FROM `shop`.`t`") is True

        assert sink.getvalue().endswith("(1,2,3);\n-- Error reading data: (Lost connection)\n")
        assert formatter.rows_exported == 1

    def test_select_aliases_resolved(self, access, make_formatter, sink):
        fields = [FieldMeta(name="user_id", numeric=True), FieldMeta(name="n")]
        access.stream_query.return_value = (fields, iter([(1, "a")]))

        make_formatter(insert_syntax=InsertSyntax.COMPLETE).export_data(
            "shop", "users", "SELECT `id` AS `user_id`, name n FROM `shop`.`users`"
        )

        assert "INSERT INTO `users` (`id`, `name`) VALUES(1,'a');" in sink.getvalue()

    def test_failed_write_stops(self, access, make_formatter):
        failing = mock.MagicMock()
        failing.write.return_value = False
        access.stream_query.return_value = (NUMBERS, iter([(1, 2, 3)]))
        options = ExportOptions(**PLAIN)
        formatter = SqlDumpFormatter(access, failing, options)

        assert formatter.export_data("shop", "t", "SELECT * FROM `shop`.`t`") is False
        failing.write.assert_called_once()


class TestSelectColumns:
    """Tests for select list helpers."""

    def test_split_select_list(self):
        assert split_select_list("a, CONCAT(b, ',', c) AS bc, `d,e`") == [
            "a", "CONCAT(b, ',', c) AS bc", "`d,e`"
        ]

    def test_resolve_plain_columns(self):
        assert resolve_select_columns("SELECT `shop`.`t`.`a` AS x, b, COUNT(*) FROM t") == ["a", "b", None]

    def test_resolve_star(self):
        assert resolve_select_columns("SELECT * FROM `shop`.`t`") is None
        assert resolve_select_columns("SELECT t.* FROM t") is None

    def test_resolve_without_from(self):
        assert resolve_select_columns("SHOW TABLES") is None

    def test_format_date(self):
        assert format_date(datetime(2024, 12, 1, 9, 30)) == "Dec 01, 2024 at 09:30 AM"
        assert format_date("2024-12-01") == "2024-12-01"
