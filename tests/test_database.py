import os

import pytest

from flat_db.database import Database, TableWriter, split_row
from flat_db.errors import InvalidTable, OtherError
from tests.conftest import PEOPLE, read_table, write_table


def leftover_temp_files(directory):
    return [name for name in os.listdir(directory) if name.endswith(".tmp")]


def test_split_row():
    assert split_row("1,Ana", 2) == ["1", "Ana"]
    assert split_row("1", 3) == ["1", "", ""]
    assert split_row("1,Ana,extra", 2) == ["1", "Ana"]


def test_list_tables_sorted_and_filtered(store, db):
    (store / "notes.txt").write_text("x\n", encoding="utf-8")
    (store / ".hidden.csv").write_text("x\n", encoding="utf-8")
    (store / ".t.abc123.tmp").write_text("x\n", encoding="utf-8")
    (store / "folder.csv").mkdir()

    assert db.list_tables() == ["clients", "orders", "t"]


def test_list_tables_empty_store(empty_store):
    with pytest.raises(InvalidTable, match="No tables found"):
        Database(str(empty_store), extension=".csv").list_tables()


def test_list_tables_missing_directory(tmp_path):
    with pytest.raises(OtherError):
        Database(str(tmp_path / "nowhere"), extension=".csv").list_tables()


def test_resolve_tables(db):
    assert db.resolve_tables(["*"]) == ["clients", "orders", "t"]
    assert db.resolve_tables(["t", "missing"]) == ["t", "missing"]


@pytest.mark.parametrize("name", ["", "../t", ".t", "a/b"])
def test_table_path_rejects_names_outside_store(db, name):
    with pytest.raises(InvalidTable):
        db.table_path(name)
    assert db.table_exists(name) is False


def test_path_like_table_name_in_query(db):
    with pytest.raises(InvalidTable):
        db.execute("SELECT * FROM ../t;")


def test_table_exists(db):
    assert db.table_exists("t")
    assert not db.table_exists("missing")


def test_read_header_strips_names(store, db):
    write_table(store, "spaced", " id , name \n1,Ana\n")
    assert db.read_header("spaced") == ["id", "name"]


def test_read_header_of_empty_file(store, db):
    write_table(store, "blank", "")
    with pytest.raises(InvalidTable, match="no header"):
        db.read_header("blank")


def test_scan(store, db):
    write_table(store, "t", "id,name\r\n1,Ana,extra\r\n\r\n2\n")
    with db.scan("t") as (header, rows):
        assert header == ["id", "name"]
        assert list(rows) == [("1,Ana,extra", ["1", "Ana"]), ("2", ["2", ""])]


def test_get_table(db):
    assert db.get_table("t") == {
        "columns": ["id", "name"],
        "rows": [{"id": "1", "name": "Ana"}, {"id": "2", "name": "Beto"}],
    }
    assert db.get_table("missing") is None


def test_append_row(store, db):
    db.append_row("t", ["3", "Caro"])
    assert read_table(store, "t") == PEOPLE + "3,Caro\n"


def test_append_row_missing_table(db):
    with pytest.raises(InvalidTable):
        db.append_row("missing", ["1"])


def test_rewrite_replaces_table(store, db):
    with db.rewrite("t", ["id", "name"]) as writer:
        writer.write_row(["7", "Gus"])
        writer.write_line("8,Hal")

    assert writer.count == 2
    assert read_table(store, "t") == "id,name\n7,Gus\n8,Hal\n"
    assert leftover_temp_files(store) == []


def test_rewrite_failure_leaves_table_untouched(store, db):
    with pytest.raises(RuntimeError):
        with db.rewrite("t", ["id", "name"]) as writer:
            writer.write_line("9,Zed")
            raise RuntimeError("interrupted")

    assert read_table(store, "t") == PEOPLE
    assert leftover_temp_files(store) == []


def test_write_error_during_delete(store, db, monkeypatch):
    def fail(self, line):
        raise OSError("disk full")

    monkeypatch.setattr(TableWriter, "write_line", fail)

    with pytest.raises(OtherError, match="disk full"):
        db.execute("DELETE FROM t WHERE id = 1;")

    assert read_table(store, "t") == PEOPLE
    assert leftover_temp_files(store) == []


def test_defaults_come_from_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("FLAT_DB_PATH", "data")
    monkeypatch.setenv("FLAT_DB_EXTENSION", "txt")

    db = Database()
    assert db.path == "data"
    assert db.extension == ".txt"
    assert db.table_path("t") == os.path.join("data", "t.txt")
