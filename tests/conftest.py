import pytest

from flat_db.database import Database

CLIENTS = """id,first_name,last_name,email
1,Juan,Perez,juan.perez@email.com
2,Ana,Lopez,ana.lopez@email.com
3,Carlos,Gomez,carlos.gomez@email.com
4,Maria,Rodriguez,maria.rodriguez@email.com
5,Jose,Lopez,jose.lopez@email.com
6,Laura,Fernandez,laura.fernandez@email.com
"""

ORDERS = """id,client_id,product,quantity
101,1,Laptop,1
102,2,Phone,2
103,3,Monitor,1
104,1,Keyboard,1
105,4,Mouse,2
106,5,Printer,1
107,6,Speakers,1
108,4,Headphones,1
109,5,Laptop,1
110,6,Phone,2
"""

PEOPLE = """id,name
1,Ana
2,Beto
"""


def write_table(directory, name, content):
    path = directory / f"{name}.csv"
    path.write_text(content, encoding="utf-8")
    return path


def read_table(directory, name):
    return (directory / f"{name}.csv").read_text(encoding="utf-8")


@pytest.fixture
def store(tmp_path):
    """A table directory with clients, orders and t (id,name)"""
    directory = tmp_path / "tables"
    directory.mkdir()
    write_table(directory, "clients", CLIENTS)
    write_table(directory, "orders", ORDERS)
    write_table(directory, "t", PEOPLE)
    return directory


@pytest.fixture
def empty_store(tmp_path):
    directory = tmp_path / "empty"
    directory.mkdir()
    return directory


@pytest.fixture
def db(store):
    return Database(str(store), extension=".csv")
