from pathlib import Path

from matchday.database import _sqlite_file


def test_sqlite_file_path():
    assert _sqlite_file("sqlite:///./data/matchday.db") == Path("./data/matchday.db")
    assert _sqlite_file("sqlite:////var/lib/matchday.db") == Path("/var/lib/matchday.db")


def test_no_file_for_memory_or_other_backends():
    assert _sqlite_file("sqlite:///:memory:") is None
    assert _sqlite_file("postgresql://user:pw@localhost/matchday") is None
