# tests/conftest.py
"""
Shared test fixtures and configuration for pytest.
"""

import copy
import datetime as dt
import sqlite3
from pathlib import Path
from unittest.mock import Mock

import pytest

from sqlcsv import config
from sqlcsv.defaults import settings

# 1973-11-29 21:33:09 UTC
BDATE = dt.datetime(1973, 11, 29, 21, 33, 9, tzinfo=dt.timezone.utc)
BDATE_TEXT = '1973-11-29 21:33:09 +0000 UTC'


@pytest.fixture(autouse=True)
def setup_test_config():
    """Load tests/test.yml for every test and restore the global settings afterwards."""
    saved = copy.deepcopy(settings)
    config.set_config_file(str(Path(__file__).parent / 'test.yml'))
    yield
    settings.clear()
    settings.update(saved)
    config._config_manager = None


def make_cursor(columns, rows):
    """DB-API style mock cursor returning rows one fetchone() at a time."""
    cursor = Mock(spec=['description', 'fetchone', 'fetchall', 'close'])
    cursor.description = [(name, None, None, None, None, None, None) for name in columns]
    cursor.fetchone.side_effect = list(rows) + [None]
    return cursor


@pytest.fixture
def people_cursor():
    """The people table: name, age, bdate with a single row for Alice."""
    return make_cursor(['name', 'age', 'bdate'], [('Alice', 1, BDATE)])


@pytest.fixture
def nickname_cursor():
    """Alice has no nickname."""
    return make_cursor(['name', 'nickname', 'age'], [('Alice', None, 1)])


@pytest.fixture
def failing_cursor():
    """Cursor whose second fetch raises like a dropped connection."""
    cursor = Mock(spec=['description', 'fetchone'])
    cursor.description = [('name', None, None, None, None, None, None),
                          ('age', None, None, None, None, None, None)]
    cursor.fetchone.side_effect = [('Alice', 1), sqlite3.OperationalError('connection lost')]
    return cursor


@pytest.fixture
def people_db(tmp_path):
    """SQLite database file with a people table."""
    db_path = tmp_path / 'people.db'
    conn = sqlite3.connect(str(db_path))
    conn.execute("""
                 CREATE TABLE people
                 (
                     name     TEXT NOT NULL,
                     nickname TEXT,
                     age      INTEGER,
                     bdate    TEXT
                 )
                 """)
    conn.executemany("INSERT INTO people (name, nickname, age, bdate) VALUES (?, ?, ?, ?)",
                     [('Alice', None, 1, '1973-11-29 21:33:09'),
                      ('Bob', 'Bobby, Jr.', 42, '1981-02-03 04:05:06')])
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def people_conn(people_db):
    conn = sqlite3.connect(str(people_db))
    yield conn
    conn.close()
