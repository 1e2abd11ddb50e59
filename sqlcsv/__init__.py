# sqlcsv/__init__.py
"""
sqlcsv - query results to CSV

Streams the rows of a database cursor into CSV text:

- Column names become the header record (or your own headers)
- NULLs, datetimes, booleans, bytes and numbers are converted to text for you
- Optional per-row hook to rewrite or drop records
- Output to a file, any writable stream, or a string
- YAML settings and logging helpers for export scripts

Basic usage::

    import sqlite3
    import sys

    import sqlcsv

    conn = sqlite3.connect('people.db')
    cursor = conn.execute("SELECT name, age, bdate FROM people")

    # One-liners
    sqlcsv.write_file('people.csv', cursor)
    text = sqlcsv.write_string(conn.execute("SELECT * FROM people"))

    # Configure before writing
    converter = sqlcsv.Converter(conn.execute("SELECT * FROM people"))
    converter.write_headers = False
    converter.time_format = '%Y-%m-%dT%H:%M:%S%z'
    converter.write_to(sys.stdout)
"""

__version__ = '0.3.0'

from .converter import Converter, ConverterConfig, write, write_file, write_string
from .cursors import RowCursor
from .config import get_setting, set_config_file
from .exceptions import (SqlCsvError, CursorReadError, EncodingError, SinkWriteError,
                         FileOpenError, ConfigurationError, ConverterStateError)
from .formatting import ValueFormatter, to_string
from .logging_utils import setup_logging, cleanup_old_logs, errors_logged

__all__ = [
    'Converter',
    'ConverterConfig',
    'RowCursor',
    'ValueFormatter',
    'write',
    'write_file',
    'write_string',
    'to_string',
    'get_setting',
    'set_config_file',
    'SqlCsvError',
    'CursorReadError',
    'EncodingError',
    'SinkWriteError',
    'FileOpenError',
    'ConfigurationError',
    'ConverterStateError',
    'setup_logging',
    'cleanup_old_logs',
    'errors_logged',
]
