# sqlcsv/cursors.py
"""
Row cursor adapter.

The converter never talks to a database driver directly. It consumes a
:class:`RowCursor`, which wraps whatever produced the result set (a DB-API
cursor, a cursor wrapper exposing ``columns()``, or a plain iterable of rows)
and presents it as a forward-only sequence of rows with known column names.
"""

import logging
from collections.abc import Mapping
from typing import Any, Iterator, List, Optional

from .exceptions import CursorReadError

logger = logging.getLogger(__name__)
__all__ = ['RowCursor']

_NOT_STARTED = object()
_END = object()


class RowCursor:
    """
    Forward-only view over a query's result rows.

    Parameters
    ----------
    source
        The row producer. Accepts:

        * DB-API 2.0 cursors (``description`` + ``fetchone()``)
        * Cursor wrappers with a ``columns()`` method and ``fetchone()``
        * Any iterable of rows, together with ``columns``
    columns : List[str], optional
        Column names. Required when ``source`` carries no column metadata,
        ignored otherwise.

    Mappings such as dicts are read by column name. Every other row
    (tuples, lists, ``sqlite3.Row``) is read by position, so duplicate column
    names keep all of their values.

    Example
    -------
    ::

        cur = sqlite_conn.execute("SELECT name, age FROM people")
        rows = RowCursor(cur)
        rows.columns()       # ['name', 'age']
        while rows.advance():
            name, age = rows.scan()

    Note
    ----
    The source is owned by the caller and consumed exactly once. RowCursor
    never rewinds or re-executes it.
    """

    def __init__(self, source, columns: Optional[List[str]] = None):
        if source is None:
            raise ValueError("No data to export")
        self.source = source
        self._columns = self._detect_columns(source, columns)
        self._fetch = self._get_fetcher(source)
        self._row = _NOT_STARTED
        self._exhausted = False
        logger.debug(f"Wrapped {type(source).__name__} with columns: {self._columns}")

    @classmethod
    def wrap(cls, source, columns: Optional[List[str]] = None) -> 'RowCursor':
        """Return ``source`` unchanged if it is already a RowCursor, else wrap it."""
        if isinstance(source, cls):
            return source
        return cls(source, columns)

    @staticmethod
    def _detect_columns(source, columns: Optional[List[str]]) -> List[str]:
        try:
            if callable(getattr(source, 'columns', None)):
                detected = list(source.columns())
            elif getattr(source, 'description', None) is not None:
                detected = [col[0] for col in source.description]
            else:
                detected = None
        except Exception as e:
            raise CursorReadError(f"Could not read column names: {e}") from e

        if detected:
            return detected
        if columns:
            return list(columns)
        if detected is not None:
            # statement ran but produced no result columns
            return []
        raise ValueError("Could not determine columns from data; pass columns=")

    @staticmethod
    def _get_fetcher(source):
        if callable(getattr(source, 'fetchone', None)):
            return source.fetchone

        iterator = iter(source)

        def fetch():
            row = next(iterator, _END)
            if row is _END:
                return None
            if row is None:
                raise CursorReadError("Row source yielded None instead of a row")
            return row
        return fetch

    def columns(self) -> List[str]:
        """Return list of column names in projection order."""
        return list(self._columns)

    def advance(self) -> bool:
        """
        Move to the next row.

        Returns:
            False once the source is exhausted

        Raises:
            CursorReadError: if the underlying fetch fails
        """
        if self._exhausted:
            return False
        try:
            row = self._fetch()
        except CursorReadError:
            self._exhausted = True
            raise
        except Exception as e:
            self._exhausted = True
            raise CursorReadError(f"Error fetching row: {e}") from e
        if row is None:
            self._exhausted = True
            self._row = _NOT_STARTED
            return False
        self._row = row
        return True

    def scan(self) -> List[Any]:
        """
        Return the current row's values aligned to columns().

        Raises:
            CursorReadError: if there is no current row or it cannot be read
        """
        row = self._row
        if row is _NOT_STARTED:
            raise CursorReadError("scan() called without a current row; call advance() first")
        try:
            if isinstance(row, Mapping):
                return [row[col] for col in self._columns]
            return list(row)
        except Exception as e:
            raise CursorReadError(f"Error reading row values: {e}") from e

    def __iter__(self) -> Iterator[List[Any]]:
        while self.advance():
            yield self.scan()
