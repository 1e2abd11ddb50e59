# sqlcsv/converter.py
"""
Stream query results to CSV.

:class:`Converter` binds one row cursor, converts each column value to text
and writes one CSV record per row through the standard library ``csv``
encoder into a file, an arbitrary sink, or a string.
"""

import codecs
import csv
import io
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .cursors import RowCursor
from .config import get_setting
from .exceptions import (ConfigurationError, ConverterStateError, EncodingError,
                         FileOpenError, SinkWriteError)
from .formatting import TzLike, ValueFormatter, resolve_timezone

logger = logging.getLogger(__name__)
__all__ = ['Converter', 'ConverterConfig', 'RowPreProcessor', 'write', 'write_file', 'write_string']

RowPreProcessor = Callable[[List[str], Sequence[str]], Tuple[bool, List[str]]]


@dataclass
class ConverterConfig:
    """
    Options for a single CSV export.

    Attributes
    ----------
    write_headers : bool, default True
        Emit a header record before the data records.
    headers : List[str], optional
        Header override. When empty the cursor's column names are used.
    time_format : str, optional
        strftime pattern for datetimes, dates and times. None takes
        settings['time_format']. An empty string, or None when no pattern is
        configured, renders the long form ``1973-11-29 21:33:09 +0000 UTC``.
    row_preprocessor : callable, optional
        ``fn(record, column_names) -> (keep, new_record)``, called for each
        data row. See :meth:`Converter.set_row_preprocessor`.
    null_string : str, optional
        Text for NULL values. Defaults to settings['null_string_csv'].
    timezone : str or tzinfo, optional
        Zone assumed for naive datetimes. Defaults to settings['default_timezone'].
    encoding : str, optional
        Encoding for byte sinks and files. Defaults to settings['encoding'].
    csv_options : dict
        Keyword arguments for ``csv.writer`` (delimiter, quotechar, quoting...).
    """
    write_headers: bool = True
    headers: Optional[List[str]] = None
    time_format: Optional[str] = None
    row_preprocessor: Optional[RowPreProcessor] = None
    null_string: Optional[str] = None
    timezone: TzLike = None
    encoding: Optional[str] = None
    csv_options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_options(cls, config: Optional['ConverterConfig'] = None, **options) -> 'ConverterConfig':
        """
        Build a config from an optional base config plus keyword overrides.

        Keywords that are not config fields are treated as csv.writer options,
        so ``delimiter='|'`` and ``csv_options={'delimiter': '|'}`` are equivalent.
        """
        names = {f.name for f in fields(cls)}
        known = {key: val for key, val in options.items() if key in names}
        extra = {key: val for key, val in options.items() if key not in names}

        base = config.copy() if config is not None else cls()
        new = replace(base, **known)
        new.csv_options = {**base.csv_options, **known.get('csv_options', {}), **extra}
        return new.with_defaults()

    def with_defaults(self) -> 'ConverterConfig':
        """Fill unset options from the global settings, loading sqlcsv.yml on first use."""
        if self.null_string is None:
            self.null_string = get_setting('null_string_csv', '')
        if self.timezone is None:
            self.timezone = get_setting('default_timezone')
        if self.time_format is None:
            self.time_format = get_setting('time_format')
        if self.encoding is None:
            self.encoding = get_setting('encoding', 'utf-8')
        self.csv_options.setdefault('delimiter', get_setting('csv_delimiter', ','))
        self.csv_options.setdefault('lineterminator', get_setting('csv_lineterminator', '\n'))
        return self

    def copy(self) -> 'ConverterConfig':
        """Copy with independent headers list and csv_options dict."""
        return replace(self,
                       headers=list(self.headers) if self.headers is not None else None,
                       csv_options=dict(self.csv_options))

    def validate(self) -> None:
        """
        Check option types once, before any row is read.

        Raises:
            ConfigurationError: describing the first invalid option
        """
        if not isinstance(self.write_headers, bool):
            raise ConfigurationError(f"write_headers must be a bool, got {self.write_headers!r}")
        if self.headers is not None:
            if isinstance(self.headers, (str, bytes)) or not all(isinstance(h, str) for h in self.headers):
                raise ConfigurationError(f"headers must be a sequence of strings, got {self.headers!r}")
        if self.time_format is not None and not isinstance(self.time_format, str):
            raise ConfigurationError(f"time_format must be a string, got {self.time_format!r}")
        if self.row_preprocessor is not None and not callable(self.row_preprocessor):
            raise ConfigurationError("row_preprocessor must be callable")
        if not isinstance(self.null_string, str):
            raise ConfigurationError(f"null_string must be a string, got {self.null_string!r}")
        resolve_timezone(self.timezone)
        try:
            codecs.lookup(self.encoding)
        except (LookupError, TypeError) as e:
            raise ConfigurationError(f"Unknown encoding: {self.encoding!r}") from e
        try:
            csv.writer(io.StringIO(), **self.csv_options)
        except (TypeError, csv.Error) as e:
            raise ConfigurationError(f"Invalid csv options {self.csv_options}: {e}") from e


def _config_field(name: str) -> property:
    def getter(self):
        return getattr(self.config, name)

    def setter(self, value):
        setattr(self.config, name, value)

    return property(getter, setter, doc=f"Shortcut for ``config.{name}``.")


class Converter:
    """
    Convert a query result to CSV.

    A Converter wraps exactly one cursor and is single-use: the first output
    operation consumes the cursor, and calling another output operation
    afterwards raises :class:`~sqlcsv.exceptions.ConverterStateError`.

    Options can be given as a :class:`ConverterConfig`, as keyword arguments,
    or changed on the converter before the output call. They are validated
    once when the output operation starts.

    Parameters
    ----------
    cursor
        DB-API cursor, cursor wrapper with ``columns()``, :class:`RowCursor`,
        or an iterable of rows (requires ``columns``)
    config : ConverterConfig, optional
        Base options
    columns : List[str], optional
        Column names for sources without column metadata
    **options
        ConverterConfig fields, or csv.writer keyword arguments

    Example
    -------
    ::

        cursor = conn.execute("SELECT name, age, bdate FROM people")
        converter = Converter(cursor)
        converter.headers = ['Name', 'Age', 'Birthday']
        converter.write_to_file('people.csv')

        # Drop minors, mask birthdays
        def scrub(record, columns):
            if int(record[1]) < 18:
                return False, record
            return True, [record[0], record[1], '']

        csv_text = Converter(conn.execute(sql)).set_row_preprocessor(scrub).to_string()
    """

    write_headers = _config_field('write_headers')
    headers = _config_field('headers')
    time_format = _config_field('time_format')
    row_preprocessor = _config_field('row_preprocessor')
    null_string = _config_field('null_string')
    timezone = _config_field('timezone')
    encoding = _config_field('encoding')

    def __init__(self,
                 cursor,
                 config: Optional[ConverterConfig] = None,
                 columns: Optional[List[str]] = None,
                 **options):
        self.cursor = RowCursor.wrap(cursor, columns)
        self.config = ConverterConfig.from_options(config, **options)
        self._row_num = 0
        self._used = False

    @property
    def row_count(self) -> int:
        """Number of data rows written (header excluded)."""
        return self._row_num

    @property
    def columns(self) -> List[str]:
        """Column names from the bound cursor."""
        return self.cursor.columns()

    def set_row_preprocessor(self, fn: Optional[RowPreProcessor]) -> 'Converter':
        """
        Install a per-row transform/filter hook.

        ``fn(record, column_names)`` receives the converted record (list of
        strings) and the cursor's column names, and returns ``(keep,
        new_record)``. When keep is False the row is left out of the output
        entirely. When keep is True, new_record is written in place of the
        record exactly as returned; it may add, drop or reorder fields and
        its length is not checked against the header.

        The hook is never called for the header record, sees one row at a
        time, and must not touch the cursor.
        """
        self.config.row_preprocessor = fn
        return self

    def set_headers(self, headers: Optional[List[str]]) -> 'Converter':
        """Override the header record. None restores the cursor's column names."""
        self.config.headers = headers
        return self

    def set_write_headers(self, write_headers: bool) -> 'Converter':
        """Enable or disable the header record."""
        self.config.write_headers = write_headers
        return self

    def set_time_format(self, time_format: Optional[str]) -> 'Converter':
        """Set the strftime pattern for temporal values. None or '' selects the long form."""
        self.config.time_format = time_format
        return self

    def _prepare(self) -> ConverterConfig:
        """Validate and freeze options for one run, then mark the converter used."""
        if self._used:
            raise ConverterStateError("Converter has already written its cursor; create a new one")
        self.config.validate()
        config = self.config.copy()
        self._used = True
        return config

    def write_to(self, sink) -> int:
        """
        Stream the CSV document to a sink.

        Text streams (``io.TextIOBase``) receive str; any other object with a
        ``write()`` method receives bytes in the configured encoding.
        ``flush()`` is called at the end when the sink has one. Rows written
        before a failure stay in the sink.

        Returns:
            Number of data rows written

        Raises:
            CursorReadError: fetching or reading a row failed
            EncodingError: a value or record could not be encoded
            SinkWriteError: the sink rejected a write or flush
        """
        return self._stream(sink, self._prepare())

    def write_to_file(self, path: Union[str, Path]) -> int:
        """
        Write the CSV document to ``path``, creating or truncating it.

        The file is always closed, including when the export fails part way.

        Returns:
            Number of data rows written

        Raises:
            FileOpenError: the file could not be opened
            CursorReadError, EncodingError, SinkWriteError: as for write_to()
        """
        config = self._prepare()
        try:
            file_obj = open(path, 'w', encoding=config.encoding, newline='')
        except OSError as e:
            raise FileOpenError(f"Cannot open {path} for writing: {e}") from e
        with file_obj:
            return self._stream(file_obj, config, target=str(path))

    def to_string(self) -> str:
        """
        Return the CSV document as a string.

        On failure the partial output is discarded and the error is raised.
        """
        buffer = io.StringIO()
        self._stream(buffer, self._prepare(), target='<string>')
        return buffer.getvalue()

    def _stream(self, sink, config: ConverterConfig, target: Optional[str] = None) -> int:
        target = target or getattr(sink, 'name', None) or type(sink).__name__
        formatter = ValueFormatter(config.time_format, config.timezone, config.null_string)
        emit = _sink_emitter(sink, config.encoding)
        line = io.StringIO()
        encoder = csv.writer(line, **config.csv_options)
        preprocess = config.row_preprocessor

        columns = self.cursor.columns()
        column_names = tuple(columns)
        logger.debug(f"Writing CSV to {target} with columns: {columns}")

        self._row_num = 0
        if config.write_headers:
            _write_record(encoder, line, config.headers or columns, emit)

        for values in self.cursor:
            record = [formatter(value) for value in values]
            if preprocess is not None:
                keep, record = preprocess(record, column_names)
                if not keep:
                    continue
            _write_record(encoder, line, record, emit)
            self._row_num += 1

        if callable(getattr(sink, 'flush', None)):
            try:
                sink.flush()
            except Exception as e:
                raise SinkWriteError(f"Error flushing {target}: {e}") from e

        logger.info(f"Wrote {self._row_num} rows to {target}")
        return self._row_num


def _sink_emitter(sink, encoding: str) -> Callable[[str], None]:
    """Return a function writing one encoded record to sink."""
    if not callable(getattr(sink, 'write', None)):
        raise SinkWriteError(f"{type(sink).__name__} object has no write() method")
    text_sink = isinstance(sink, io.TextIOBase)

    def emit(text: str) -> None:
        if text_sink:
            data = text
        else:
            try:
                data = text.encode(encoding)
            except UnicodeEncodeError as e:
                raise EncodingError(f"Cannot encode record as {encoding}: {e}") from e
        try:
            sink.write(data)
        except UnicodeEncodeError as e:
            raise EncodingError(f"Sink cannot encode record: {e}") from e
        except Exception as e:
            raise SinkWriteError(f"Error writing to sink: {e}") from e

    return emit


def _write_record(encoder, line: io.StringIO, record: Sequence[Any], emit: Callable[[str], None]) -> None:
    """Encode one record into the reusable line buffer and hand it to the sink."""
    line.seek(0)
    line.truncate()
    try:
        encoder.writerow(record)
    except csv.Error as e:
        raise EncodingError(f"CSV encoder rejected record {record!r}: {e}") from e
    emit(line.getvalue())


def write(sink, cursor, **options) -> int:
    """
    Write a cursor's rows to a sink as CSV.

    Args:
        sink: Text stream or binary writable
        cursor: Cursor or RowCursor to export
        **options: ConverterConfig fields or csv.writer arguments

    Returns:
        Number of data rows written

    Example:
        with open('people.csv', 'wb') as f:
            write(f, cursor, write_headers=False)
    """
    return Converter(cursor, **options).write_to(sink)


def write_file(path: Union[str, Path], cursor, **options) -> int:
    """
    Export a cursor to a CSV file.

    Example:
        cursor.execute("SELECT * FROM users")
        write_file('users.csv', cursor)

        # Custom delimiter
        write_file('users.tsv', cursor, delimiter='\\t')
    """
    return Converter(cursor, **options).write_to_file(path)


def write_string(cursor, **options) -> str:
    """Return a cursor's rows as a CSV string."""
    return Converter(cursor, **options).to_string()
