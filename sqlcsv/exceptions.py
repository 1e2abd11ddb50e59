# sqlcsv/exceptions.py
"""
Exception hierarchy for sqlcsv.

Every failure during an export aborts the operation and reaches the caller as
one of these, with the underlying exception chained as ``__cause__``.
"""


class SqlCsvError(Exception):
    """Base exception for all sqlcsv errors."""


class CursorReadError(SqlCsvError):
    """Fetching the next row, or reading its columns, failed."""


class EncodingError(SqlCsvError):
    """A value could not be rendered to text or the CSV encoder rejected a record."""


class SinkWriteError(SqlCsvError):
    """Writing to (or flushing) the output sink failed."""


class FileOpenError(SinkWriteError):
    """The output file could not be opened for writing."""


class ConfigurationError(SqlCsvError):
    """Invalid converter options or malformed config file."""


class ConverterStateError(SqlCsvError):
    """A converter was asked to run a second output operation."""
