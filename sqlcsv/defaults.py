# sqlcsv/defaults.py
"""Default settings - no imports to avoid circular dependencies."""

settings = {
    'null_string_csv': '',    # how null is represented in CSV outputs
    'default_timezone': 'UTC',  # applied to naive datetimes before formatting
    'time_format': None,      # strftime pattern; None uses the long form
    'encoding': 'utf-8',
    'csv_delimiter': ',',
    'csv_lineterminator': '\n',
    'logging': {
        'directory': './logs',
        'level': 'INFO',
        'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        'timestamp_format': '%Y-%m-%d %H:%M:%S',
        'filename_format': '%Y%m%d_%H%M%S',  # Set to '' for single log file (no timestamp)
        'split_errors': True,
        'console': True,
        'retention_days': 30,
    }
}
