# tests/test_config.py
import pytest
from pathlib import Path

from sqlcsv import config
from sqlcsv.config import ConfigManager, get_setting, set_config_file
from sqlcsv.converter import Converter
from sqlcsv.defaults import settings
from sqlcsv.exceptions import ConfigurationError

from conftest import make_cursor


@pytest.fixture
def test_config_file():
    """Path to test config file."""
    return Path(__file__).parent / 'test.yml'


@pytest.fixture
def config_manager(test_config_file):
    """Create ConfigManager instance with test config."""
    return ConfigManager(str(test_config_file))


class TestConfigManager:
    """Test ConfigManager class functionality."""

    def test_init_with_valid_config(self, config_manager, test_config_file):
        """Test ConfigManager loads the settings section."""
        assert config_manager.config_file == test_config_file
        assert 'settings' in config_manager.config

    def test_init_with_missing_file(self):
        """Test an explicit missing file is an error."""
        with pytest.raises(FileNotFoundError):
            ConfigManager('/nonexistent/path/sqlcsv.yml')

    def test_no_config_found_uses_defaults(self, tmp_path, monkeypatch):
        """Test searching without any config file falls back to defaults."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(config, '_config_candidates', lambda: [tmp_path / 'sqlcsv.yml'])

        mgr = ConfigManager()

        assert mgr.config_file is None
        assert mgr.config == {}
        assert mgr.get_setting('default_timezone') == 'UTC'

    def test_finds_config_in_current_directory(self, tmp_path, monkeypatch):
        """Test ./sqlcsv.yml is picked up."""
        (tmp_path / 'sqlcsv.yml').write_text("settings:\n  null_string_csv: N/A\n", encoding='utf-8')
        monkeypatch.chdir(tmp_path)

        mgr = ConfigManager()

        assert mgr.config_file == Path('sqlcsv.yml')
        assert settings['null_string_csv'] == 'N/A'

    def test_get_setting_simple(self, config_manager):
        """Test getting simple setting value."""
        assert config_manager.get_setting('default_timezone') == 'UTC'

    def test_get_setting_default(self, config_manager):
        """Test getting setting with default value."""
        assert config_manager.get_setting('nonexistent_setting', 'default_value') == 'default_value'

    def test_get_setting_nested(self, config_manager):
        """Test getting nested setting with dot notation."""
        assert config_manager.get_setting('export.retries.max') == 3
        assert config_manager.get_setting('logging.level') == 'INFO'

    def test_get_setting_falls_back_to_defaults(self, config_manager):
        """Test keys missing from the file come from the package defaults."""
        assert config_manager.get_setting('csv_lineterminator') == '\n'
        assert config_manager.get_setting('logging.retention_days') == 30

    def test_nested_settings_merge(self, tmp_path):
        """Test a partial logging section keeps the other defaults."""
        cfg = tmp_path / 'partial.yml'
        cfg.write_text("settings:\n  logging:\n    level: DEBUG\n", encoding='utf-8')

        ConfigManager(str(cfg))

        assert settings['logging']['level'] == 'DEBUG'
        assert settings['logging']['retention_days'] == 30

    def test_invalid_yaml(self, tmp_path):
        """Test unparseable YAML raises ConfigurationError."""
        cfg = tmp_path / 'bad.yml'
        cfg.write_text("settings: [unclosed\n", encoding='utf-8')

        with pytest.raises(ConfigurationError):
            ConfigManager(str(cfg))

    def test_not_a_mapping(self, tmp_path):
        """Test a top-level list is rejected."""
        cfg = tmp_path / 'list.yml'
        cfg.write_text("- one\n- two\n", encoding='utf-8')

        with pytest.raises(ConfigurationError):
            ConfigManager(str(cfg))

    def test_settings_not_a_mapping(self, tmp_path):
        """Test settings must be a dictionary."""
        cfg = tmp_path / 'settings.yml'
        cfg.write_text("settings: just a string\n", encoding='utf-8')

        with pytest.raises(ConfigurationError, match="'settings' must be a dictionary"):
            ConfigManager(str(cfg))

    def test_empty_file(self, tmp_path):
        """Test an empty file is an empty config."""
        cfg = tmp_path / 'empty.yml'
        cfg.write_text("", encoding='utf-8')

        assert ConfigManager(str(cfg)).config == {}


class TestModuleFunctions:

    def test_get_setting(self):
        """Test module-level get_setting uses the global manager."""
        assert get_setting('export.label') == 'nightly'

    def test_get_setting_with_file(self, tmp_path):
        """Test get_setting with an explicit config file."""
        cfg = tmp_path / 'other.yml'
        cfg.write_text("settings:\n  export:\n    label: weekly\n", encoding='utf-8')

        assert get_setting('export.label', config_file=str(cfg)) == 'weekly'

    def test_set_config_file_changes_converter_defaults(self, tmp_path):
        """Test settings from a config file flow into new converters."""
        cfg = tmp_path / 'chicago.yml'
        cfg.write_text("settings:\n"
                       "  default_timezone: America/Chicago\n"
                       "  time_format: '%Y-%m-%d %H:%M %Z'\n"
                       "  csv_delimiter: ';'\n", encoding='utf-8')
        set_config_file(str(cfg))

        import datetime as dt
        cursor = make_cursor(['id', 'ts'], [(1, dt.datetime(2024, 1, 15, 8, 0))])

        assert Converter(cursor).to_string() == "id;ts\n1;2024-01-15 08:00 CST\n"

    def test_get_setting_sees_runtime_changes(self, config_manager):
        """Test lookups reflect settings changed after the file was loaded."""
        settings['logging']['directory'] = '/var/log/sqlcsv'

        assert config_manager.get_setting('logging.directory') == '/var/log/sqlcsv'
        assert get_setting('logging') is settings['logging']
