"""Tests for configuration loading"""

import json

import pytest

from config import config_loader
from config.config_loader import load_config, load_analysis_settings, ANALYSIS_DEFAULTS


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    monkeypatch.setattr(config_loader, 'OUTPUT_DIR', tmp_path / 'outputs')
    monkeypatch.setattr(config_loader, 'CACHE_DIR', tmp_path / 'cache')


def _write(tmp_path, data):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps(data), encoding='utf-8')
    return path


class TestLoadConfig:

    def test_bundled_config(self):
        config = load_config()
        assert 'inputs' in config and 'settings' in config

    def test_bundled_tiles_default(self):
        assert load_config()['settings']['tiles'] == 'OpenStreetMap'

    def test_creates_directories(self, tmp_path):
        load_config(_write(tmp_path, {'inputs': {}, 'settings': {}}))
        assert (tmp_path / 'outputs').is_dir()
        assert (tmp_path / 'cache').is_dir()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / 'missing.json')

    def test_missing_section(self, tmp_path):
        with pytest.raises(KeyError, match="settings"):
            load_config(_write(tmp_path, {'inputs': {}}))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text('{not json', encoding='utf-8')
        with pytest.raises(json.JSONDecodeError):
            load_config(path)


class TestAnalysisSettings:

    def test_defaults(self):
        settings = load_analysis_settings({'inputs': {}, 'settings': {}})
        assert settings == ANALYSIS_DEFAULTS
        assert settings['projected_crs'] == 'EPSG:2248'
        assert settings['buffer_distance'] == 0.5

    def test_overrides(self):
        settings = load_analysis_settings({'analysis': {'buffer_distance': 1, 'buffer_units': 'km'}})
        assert settings['buffer_distance'] == 1
        assert settings['buffer_units'] == 'km'
        assert settings['group_key'] == 'GEOID'
