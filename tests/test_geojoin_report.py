"""End-to-end tests for the report workflow using local files"""

import json

import pytest

import geojoin_report
from config import config_loader
from core import output_generator


@pytest.fixture
def workspace(tmp_path, monkeypatch, banks_csv, tracts, metro):
    monkeypatch.setattr(config_loader, 'OUTPUT_DIR', tmp_path / 'outputs')
    monkeypatch.setattr(config_loader, 'CACHE_DIR', tmp_path / 'cache')
    monkeypatch.setattr(output_generator, 'OUTPUT_DIR', tmp_path / 'outputs')
    monkeypatch.setattr(geojoin_report, 'LOG_DIR', tmp_path / 'logs')

    tracts_path = tmp_path / 'tracts.geojson'
    metro_path = tmp_path / 'metro.geojson'
    tracts.to_file(tracts_path, driver='GeoJSON')
    metro.to_file(metro_path, driver='GeoJSON')

    config = {
        'inputs': {
            'points_csv': str(banks_csv),
            'tracts_path': str(tracts_path),
            'metro_path': str(metro_path)
        },
        'analysis': {'boundary_state': 'MD'},
        'settings': {'title': 'Workflow Test', 'figure_size': [4, 4], 'figure_dpi': 40}
    }
    config_path = tmp_path / 'config.json'
    config_path.write_text(json.dumps(config), encoding='utf-8')
    return tmp_path, config_path


class TestMain:

    def test_local_inputs(self, workspace):
        tmp_path, config_path = workspace

        output_path = geojoin_report.main(output_name='e2e', config_path=config_path)

        assert output_path == tmp_path / 'outputs' / 'e2e'
        html = (output_path / 'index.html').read_text(encoding='utf-8')
        assert 'Workflow Test' in html
        assert (output_path / 'map.html').exists()
        assert list((tmp_path / 'logs').glob('geojoin_*.log'))

    def test_failure_is_reraised(self, workspace, tmp_path):
        _, config_path = workspace

        with pytest.raises(FileNotFoundError):
            geojoin_report.main(points_csv=str(tmp_path / 'missing.csv'), config_path=config_path)

    def test_boundary_source_used_without_paths(self, workspace, monkeypatch, tracts, metro):
        tmp_path, config_path = workspace
        config = json.loads(config_path.read_text(encoding='utf-8'))
        config['inputs']['tracts_path'] = None
        config['inputs']['metro_path'] = None
        config_path.write_text(json.dumps(config), encoding='utf-8')

        calls = []
        monkeypatch.setattr(geojoin_report, 'fetch_census_tracts',
                            lambda state, year, timeout: calls.append(('tracts', state, year)) or tracts)
        monkeypatch.setattr(geojoin_report, 'fetch_metro_area',
                            lambda name, year, timeout: calls.append(('metro', name, year)) or metro)

        geojoin_report.main(output_name='remote', config_path=config_path)

        assert calls == [('tracts', 'MD', 2020), ('metro', 'Baltimore', 2020)]
