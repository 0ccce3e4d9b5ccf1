"""Tests for the Census boundary source (network mocked)"""

import zipfile
from unittest import mock

import geopandas as gpd
import pandas as pd
import pytest
import requests

from core import boundary_source
from core.boundary_source import (
    state_fips, census_tracts_url, metro_areas_url,
    download_boundary_file, fetch_census_tracts, fetch_metro_area
)


def _zip_bytes(gdf, tmp_path, stem):
    shp_dir = tmp_path / f'{stem}_shp'
    shp_dir.mkdir()
    gdf.to_file(shp_dir / f'{stem}.shp')
    zip_path = tmp_path / f'{stem}_src.zip'
    with zipfile.ZipFile(zip_path, 'w') as zf:
        for part in shp_dir.iterdir():
            zf.write(part, part.name)
    return zip_path.read_bytes()


def _response(content=b'', status_error=None):
    response = mock.Mock()
    response.content = content
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    return response


class TestStateFips:

    @pytest.mark.parametrize('state', ['MD', 'md', 'Maryland', '24', 24])
    def test_resolves(self, state):
        assert state_fips(state) == '24'

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown state"):
            state_fips('Atlantis')

    def test_urls(self):
        assert census_tracts_url('MD', 2020) == (
            'https://www2.census.gov/geo/tiger/GENZ2020/shp/cb_2020_24_tract_500k.zip'
        )
        assert metro_areas_url(2021).endswith('/GENZ2021/shp/cb_2021_us_cbsa_500k.zip')


class TestDownload:

    def test_downloads_once_then_uses_cache(self, tmp_path):
        url = 'https://example.test/boundaries/cb_2020_24_tract_500k.zip'
        with mock.patch.object(boundary_source.requests, 'get',
                               return_value=_response(b'zipdata')) as get:
            first = download_boundary_file(url, cache_dir=tmp_path)
            second = download_boundary_file(url, cache_dir=tmp_path)

        assert get.call_count == 1
        assert first == second == tmp_path / 'cb_2020_24_tract_500k.zip'
        assert first.read_bytes() == b'zipdata'

    def test_http_error_propagates_and_leaves_no_file(self, tmp_path):
        url = 'https://example.test/boundaries/missing.zip'
        error = requests.HTTPError('404 Client Error')
        with mock.patch.object(boundary_source.requests, 'get',
                               return_value=_response(status_error=error)):
            with pytest.raises(requests.HTTPError):
                download_boundary_file(url, cache_dir=tmp_path)

        assert list(tmp_path.iterdir()) == []


class TestFetch:

    def test_fetch_census_tracts(self, tmp_path, tracts):
        payload = _zip_bytes(tracts, tmp_path, 'tracts')
        cache = tmp_path / 'cache'
        with mock.patch.object(boundary_source.requests, 'get',
                               return_value=_response(payload)) as get:
            result = fetch_census_tracts('MD', 2020, cache_dir=cache)

        get.assert_called_once()
        assert get.call_args[0][0].endswith('cb_2020_24_tract_500k.zip')
        assert list(result['GEOID']) == ['24510000100', '24510000200']

    def test_fetch_metro_area_filters_by_name(self, tmp_path, metro):
        cbsa = gpd.GeoDataFrame(
            pd.concat([metro, metro.assign(NAME='Hagerstown-Martinsburg, MD-WV')], ignore_index=True),
            crs=metro.crs
        )
        payload = _zip_bytes(cbsa, tmp_path, 'cbsa')
        with mock.patch.object(boundary_source.requests, 'get', return_value=_response(payload)):
            result = fetch_metro_area('baltimore', 2020, cache_dir=tmp_path / 'cache')

        assert list(result['NAME']) == ['Baltimore-Columbia-Towson, MD']

    def test_fetch_metro_area_no_match(self, tmp_path, metro):
        payload = _zip_bytes(metro, tmp_path, 'cbsa')
        with mock.patch.object(boundary_source.requests, 'get', return_value=_response(payload)):
            with pytest.raises(ValueError, match="No metro area"):
                fetch_metro_area('Springfield', 2020, cache_dir=tmp_path / 'cache')
