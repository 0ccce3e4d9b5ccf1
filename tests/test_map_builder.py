"""Tests for the interactive Folium map"""

import warnings

import folium
import pytest

from core.map_builder import create_interactive_map


def _feature_groups(m):
    return [child for child in m._children.values() if isinstance(child, folium.FeatureGroup)]


class TestCreateInteractiveMap:

    def test_groups_added_in_order(self, tracts, banks):
        m = create_interactive_map([
            {'name': 'Tracts', 'gdf': tracts.assign(count=[2, 0]), 'column': 'count'},
            {'name': 'Banks', 'gdf': banks, 'color': 'red'},
        ])

        assert [group.layer_name for group in _feature_groups(m)] == ['Tracts', 'Banks']
        assert any(isinstance(child, folium.LayerControl) for child in m._children.values())

    def test_projected_layers_displayed_in_degrees(self, banks):
        m = create_interactive_map([{'name': 'Banks', 'gdf': banks.to_crs('EPSG:2248')}])

        lat, lon = m.location
        assert 39.0 < lat < 40.0
        assert -78.0 < lon < -76.0

    def test_renders_html_with_popups(self, tracts, banks):
        m = create_interactive_map([
            {'name': 'Tracts', 'gdf': tracts, 'title_field': 'GEOID'},
            {'name': 'Banks', 'gdf': banks},
        ], settings={'default_zoom': 11})

        html = m.get_root().render()

        assert 'Downtown' in html
        assert '24510000100' in html

    def test_hidden_layer(self, tracts):
        m = create_interactive_map([{'name': 'Tracts', 'gdf': tracts, 'show': False}])
        assert _feature_groups(m)[0].show is False

    def test_empty_layer_skipped(self, tracts, banks):
        m = create_interactive_map([
            {'name': 'Tracts', 'gdf': tracts},
            {'name': 'Banks', 'gdf': banks.iloc[0:0]},
        ])
        assert [group.layer_name for group in _feature_groups(m)] == ['Tracts']

    def test_constant_choropleth(self, tracts):
        m = create_interactive_map([{'name': 'Tracts', 'gdf': tracts.assign(count=0), 'column': 'count'}])
        assert m.get_root().render()

    def test_no_layers(self):
        with pytest.raises(ValueError):
            create_interactive_map([])

    def test_all_empty(self, banks):
        with pytest.raises(ValueError, match="empty"):
            create_interactive_map([{'name': 'Banks', 'gdf': banks.iloc[0:0]}])

    def test_default_tiles_need_no_key(self, banks):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            m = create_interactive_map([{'name': 'Banks', 'gdf': banks}])
            html = m.get_root().render()

        assert 'tile.openstreetmap.org' in html
        assert not [w for w in caught if 'API key' in str(w.message)]
