"""Tests for the staged analysis pipeline"""

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import Point

from geometry_input.load_input import load_point_csv
from geometry_input.pipeline import run_analysis


class TestRunAnalysis:

    def test_bank_scenario(self, banks_csv, tracts, metro, analysis_settings):
        points = load_point_csv(banks_csv, 'longitude', 'latitude', 'EPSG:4326')

        results, metadata = run_analysis(points, tracts, metro, analysis_settings)

        assert len(points) == 2
        assert len(results['cropped_points']) == 2
        counts = dict(zip(results['tract_counts']['GEOID'], results['tract_counts']['count']))
        assert counts == {'24510000100': 2, '24510000200': 0}
        assert metadata['tracts_with_points'] == 1
        assert metadata['tracts_without_points'] == 1

    def test_stage_outputs(self, banks, tracts, metro, analysis_settings):
        results, metadata = run_analysis(banks, tracts, metro, analysis_settings)

        assert set(results) == {
            'points', 'cropped_points', 'metro_points', 'tracts',
            'metro', 'joined', 'tract_counts', 'buffers'
        }
        assert metadata['point_count'] == 4
        assert metadata['cropped_count'] == 3
        assert metadata['metro_point_count'] == 2
        assert metadata['joined_count'] == 2
        assert set(results['metro_points'].index) <= set(results['cropped_points'].index)

    def test_buffers_returned_in_geographic_crs(self, banks, tracts, metro, analysis_settings):
        results, _ = run_analysis(banks, tracts, metro, analysis_settings)

        buffers = results['buffers']
        assert buffers.crs.to_epsg() == 4326
        assert len(buffers) == len(results['metro_points'])
        for point, buffered in zip(results['metro_points'].geometry, buffers.geometry):
            assert buffered.contains(point)

        # Half a mile is roughly 0.0093 degrees of longitude at this latitude
        width = buffers.geometry.iloc[0].bounds[2] - buffers.geometry.iloc[0].bounds[0]
        assert width == pytest.approx(2 * 0.0093, rel=0.05)

    def test_projected_inputs_reprojected(self, banks, tracts, metro, analysis_settings):
        results, _ = run_analysis(banks.to_crs('EPSG:2248'), tracts, metro, analysis_settings)

        assert results['points'].crs.to_epsg() == 4326
        assert len(results['metro_points']) == 2

    def test_untagged_input_fails(self, banks, tracts, metro, analysis_settings):
        untagged = gpd.GeoDataFrame(banks.drop(columns='geometry'), geometry=list(banks.geometry))

        with pytest.raises(ValueError, match="source CRS unknown"):
            run_analysis(untagged, tracts, metro, analysis_settings)

    def test_sum_of_counts_matches_join(self, banks, tracts, metro, analysis_settings):
        results, _ = run_analysis(banks, tracts, metro, analysis_settings)
        assert results['tract_counts']['count'].sum() == results['joined'].index.nunique()

    def test_edge_bank_counted_once(self, banks, tracts, metro, analysis_settings):
        edge = gpd.GeoDataFrame({'name': ['Edge']}, geometry=[Point(-76.55, 39.30)], crs='EPSG:4326')
        with_edge = gpd.GeoDataFrame(pd.concat([banks, edge], ignore_index=True), crs=banks.crs)

        results, metadata = run_analysis(with_edge, tracts, metro, analysis_settings)

        assert metadata['metro_point_count'] == 3
        assert metadata['joined_count'] == 4
        assert results['tract_counts']['count'].sum() == 3
        assert list(results['tract_counts']['count']) == [3, 0]
