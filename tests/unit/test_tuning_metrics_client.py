"""
Unit tests for TuningMetricsClient

Tests the Prometheus metrics wrapper without requiring an actual
Prometheus Push Gateway.
"""

import os
from unittest.mock import MagicMock, patch
import pytest

from note_tuning.tuning_metrics_client import TuningMetricsClient

MODULE = 'note_tuning.tuning_metrics_client'


class TestTuningMetricsClientInitialization:
    """Test TuningMetricsClient initialization and configuration"""

    @patch(f'{MODULE}.push_to_gateway')
    @patch(f'{MODULE}.CollectorRegistry')
    def test_initialization_enabled(self, mock_registry, mock_push):
        """Test client initializes correctly when enabled"""
        client = TuningMetricsClient(
            note_id='1656250',
            hostname='hana01',
            pushgateway_url='http://test-pushgateway:9091'
        )

        assert client.note_id == '1656250'
        assert client.hostname == 'hana01'
        assert client.pushgateway_url == 'http://test-pushgateway:9091'
        assert client.enabled is True

        mock_registry.assert_called_once()

    @patch.dict(os.environ, {'PUSH_METRICS_ENABLED': 'false'})
    @patch(f'{MODULE}.CollectorRegistry')
    def test_initialization_disabled(self, mock_registry):
        """Test client respects PUSH_METRICS_ENABLED=false"""
        client = TuningMetricsClient(note_id='1656250', hostname='hana01')

        assert client.enabled is False
        mock_registry.assert_not_called()

    @patch.dict(os.environ, {'PUSH_GATEWAY_URL': 'http://gateway.monitoring:9091'})
    @patch(f'{MODULE}.CollectorRegistry')
    def test_pushgateway_url_from_environment(self, mock_registry):
        client = TuningMetricsClient(note_id='1656250', hostname='hana01')

        assert client.pushgateway_url == 'http://gateway.monitoring:9091'

    @patch.dict(os.environ, {'PUSH_METRICS_ENABLED': 'false'})
    def test_methods_are_no_ops_when_disabled(self):
        """Test metric methods do not fail without a registry"""
        client = TuningMetricsClient(note_id='1656250', hostname='hana01')

        client.mark_applied()
        client.mark_reverted()
        client.inc_parameter('sysctl', 'applied')
        client.inc_revert('reverted')
        client.observe_run_duration('apply', 0.5)


class TestMetricCreation:
    """Test that Prometheus metrics are created with correct names"""

    @patch(f'{MODULE}.CollectorRegistry')
    @patch(f'{MODULE}.Gauge')
    @patch(f'{MODULE}.Counter')
    @patch(f'{MODULE}.Histogram')
    def test_metrics_created(self, mock_histogram, mock_counter, mock_gauge, mock_registry):
        TuningMetricsClient(note_id='1656250', hostname='hana01')

        assert any('godon_note_active' in str(call) for call in mock_gauge.call_args_list)
        counter_calls = [str(call) for call in mock_counter.call_args_list]
        assert any('godon_note_parameters_total' in call for call in counter_calls)
        assert any('godon_note_reverts_total' in call for call in counter_calls)
        assert any('godon_note_run_duration_seconds' in str(call) for call in mock_histogram.call_args_list)


class TestMetricMethods:
    """Test that metric methods correctly update metrics"""

    @patch(f'{MODULE}.CollectorRegistry')
    @patch(f'{MODULE}.Counter')
    def test_inc_parameter(self, mock_counter, mock_registry):
        """Test inc_parameter labels by kind and status"""
        mock_counter_instance = MagicMock()
        mock_counter.return_value = mock_counter_instance

        client = TuningMetricsClient(note_id='1656250', hostname='hana01')
        client.inc_parameter('block', 'unsupported')

        mock_counter_instance.labels.assert_called_once_with(
            note_id='1656250', hostname='hana01', kind='block', status='unsupported'
        )
        mock_counter_instance.labels.return_value.inc.assert_called_once()

    @patch(f'{MODULE}.CollectorRegistry')
    @patch(f'{MODULE}.Counter')
    def test_inc_parameter_without_kind(self, mock_counter, mock_registry):
        mock_counter_instance = MagicMock()
        mock_counter.return_value = mock_counter_instance

        client = TuningMetricsClient(note_id='1656250', hostname='hana01')
        client.inc_parameter('', 'failed')

        _, kwargs = mock_counter_instance.labels.call_args
        assert kwargs['kind'] == 'unknown'

    @patch(f'{MODULE}.CollectorRegistry')
    @patch(f'{MODULE}.Gauge')
    def test_mark_applied_reverted(self, mock_gauge, mock_registry):
        """Test note state gauge"""
        mock_gauge_instance = MagicMock()
        mock_gauge.return_value = mock_gauge_instance

        client = TuningMetricsClient(note_id='1656250', hostname='hana01')

        client.mark_applied()
        mock_gauge_instance.labels.return_value.set.assert_called_with(1)

        client.mark_reverted()
        mock_gauge_instance.labels.return_value.set.assert_called_with(0)

    @patch(f'{MODULE}.CollectorRegistry')
    @patch(f'{MODULE}.Histogram')
    def test_observe_run_duration(self, mock_histogram, mock_registry):
        mock_histogram_instance = MagicMock()
        mock_histogram.return_value = mock_histogram_instance

        client = TuningMetricsClient(note_id='1656250', hostname='hana01')
        client.observe_run_duration('revert', 2.5)

        _, kwargs = mock_histogram_instance.labels.call_args
        assert kwargs['action'] == 'revert'
        mock_histogram_instance.labels.return_value.observe.assert_called_once_with(2.5)


class TestPushToGateway:
    """Test that metrics are pushed to Push Gateway correctly"""

    @patch(f'{MODULE}.push_to_gateway')
    @patch(f'{MODULE}.CollectorRegistry')
    def test_push_calls_pushgateway(self, mock_registry, mock_push):
        """Test push() calls prometheus push_to_gateway"""
        mock_registry_instance = MagicMock()
        mock_registry.return_value = mock_registry_instance

        client = TuningMetricsClient(
            note_id='1656250',
            hostname='hana01',
            pushgateway_url='http://test-pushgateway:9091'
        )

        result = client.push()

        mock_push.assert_called_once_with(
            'http://test-pushgateway:9091',
            job='note_1656250_hana01',
            registry=mock_registry_instance
        )
        assert result is True

    @patch(f'{MODULE}.push_to_gateway')
    @patch(f'{MODULE}.CollectorRegistry')
    def test_push_disabled(self, mock_registry, mock_push):
        """Test push() does nothing when disabled"""
        with patch.dict(os.environ, {'PUSH_METRICS_ENABLED': 'false'}):
            client = TuningMetricsClient(note_id='1656250', hostname='hana01')

            result = client.push()

            mock_push.assert_not_called()
            assert result is False

    @patch(f'{MODULE}.push_to_gateway')
    @patch(f'{MODULE}.CollectorRegistry')
    def test_push_handles_errors(self, mock_registry, mock_push):
        """Test push() handles Push Gateway errors gracefully"""
        mock_push.side_effect = Exception("Connection refused")

        client = TuningMetricsClient(note_id='1656250', hostname='hana01')

        assert client.push() is False


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
