"""Tests for the Cloud Monitoring backend"""
from unittest.mock import AsyncMock, patch
import pytest
from google.api import metric_pb2 as ga_metric
from google.api_core import exceptions as google_exceptions

from stackmetrics.backends.cloud_monitoring import CloudMonitoringBackend
from stackmetrics.config import Config
from stackmetrics.models import DataPoint, MetricDescriptor, TimeSeries, ValueType


def _descriptor(value_type=ValueType.INT64):
    return MetricDescriptor(
        type="custom.googleapis.com/shop/queueDepth",
        display_name="shop/queueDepth",
        description="Queue depth",
        value_type=value_type,
    )


def _series(value, value_type, end_time=1_500_250.0):
    return TimeSeries(
        metric_name="queueDepth",
        metric_type="custom.googleapis.com/shop/queueDepth",
        labels={"appName": "shop", "envName": "stage"},
        project_id="test-project",
        points=[DataPoint(end_time=end_time, value=value, value_type=value_type)],
    )


class TestCloudMonitoringBackend:
    """Test request construction and error handling against a mocked client"""
    
    def setup_method(self):
        """Setup test fixtures"""
        self.config = Config(project_id="test-project", app_name="shop")
        self.client = AsyncMock()
        self.backend = CloudMonitoringBackend(self.config, client=self.client)
    
    @pytest.mark.asyncio
    async def test_register_descriptor(self):
        """Test the createMetricDescriptor request"""
        descriptor = _descriptor(ValueType.DOUBLE)
        
        result = await self.backend.register_descriptor(descriptor)
        
        assert result == descriptor
        kwargs = self.client.create_metric_descriptor.call_args.kwargs
        assert kwargs["name"] == "projects/test-project"
        request = kwargs["metric_descriptor"]
        assert request.type == "custom.googleapis.com/shop/queueDepth"
        assert request.display_name == "shop/queueDepth"
        assert request.metric_kind == ga_metric.MetricDescriptor.MetricKind.GAUGE
        assert request.value_type == ga_metric.MetricDescriptor.ValueType.DOUBLE
        assert [label.key for label in request.labels] == ["appName", "envName"]
    
    @pytest.mark.asyncio
    async def test_submit_time_series(self):
        """Test the createTimeSeries request"""
        await self.backend.submit_time_series("test-project", [_series(12, ValueType.INT64)])
        
        kwargs = self.client.create_time_series.call_args.kwargs
        assert kwargs["name"] == "projects/test-project"
        series = kwargs["time_series"][0]
        assert series.metric.type == "custom.googleapis.com/shop/queueDepth"
        assert dict(series.metric.labels) == {"appName": "shop", "envName": "stage"}
        assert series.resource.type == "global"
        assert dict(series.resource.labels) == {"project_id": "test-project"}
        point = series.points[0]
        assert point.value.int64_value == 12
        assert point.interval.end_time.timestamp() == pytest.approx(1500.25)
    
    @pytest.mark.asyncio
    async def test_typed_values(self):
        """Test value encoding per value type"""
        await self.backend.submit_time_series("test-project", [
            _series(True, ValueType.BOOL),
            _series(2.5, ValueType.DOUBLE),
        ])
        
        series = self.client.create_time_series.call_args.kwargs["time_series"]
        assert series[0].points[0].value.bool_value is True
        assert series[1].points[0].value.double_value == 2.5
    
    @pytest.mark.asyncio
    async def test_api_error_propagates(self):
        """Test that API failures are raised and mark the backend unhealthy"""
        self.client.create_time_series.side_effect = google_exceptions.ServiceUnavailable("down")
        
        with pytest.raises(google_exceptions.ServiceUnavailable):
            await self.backend.submit_time_series("test-project", [_series(1, ValueType.INT64)])
        
        assert self.backend.is_healthy() is False
        
        self.client.create_metric_descriptor.side_effect = google_exceptions.PermissionDenied("denied")
        with pytest.raises(google_exceptions.PermissionDenied):
            await self.backend.register_descriptor(_descriptor())
    
    @pytest.mark.asyncio
    async def test_start_uses_key_file(self):
        """Test client creation from a service account key file"""
        config = Config(project_id="test-project", app_name="shop", key_filename="/secrets/key.json")
        backend = CloudMonitoringBackend(config)
        
        with patch("stackmetrics.backends.cloud_monitoring.monitoring_v3.MetricServiceAsyncClient") as client_cls:
            await backend.start()
        
        client_cls.from_service_account_file.assert_called_once_with("/secrets/key.json")
        assert backend.client is client_cls.from_service_account_file.return_value
        assert backend.is_healthy() is True
    
    @pytest.mark.asyncio
    async def test_start_failure_is_logged_and_raised(self):
        """Test client creation errors"""
        config = Config(project_id="test-project", app_name="shop", key_filename="/missing/key.json")
        backend = CloudMonitoringBackend(config)
        
        with patch("stackmetrics.backends.cloud_monitoring.monitoring_v3.MetricServiceAsyncClient") as client_cls, \
                patch("stackmetrics.backends.cloud_monitoring.log_error") as mock_log_error:
            client_cls.from_service_account_file.side_effect = FileNotFoundError("/missing/key.json")
            with pytest.raises(FileNotFoundError):
                await backend.start()
        
        assert backend.is_healthy() is False
        assert mock_log_error.call_args.kwargs["event_type"] == "backend_start_error"
    
    @pytest.mark.asyncio
    async def test_shutdown_closes_transport(self):
        """Test shutdown"""
        await self.backend.shutdown()
        
        self.client.transport.close.assert_awaited_once()
        assert self.backend.is_healthy() is False
