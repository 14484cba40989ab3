"""Tests for the StackMetrics facade"""
import pytest

from stackmetrics import StackMetrics, MetricKind, UnknownMetricError, KindMismatchError, SubmissionError
from stackmetrics.backends import BackendFactory, InMemoryBackend
from stackmetrics.backends.cloud_monitoring import CloudMonitoringBackend
from stackmetrics.config import Config


START = 50_000.0


def _config(**overrides):
    params = dict(project_id="test-project", app_name="shop", send_interval=0, backend="memory")
    params.update(overrides)
    return Config(**params)


class TestStackMetrics:
    """Test the public buffer interface"""
    
    def setup_method(self):
        """Setup test fixtures"""
        self.config = _config()
        self.metrics = StackMetrics(self.config, clock=lambda: START)
        self.backend = self.metrics.backend
    
    def test_backend_from_config(self):
        """Test backend selection"""
        assert isinstance(self.backend, InMemoryBackend)
        assert isinstance(BackendFactory.create_backend(_config(backend="cloud_monitoring")), CloudMonitoringBackend)
    
    def test_write_metric(self):
        """Test the name-based write entry point"""
        self.metrics.create_metric("requests", "Requests", MetricKind.RATE_PER_SECOND)
        self.metrics.create_metric("version", "Version", MetricKind.INT64)
        
        self.metrics.write_metric("requests", 2)
        self.metrics.write_metric("requests", 2)
        self.metrics.write_metric("version", 3)
        
        assert self.metrics.registry.get("requests").value == 4
        assert self.metrics.registry.get("version").value == 3
    
    def test_write_errors(self):
        """Test write-path errors surface to the caller"""
        handle = self.metrics.create_metric("version", "Version", MetricKind.INT64)
        
        with pytest.raises(UnknownMetricError):
            self.metrics.write_metric("missing", 1)
        with pytest.raises(KindMismatchError):
            handle.write_rate(1)
    
    def test_get_metric(self):
        """Test fetching a handle by name"""
        self.metrics.create_metric("version", "Version", MetricKind.INT64)
        
        self.metrics.get_metric("version").write(7)
        
        assert self.metrics.registry.get("version").value == 7
        with pytest.raises(UnknownMetricError):
            self.metrics.get_metric("missing")
    
    @pytest.mark.asyncio
    async def test_status(self):
        """Test status reporting before and after a flush"""
        self.metrics.create_metric("requests", "Requests", MetricKind.RATE_PER_SECOND).write_count(3)
        
        status = self.metrics.get_status()
        assert status["metric_group"] == "shop"
        assert status["flush_state"] == "idle"
        assert status["scheduler_running"] is False
        assert status["last_flush_timestamp"] is None
        assert status["metrics"]["requests"] == {
            "kind": "RATE_PER_SECOND",
            "type": "custom.googleapis.com/shop/requests",
            "value": 3,
            "registered": False,
        }
        
        await self.metrics.flush(START + 1000)
        
        status = self.metrics.get_status()
        assert status["flush_count"] == 1
        assert status["last_error"] is None
        assert status["last_flush_timestamp"] == START + 1000
        assert status["metrics"]["requests"]["value"] == 0
        assert status["metrics"]["requests"]["registered"] is True
    
    @pytest.mark.asyncio
    async def test_context_manager_flushes_on_exit(self):
        """Test graceful shutdown flushing"""
        async with StackMetrics(_config(send_interval=60000), clock=lambda: START) as metrics:
            assert metrics.scheduler.is_running is True
            metrics.create_metric("healthy", "Health", MetricKind.BOOL).write(True)
        
        assert metrics.scheduler.is_running is False
        assert metrics.backend.values_by_name() == {"healthy": True}
    
    @pytest.mark.asyncio
    async def test_stop_reports_failed_final_flush(self):
        """Test that a failed shutdown flush is raised"""
        self.metrics.create_metric("healthy", "Health", MetricKind.BOOL).write(False)
        self.backend.fail_submission = True
        await self.metrics.start()
        
        with pytest.raises(SubmissionError):
            await self.metrics.stop()
        
        assert self.metrics.get_status()["failure_count"] == 1
        assert self.metrics.registry.get("healthy").value is False
