"""Interface to custom metrics buffered in memory and flushed to a backend"""
from typing import Any, Callable, Dict, List, Optional
from stackmetrics.accumulator import ValueAccumulator
from stackmetrics.backends.base import BackendFactory, MetricBackend
from stackmetrics.config import Config
from stackmetrics.flush import FlushCoordinator
from stackmetrics.handle import MetricHandle
from stackmetrics.logging_config import get_logger, log_startup
from stackmetrics.models import MetricKind, MetricValueT, TimeSeries
from stackmetrics.registry import MetricRegistry
from stackmetrics.scheduler import FlushScheduler


logger = get_logger(__name__)


class StackMetrics:
    """Buffers the metrics of one metric group and flushes them periodically.
    
    Metrics are created once, typically at startup, with create_metric. The
    returned handles write synchronously into memory; values reach the
    backend on the next flush cycle, either from the scheduler started with
    start() or from an explicit flush().
    """
    
    def __init__(self,
                 config: Config,
                 backend: Optional[MetricBackend] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.config = config
        self.backend = backend or BackendFactory.create_backend(config)
        self.registry = MetricRegistry(config)
        self.accumulator = ValueAccumulator(self.registry)
        self.coordinator = FlushCoordinator(config, self.registry, self.accumulator, self.backend, clock=clock)
        self.scheduler = FlushScheduler(self.coordinator, config.send_interval)
    
    def create_metric(self, name: str, description: str, kind: MetricKind) -> MetricHandle:
        """Define a metric and return a handle for writing it"""
        self.registry.define(name, kind, description)
        return MetricHandle(self.accumulator, name)
    
    def get_metric(self, name: str) -> MetricHandle:
        """Get a new handle for an existing metric"""
        self.registry.get(name)
        return MetricHandle(self.accumulator, name)
    
    def write_metric(self, name: str, value: MetricValueT) -> None:
        """Write a custom metric value: rates accumulate, other kinds replace"""
        self.accumulator.write(name, value)
    
    async def flush(self, timestamp: Optional[float] = None) -> List[TimeSeries]:
        """Flush now; errors are raised to the caller"""
        return await self.coordinator.flush(timestamp)
    
    async def start(self) -> None:
        log_startup(logger, self.config)
        await self.backend.start()
        await self.scheduler.start()
    
    async def stop(self, flush: bool = True) -> None:
        """Stop scheduling and flush what is still buffered"""
        try:
            await self.scheduler.stop(flush=flush)
        finally:
            await self.backend.shutdown()
    
    async def __aenter__(self) -> "StackMetrics":
        await self.start()
        return self
    
    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
    
    def get_status(self) -> Dict[str, Any]:
        """Get status information for the buffer and all metrics"""
        coordinator = self.coordinator
        return {
            "metric_group": self.config.metric_group_name,
            "backend_healthy": self.backend.is_healthy(),
            "scheduler_running": self.scheduler.is_running,
            "flush_state": coordinator.state.value,
            "flush_count": coordinator.flush_count,
            "failure_count": coordinator.failure_count,
            "last_error": str(coordinator.last_error) if coordinator.last_error else None,
            "prev_flush_timestamp": coordinator.prev_flush_timestamp,
            "last_flush_timestamp": coordinator.last_flush_timestamp,
            "metrics": {
                metric.name: {
                    "kind": metric.kind.value,
                    "type": metric.descriptor.type,
                    "value": metric.value,
                    "registered": metric.remote_registered,
                }
                for metric in self.registry.metrics()
            },
        }
