"""Backend adapter interface and factory"""
import abc
from typing import List
from stackmetrics.config import Config
from stackmetrics.models import MetricDescriptor, TimeSeries


class MetricBackend(abc.ABC):
    """Abstract base class for remote time-series backends"""
    
    def __init__(self, config: Config):
        self.config = config
    
    async def start(self) -> None:
        """Initialize the backend connection"""
    
    async def shutdown(self) -> None:
        """Release backend resources"""
    
    @abc.abstractmethod
    def is_healthy(self) -> bool:
        """Check if backend is healthy"""
        pass
    
    @abc.abstractmethod
    async def register_descriptor(self, descriptor: MetricDescriptor) -> MetricDescriptor:
        """Create a metric descriptor; raises on any failure"""
        pass
    
    @abc.abstractmethod
    async def submit_time_series(self, project_id: str, time_series: List[TimeSeries]) -> None:
        """Write one batch of time series; all or nothing, raises on failure"""
        pass


class BackendFactory:
    """Factory for creating backends based on configuration"""
    
    @staticmethod
    def create_backend(config: Config) -> MetricBackend:
        """Create a backend based on the configured backend name"""
        if config.backend == "memory":
            from .memory import InMemoryBackend
            return InMemoryBackend(config)
        elif config.backend == "cloud_monitoring":
            from .cloud_monitoring import CloudMonitoringBackend
            return CloudMonitoringBackend(config)
        else:
            raise ValueError(f"Unsupported backend: {config.backend}")
