"""In-memory backend used for tests and local runs"""
from typing import Dict, List, Optional
from stackmetrics.config import Config
from stackmetrics.logging_config import get_logger
from stackmetrics.models import MetricDescriptor, TimeSeries
from .base import MetricBackend


logger = get_logger(__name__)


class InMemoryBackend(MetricBackend):
    """Records descriptors and batches instead of sending them"""
    
    def __init__(self, config: Optional[Config] = None):
        super().__init__(config)
        self._online = True
        self.descriptors: Dict[str, MetricDescriptor] = {}
        self.registration_calls: List[MetricDescriptor] = []
        self.batches: List[List[TimeSeries]] = []
        self.fail_registration_for: set = set()
        self.fail_submission = False
    
    def set_online(self, online: bool) -> None:
        self._online = online
    
    def is_healthy(self) -> bool:
        return self._online
    
    async def register_descriptor(self, descriptor: MetricDescriptor) -> MetricDescriptor:
        self.registration_calls.append(descriptor)
        if not self._online:
            raise ConnectionError("backend offline")
        if descriptor.type in self.fail_registration_for:
            raise RuntimeError(f"descriptor rejected: {descriptor.type}")
        self.descriptors[descriptor.type] = descriptor
        logger.debug("Stored descriptor", metric_type=descriptor.type)
        return descriptor
    
    async def submit_time_series(self, project_id: str, time_series: List[TimeSeries]) -> None:  # noqa: ARG002
        if not self._online:
            raise ConnectionError("backend offline")
        if self.fail_submission:
            raise RuntimeError("time series rejected")
        unknown = [series.metric_type for series in time_series if series.metric_type not in self.descriptors]
        if unknown:
            raise RuntimeError(f"no descriptor for {unknown}")
        self.batches.append(list(time_series))
    
    @property
    def last_batch(self) -> List[TimeSeries]:
        return self.batches[-1] if self.batches else []
    
    def values_by_name(self, batch_index: int = -1) -> Dict[str, object]:
        """Map metric name to submitted point value for one batch"""
        if not self.batches:
            return {}
        return {series.metric_name: series.points[0].value for series in self.batches[batch_index]}
