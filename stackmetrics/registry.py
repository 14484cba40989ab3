"""Metric registry holding descriptors and remote registration state"""
from typing import Dict, List
from stackmetrics.config import Config
from stackmetrics.errors import UnknownMetricError
from stackmetrics.logging_config import get_logger
from stackmetrics.models import Metric, MetricDescriptor, MetricKind


logger = get_logger(__name__)


class MetricRegistry:
    """Central registry for all metrics owned by one buffer instance"""
    
    def __init__(self, config: Config):
        self.config = config
        self._metrics: Dict[str, Metric] = {}
    
    def define(self, name: str, kind: MetricKind, description: str = "") -> Metric:
        """Create and store a metric, replacing any previous definition of the same name"""
        if not isinstance(kind, MetricKind):
            kind = MetricKind(kind)
        
        if name in self._metrics:
            logger.warning("Metric redefined, previous definition replaced",
                           metric=name,
                           event_type="metric_redefined")
        
        metric = Metric(
            name=name,
            kind=kind,
            description=description,
            descriptor=self._build_descriptor(name, kind, description),
        )
        self._metrics[name] = metric
        logger.info("Created metric", metric=name, kind=kind.value, event_type="metric_created")
        return metric
    
    def get(self, name: str) -> Metric:
        """Get metric by name"""
        metric = self._metrics.get(name)
        if metric is None:
            raise UnknownMetricError(name)
        return metric
    
    def metrics(self) -> List[Metric]:
        """List all metrics in definition order"""
        return list(self._metrics.values())
    
    def pending_registrations(self) -> List[Metric]:
        """Metrics whose descriptor the backend has not acknowledged yet"""
        return [metric for metric in self._metrics.values() if not metric.remote_registered]
    
    def mark_registered(self, name: str) -> None:
        """Record a successful descriptor registration"""
        metric = self._metrics.get(name)
        if metric is None:
            logger.debug("Registration acknowledged for unknown metric", metric=name)
            return
        self.acknowledge(metric)
    
    def acknowledge(self, metric: Metric) -> None:
        """Record a successful registration of this exact metric definition"""
        if not metric.remote_registered:
            metric.remote_registered = True
            logger.debug("Descriptor registered", metric=metric.name, event_type="descriptor_registered")
        if self._metrics.get(metric.name) is not metric:
            logger.debug("Registered definition was replaced", metric=metric.name)
    
    def metric_type(self, name: str) -> str:
        """Type identifier of the form <namespace>/<group>/<name>"""
        return f"{self.config.metric_type_prefix()}/{name}"
    
    def display_name(self, name: str) -> str:
        # Group metrics named after the app carry the app name as a prefix
        if self.config.metric_group_name == self.config.app_name:
            return f"{self.config.app_name}/{name}"
        return name
    
    def _build_descriptor(self, name: str, kind: MetricKind, description: str) -> MetricDescriptor:
        return MetricDescriptor(
            type=self.metric_type(name),
            display_name=self.display_name(name),
            description=description,
            value_type=kind.value_type,
        )
    
    def __contains__(self, name: str) -> bool:
        return name in self._metrics
    
    def __len__(self) -> int:
        return len(self._metrics)
