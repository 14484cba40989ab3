"""Write path: applies written values to buffered metric state"""
import math
import numbers
from dataclasses import dataclass
from typing import List
from stackmetrics.errors import InvalidValueError, KindMismatchError
from stackmetrics.logging_config import get_logger
from stackmetrics.models import Metric, MetricValueT, ValueType
from stackmetrics.registry import MetricRegistry


logger = get_logger(__name__)


@dataclass(frozen=True)
class SnapshotEntry:
    """Value of one metric captured at the start of a submission"""
    metric: Metric
    value: MetricValueT
    version: int


class ValueAccumulator:
    """Applies gauge replacements and rate deltas to the registry's metrics"""
    
    def __init__(self, registry: MetricRegistry):
        self.registry = registry
    
    def write(self, name: str, value: MetricValueT) -> None:
        """Write a value, dispatching on the metric's kind"""
        metric = self.registry.get(name)
        if metric.is_rate:
            self._add(metric, value)
        else:
            self._replace(metric, value)
    
    def write_gauge(self, name: str, value: MetricValueT) -> None:
        """Replace the value of a non-rate metric"""
        metric = self.registry.get(name)
        if metric.is_rate:
            raise KindMismatchError(name, metric.kind, "write a gauge value to")
        self._replace(metric, value)
    
    def write_rate_delta(self, name: str, delta: float) -> None:
        """Add a delta to a rate metric's running sum"""
        metric = self.registry.get(name)
        if not metric.is_rate:
            raise KindMismatchError(name, metric.kind, "write a rate delta to")
        self._add(metric, delta)
    
    def snapshot(self) -> List[SnapshotEntry]:
        """Capture every metric that has something to report this cycle"""
        entries = []
        for metric in self.registry.metrics():
            if metric.is_rate or metric.value is not None:
                entries.append(SnapshotEntry(metric=metric, value=metric.value, version=metric.version))
        return entries
    
    def commit(self, entries: List[SnapshotEntry]) -> None:
        """Reset what a successful submission has sent.
        
        Writes that arrived while the submission was in flight stay buffered:
        rate sums keep only the newer deltas and gauges keep a newer value.
        """
        for entry in entries:
            metric = entry.metric
            if metric.is_rate:
                if metric.version == entry.version:
                    metric.value = 0
                else:
                    metric.value -= entry.value
            elif metric.version == entry.version:
                metric.value = None
    
    def _replace(self, metric: Metric, value: MetricValueT) -> None:
        value = self._checked(metric, value)
        metric.value = value
        metric.version += 1
        logger.debug("writeMetric", metric=metric.name, value=value)
    
    def _add(self, metric: Metric, delta: float) -> None:
        delta = self._checked(metric, delta)
        total = metric.value + delta
        if not math.isfinite(total):
            raise InvalidValueError(metric.name, metric.kind, delta)
        metric.value = total
        metric.version += 1
        logger.debug("writeMetric", metric=metric.name, delta=delta)
    
    @staticmethod
    def _checked(metric: Metric, value):
        """Reject values the backend cannot encode for this metric"""
        if metric.value_type == ValueType.BOOL:
            if not isinstance(value, bool):
                raise InvalidValueError(metric.name, metric.kind, value)
            return value
        
        if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
            raise InvalidValueError(metric.name, metric.kind, value)
        if metric.value_type == ValueType.INT64:
            if value != int(value):
                raise InvalidValueError(metric.name, metric.kind, value)
            return int(value)
        return value
