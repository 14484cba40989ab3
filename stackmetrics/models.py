"""Metric models for the buffering engine"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


MetricValueT = Union[int, float, bool]


class ValueType(Enum):
    """Value types understood by the backend"""
    INT64 = "INT64"
    BOOL = "BOOL"
    DOUBLE = "DOUBLE"


class MetricKind(Enum):
    """Metric kinds accepted by create_metric"""
    INT64 = "INT64"
    BOOL = "BOOL"
    DOUBLE = "DOUBLE"
    RATE_PER_SECOND = "RATE_PER_SECOND"
    RATE_PER_MINUTE = "RATE_PER_MINUTE"
    RATE_PER_HOUR = "RATE_PER_HOUR"
    RATE_PER_DAY = "RATE_PER_DAY"
    
    @property
    def value_type(self) -> ValueType:
        if self in _RATE_UNIT_MILLIS:
            return ValueType.DOUBLE
        return ValueType(self.value)
    
    @property
    def rate_unit_millis(self) -> Optional[int]:
        """Length of the rate's time unit in milliseconds, None for gauges"""
        return _RATE_UNIT_MILLIS.get(self)
    
    @property
    def is_rate(self) -> bool:
        return self in _RATE_UNIT_MILLIS


_RATE_UNIT_MILLIS = {
    MetricKind.RATE_PER_SECOND: 1000,
    MetricKind.RATE_PER_MINUTE: 1000 * 60,
    MetricKind.RATE_PER_HOUR: 1000 * 3600,
    MetricKind.RATE_PER_DAY: 1000 * 3600 * 24,
}


@dataclass(frozen=True)
class LabelDescriptor:
    """Label declared on a metric descriptor"""
    key: str
    description: str
    value_type: str = "STRING"


COMMON_LABELS = (
    LabelDescriptor(key="appName", description="Application name"),
    LabelDescriptor(key="envName", description="Environment (prod, stage, ...)"),
)


@dataclass(frozen=True)
class MetricDescriptor:
    """Backend-side metadata that must exist before data points are accepted"""
    type: str
    display_name: str
    description: str
    value_type: ValueType
    metric_kind: str = "GAUGE"
    labels: tuple = COMMON_LABELS
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "displayName": self.display_name,
            "description": self.description,
            "metricKind": self.metric_kind,
            "valueType": self.value_type.value,
            "labels": [
                {"key": label.key, "valueType": label.value_type, "description": label.description}
                for label in self.labels
            ],
        }


@dataclass
class Metric:
    """In-memory state of one buffered metric"""
    name: str
    kind: MetricKind
    descriptor: MetricDescriptor
    description: str = ""
    value: Optional[MetricValueT] = None
    remote_registered: bool = False
    version: int = 0
    
    def __post_init__(self):
        # Rate accumulators start at zero and are never unset
        if self.kind.is_rate and self.value is None:
            self.value = 0
    
    @property
    def value_type(self) -> ValueType:
        return self.kind.value_type
    
    @property
    def rate_unit_millis(self) -> Optional[int]:
        return self.kind.rate_unit_millis
    
    @property
    def is_rate(self) -> bool:
        return self.kind.is_rate


@dataclass(frozen=True)
class DataPoint:
    """Single timestamped value, end_time in milliseconds"""
    end_time: float
    value: MetricValueT
    value_type: ValueType
    
    def to_dict(self) -> Dict[str, Any]:
        if self.value_type == ValueType.INT64:
            encoded = {"int64Value": int(self.value)}
        elif self.value_type == ValueType.BOOL:
            encoded = {"boolValue": bool(self.value)}
        else:
            encoded = {"doubleValue": float(self.value)}
        return {
            "interval": {"endTime": {"seconds": self.end_time / 1000}},
            "value": encoded,
        }


@dataclass(frozen=True)
class TimeSeries:
    """One time-series entry of a submission batch"""
    metric_name: str
    metric_type: str
    labels: Dict[str, str]
    project_id: str
    points: List[DataPoint] = field(default_factory=list)
    resource_type: str = "global"
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": {"type": self.metric_type, "labels": dict(self.labels)},
            "resource": {"type": self.resource_type, "labels": {"project_id": self.project_id}},
            "points": [point.to_dict() for point in self.points],
        }
