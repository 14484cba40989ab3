"""Exceptions raised by the metrics buffer"""
from typing import List, Optional


class StackMetricsError(Exception):
    """Base class for all buffer errors"""


class UnknownMetricError(StackMetricsError, KeyError):
    """A write or read referenced a metric name that was never created"""
    
    def __init__(self, name: str):
        super().__init__(f"Unknown metric: {name}")
        self.name = name
    
    def __str__(self) -> str:
        return self.args[0]


class KindMismatchError(StackMetricsError, TypeError):
    """Gauge write on a rate metric or rate write on a gauge metric"""
    
    def __init__(self, name: str, kind, operation: str):
        super().__init__(f"Cannot {operation} metric {name} of kind {kind.value}")
        self.name = name
        self.kind = kind
        self.operation = operation


class FlushError(StackMetricsError):
    """A flush cycle failed; buffered values are kept for the next cycle"""
    
    def __init__(self, message: str, metric_names: Optional[List[str]] = None):
        super().__init__(message)
        self.metric_names = list(metric_names or [])


class RegistrationError(FlushError):
    """Descriptor creation failed, the cycle aborted before submission"""


class SubmissionError(FlushError):
    """The time-series batch was rejected or could not be sent"""


class InvalidValueError(StackMetricsError, ValueError):
    """A written value cannot be represented by the metric's value type"""
    
    def __init__(self, name: str, kind, value):
        super().__init__(f"Invalid value {value!r} for metric {name} of kind {kind.value}")
        self.name = name
        self.kind = kind
        self.value = value
