"""Client-side buffer for custom metrics flushed to a time-series backend"""
from .client import StackMetrics
from .config import Config
from .errors import (
    StackMetricsError,
    UnknownMetricError,
    KindMismatchError,
    InvalidValueError,
    FlushError,
    RegistrationError,
    SubmissionError,
)
from .handle import MetricHandle
from .models import MetricKind, ValueType

__all__ = [
    'StackMetrics',
    'Config',
    'MetricHandle',
    'MetricKind',
    'ValueType',
    'StackMetricsError',
    'UnknownMetricError',
    'KindMismatchError',
    'InvalidValueError',
    'FlushError',
    'RegistrationError',
    'SubmissionError',
]
