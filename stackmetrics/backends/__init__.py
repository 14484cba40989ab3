"""Backend adapters for the metrics buffer"""
from .base import MetricBackend, BackendFactory
from .memory import InMemoryBackend

__all__ = [
    'MetricBackend',
    'BackendFactory',
    'InMemoryBackend',
]
