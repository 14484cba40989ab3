"""Handle returned to applications for writing one metric"""
from stackmetrics.accumulator import ValueAccumulator
from stackmetrics.models import MetricValueT


class MetricHandle:
    """Represents a custom metric variable in the application. Call to update the value."""
    
    def __init__(self, accumulator: ValueAccumulator, name: str):
        self._accumulator = accumulator
        self.name = name
        self.count = 0
    
    def write(self, value: MetricValueT) -> None:
        """Set the current value of a gauge metric"""
        self._accumulator.write_gauge(self.name, value)
    
    def write_rate(self, delta: float) -> None:
        """Add a delta to a rate metric"""
        self._accumulator.write_rate_delta(self.name, delta)
    
    def write_count(self, delta: float) -> None:
        """Count events on a rate metric, keeping a local running total.
        
        Only the delta reaches the accumulator, which holds the sum since the
        last flush.
        """
        self._accumulator.write_rate_delta(self.name, delta)
        self.count += delta
    
    def __repr__(self) -> str:
        return f"MetricHandle(name={self.name!r}, count={self.count!r})"
