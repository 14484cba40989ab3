"""Flush cycle: lazy descriptor registration followed by one batched submission"""
import asyncio
import time
from enum import Enum
from typing import Callable, List, Optional
from stackmetrics.accumulator import SnapshotEntry, ValueAccumulator
from stackmetrics.backends.base import MetricBackend
from stackmetrics.config import Config
from stackmetrics.errors import FlushError, RegistrationError, SubmissionError
from stackmetrics.logging_config import get_logger, log_flush
from stackmetrics.models import DataPoint, TimeSeries
from stackmetrics.rates import convert_rate
from stackmetrics.registry import MetricRegistry


logger = get_logger(__name__)


def current_millis() -> float:
    return time.time() * 1000


class FlushState(Enum):
    """Phases of one flush cycle"""
    IDLE = "idle"
    REGISTERING_DESCRIPTORS = "registering_descriptors"
    SUBMITTING_TIME_SERIES = "submitting_time_series"


class FlushCoordinator:
    """Drives flush cycles against a backend, one at a time.
    
    A cycle first creates the descriptors of metrics the backend does not
    know yet, then converts buffered values into time series and submits
    them as one batch. Buffered values are reset only after the backend has
    accepted the batch, so a failed cycle leaves everything to be retried by
    the next one.
    """
    
    def __init__(self,
                 config: Config,
                 registry: MetricRegistry,
                 accumulator: ValueAccumulator,
                 backend: MetricBackend,
                 clock: Optional[Callable[[], float]] = None):
        self.config = config
        self.registry = registry
        self.accumulator = accumulator
        self.backend = backend
        self.clock = clock or current_millis
        
        self.state = FlushState.IDLE
        self.flush_count = 0
        self.failure_count = 0
        self.last_error: Optional[FlushError] = None
        self.last_flush_timestamp: Optional[float] = None
        
        self._prev_flush_timestamp = self.clock()
        self._flush_lock = asyncio.Lock()
    
    @property
    def prev_flush_timestamp(self) -> float:
        """Start of the current rate window, in milliseconds"""
        return self._prev_flush_timestamp
    
    @property
    def in_flight(self) -> bool:
        return self._flush_lock.locked()
    
    async def flush(self, timestamp: Optional[float] = None) -> List[TimeSeries]:
        """Run one full cycle and return the submitted time series.
        
        Raises RegistrationError or SubmissionError after logging them.
        Concurrent callers wait for the running cycle to finish first.
        """
        async with self._flush_lock:
            start_time = time.time()
            try:
                registered = await self._register_pending()
                now = timestamp if timestamp is not None else self.clock()
                submitted = await self._submit(now)
            except FlushError as e:
                self.failure_count += 1
                self.last_error = e
                logger.warning("Flush cycle failed",
                               error=str(e),
                               error_type=type(e).__name__,
                               metrics=e.metric_names,
                               cause=repr(e.__cause__) if e.__cause__ else None,
                               event_type="flush_error")
                raise
            finally:
                self.state = FlushState.IDLE
            
            self.flush_count += 1
            self.last_error = None
            log_flush(logger, len(submitted), registered, time.time() - start_time)
            return submitted
    
    async def _register_pending(self) -> int:
        """Create descriptors for every metric not yet known to the backend"""
        pending = self.registry.pending_registrations()
        if not pending:
            return 0
        
        self.state = FlushState.REGISTERING_DESCRIPTORS
        requests = [(metric, metric.descriptor) for metric in pending]
        logger.debug("Sending createMetricDescriptor", metrics=[metric.name for metric, _ in requests])
        
        results = await asyncio.gather(
            *(self._call_backend(self.backend.register_descriptor(descriptor)) for _, descriptor in requests),
            return_exceptions=True
        )
        
        failed = []
        first_error = None
        for (metric, _), result in zip(requests, results):
            if isinstance(result, BaseException):
                failed.append(metric.name)
                first_error = first_error or result
                logger.warning("createMetricDescriptor failed",
                               metric=metric.name,
                               error=str(result) or type(result).__name__,
                               event_type="descriptor_error")
            else:
                # A metric redefined during the call keeps its own pending state
                self.registry.acknowledge(metric)
        
        if failed:
            raise RegistrationError(
                f"createMetricDescriptor failed for {len(failed)} of {len(requests)} metrics",
                failed
            ) from first_error
        return len(requests)
    
    async def _submit(self, now: float) -> List[TimeSeries]:
        """Submit buffered values as one batch and reset what was sent"""
        # Metrics defined while registration was in flight wait for the next cycle
        entries = [entry for entry in self.accumulator.snapshot() if entry.metric.remote_registered]
        series = [self._create_time_series(entry, now) for entry in entries]
        
        if not series:
            logger.debug("Nothing to send")
            self._prev_flush_timestamp = now
            return []
        
        self.state = FlushState.SUBMITTING_TIME_SERIES
        logger.debug("Sending time series data", series_count=len(series))
        try:
            await self._call_backend(self.backend.submit_time_series(self.config.project_id, series))
        except Exception as e:
            raise SubmissionError(
                f"createTimeSeries failed: {str(e) or type(e).__name__}",
                [entry.metric.name for entry in entries]
            ) from e
        
        self.accumulator.commit(entries)
        self._prev_flush_timestamp = now
        self.last_flush_timestamp = now
        return series
    
    def _create_time_series(self, entry: SnapshotEntry, now: float) -> TimeSeries:
        metric = entry.metric
        value = entry.value
        if metric.is_rate:
            value = convert_rate(value, now, self._prev_flush_timestamp, metric.rate_unit_millis)
        
        return TimeSeries(
            metric_name=metric.name,
            metric_type=metric.descriptor.type,
            labels=self.config.common_labels(),
            project_id=self.config.project_id,
            points=[DataPoint(end_time=now, value=value, value_type=metric.value_type)],
        )
    
    async def _call_backend(self, coro):
        return await asyncio.wait_for(coro, timeout=self.config.backend_timeout)
