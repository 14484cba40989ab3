"""Periodic flush scheduling"""
import asyncio
from typing import Optional
from stackmetrics.errors import FlushError
from stackmetrics.flush import FlushCoordinator
from stackmetrics.logging_config import get_logger, log_error


logger = get_logger(__name__)


class FlushScheduler:
    """Runs flush cycles at a fixed interval on the running event loop"""
    
    def __init__(self, coordinator: FlushCoordinator, interval_ms: int):
        self.coordinator = coordinator
        self.interval_ms = interval_ms
        self._flush_task: Optional[asyncio.Task] = None
        self._shutdown = False
    
    @property
    def is_running(self) -> bool:
        return self._flush_task is not None and not self._flush_task.done()
    
    async def start(self):
        """Start the flush loop; an interval of 0 leaves only explicit flushes"""
        if self.interval_ms <= 0:
            logger.info("Automatic flushing disabled", send_interval_ms=self.interval_ms)
            return
        if self._flush_task is None:
            self._shutdown = False
            self._flush_task = asyncio.create_task(self._flush_loop())
            logger.info("Flush scheduler started", send_interval_ms=self.interval_ms)
    
    async def stop(self, flush: bool = True):
        """Stop the flush loop and, by default, flush what is still buffered"""
        self._shutdown = True
        
        if self._flush_task:
            self._flush_task.cancel()
            try:
                await self._flush_task
            except asyncio.CancelledError:
                pass
            self._flush_task = None
        
        logger.info("Flush scheduler stopped")
        
        if flush:
            await self.coordinator.flush()
    
    async def run_once(self) -> bool:
        """Run one scheduled cycle; failures are logged and never raised"""
        try:
            await self.coordinator.flush()
            return True
        except FlushError:
            # Already reported by the coordinator
            return False
        except Exception as e:
            log_error(logger, e, {"send_interval_ms": self.interval_ms},
                      message="Flush loop error", event_type="flush_loop_error")
            return False
    
    async def _flush_loop(self):
        while not self._shutdown:
            try:
                await asyncio.sleep(self.interval_ms / 1000)
                await self.run_once()
            except asyncio.CancelledError:
                break
