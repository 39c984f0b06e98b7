"""
Base connector class for all data sources
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from datetime import date, datetime
from sku_metrics.utils.logger import log
from sku_metrics.utils.retry import is_retryable_error, calculate_backoff
import asyncio
import time


class BaseConnector(ABC):
    """Base class for all data source connectors"""

    # Retry configuration (can be overridden by subclasses)
    RETRY_MAX_ATTEMPTS = 3
    RETRY_BASE_DELAY = 2.0  # seconds
    RETRY_MAX_DELAY = 30.0  # seconds

    def __init__(self, name: str):
        self.name = name
        self.last_sync = None
        self.sync_count = 0
        self.error_count = 0
        self.retry_count = 0

    @abstractmethod
    async def validate_connection(self) -> bool:
        """Check that credentials are present and the source is reachable"""
        pass

    @abstractmethod
    async def fetch_data(self, start_date: date, end_date: date) -> Any:
        """Fetch data for a local-date range"""
        pass

    async def sync(self, start_date: date, end_date: date) -> Dict[str, Any]:
        """
        Fetch data with connection validation, retries and logging.

        Never raises for source failures; callers decide whether a failed
        source is fatal.

        Returns:
            Dict with keys: success, source, data/error, duration, retry_stats
        """
        log.info(f"Starting sync for {self.name} from {start_date} to {end_date}")
        start_time = time.time()
        retry_stats = {"retries": 0, "total_delay_seconds": 0.0, "errors": []}

        try:
            connection_valid = await self._retry_operation(
                self.validate_connection,
                operation_name="validate_connection",
                retry_stats=retry_stats
            )
            if not connection_valid:
                raise ConnectionError(f"Connection validation failed for {self.name}")

            data = await self._retry_operation(
                lambda: self.fetch_data(start_date, end_date),
                operation_name="fetch_data",
                retry_stats=retry_stats
            )

            self.last_sync = datetime.utcnow()
            self.sync_count += 1
            elapsed = time.time() - start_time

            if retry_stats["retries"] > 0:
                log.info(
                    f"Sync completed for {self.name} in {elapsed:.2f}s "
                    f"(after {retry_stats['retries']} retries, {retry_stats['total_delay_seconds']:.1f}s delay)"
                )
            else:
                log.info(f"Sync completed for {self.name} in {elapsed:.2f}s")

            return {
                "success": True,
                "source": self.name,
                "data": data,
                "duration": elapsed,
                "retry_stats": retry_stats
            }

        except Exception as e:
            self.error_count += 1
            elapsed = time.time() - start_time
            log.error(f"Sync failed for {self.name} after {retry_stats['retries']} retries: {str(e)}")

            return {
                "success": False,
                "source": self.name,
                "error": str(e),
                "duration": elapsed,
                "retry_stats": retry_stats
            }

    async def _retry_operation(
        self,
        operation,
        operation_name: str = "operation",
        retry_stats: Optional[Dict] = None
    ) -> Any:
        """
        Execute an operation, retrying transient failures with backoff.

        Args:
            operation: Callable returning a value or a coroutine
            operation_name: Name for logging
            retry_stats: Dict to track retry statistics (mutated in place)
        """
        for attempt in range(1, self.RETRY_MAX_ATTEMPTS + 1):
            try:
                result = operation()
                if asyncio.iscoroutine(result):
                    result = await result
                if attempt > 1:
                    self.retry_count += (attempt - 1)
                return result

            except Exception as e:
                if retry_stats is not None:
                    retry_stats["errors"].append(f"{type(e).__name__}: {str(e)}")

                if attempt >= self.RETRY_MAX_ATTEMPTS or not is_retryable_error(e):
                    raise

                delay = calculate_backoff(
                    attempt,
                    base_delay=self.RETRY_BASE_DELAY,
                    max_delay=self.RETRY_MAX_DELAY
                )
                if retry_stats is not None:
                    retry_stats["retries"] += 1
                    retry_stats["total_delay_seconds"] += delay

                log.warning(
                    f"{self.name} {operation_name} attempt {attempt} failed: {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)

        raise RuntimeError("Retry exhausted")

    def get_status(self) -> Dict[str, Any]:
        """Get connector status"""
        return {
            "name": self.name,
            "last_sync": self.last_sync,
            "sync_count": self.sync_count,
            "error_count": self.error_count,
            "retry_count": self.retry_count,
            "error_rate": self.error_count / max(self.sync_count, 1),
        }
