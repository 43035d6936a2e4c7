"""Key Validation Pipeline - Dedupe, dispatch to a bounded worker pool, stream results"""

import asyncio
import logging
import time
from typing import Optional, Iterable, List, AsyncIterator

from ...key_core.models import GeminiKey, Tier, ValidatedKey
from .async_validator import AsyncKeyValidator
from .validation_config import ValidationConfig, FailureReason


class KeyValidationPipeline:
    """Runs every unique key through the validator with at most `concurrency` probes in flight"""

    def __init__(self, client, validator: Optional[AsyncKeyValidator] = None,
                 config: Optional[ValidationConfig] = None):
        self.client = client
        self.validator = validator or AsyncKeyValidator(config)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.stats = {
            'total_submitted': 0,
            'total_unique': 0,
            'total_completed': 0,
            'worker_errors': 0,
            'in_flight': 0,
            'peak_in_flight': 0,
            'start_time': None,
            'end_time': None
        }

    def run(self, keys: Iterable[GeminiKey], concurrency: int) -> AsyncIterator[ValidatedKey]:
        """Validate `keys`, yielding one result per unique key in completion order.

        Raises ValueError immediately if `concurrency` is not a positive int.
        Closing the returned iterator early cancels the outstanding workers.
        """
        if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency < 1:
            raise ValueError(f"concurrency must be a positive integer, got {concurrency!r}")

        keys = list(keys)
        unique_keys = list(dict.fromkeys(keys))
        self.stats['total_submitted'] = len(keys)
        self.stats['total_unique'] = len(unique_keys)

        if len(unique_keys) < len(keys):
            self.logger.info(f"Dropped {len(keys) - len(unique_keys)} duplicate keys before dispatch")

        return self._run_workers(unique_keys, concurrency)

    async def _run_workers(self, keys: List[GeminiKey], concurrency: int) -> AsyncIterator[ValidatedKey]:
        if not keys:
            return

        self.stats['start_time'] = time.time()
        work_queue: asyncio.Queue = asyncio.Queue()
        for key in keys:
            work_queue.put_nowait(key)
        result_queue: asyncio.Queue = asyncio.Queue()

        worker_count = min(concurrency, len(keys))
        self.logger.info(f"Starting validation of {len(keys)} keys with {worker_count} workers")
        workers = [
            asyncio.create_task(self._worker(worker_id, work_queue, result_queue))
            for worker_id in range(worker_count)
        ]

        try:
            for _ in range(len(keys)):
                result = await result_queue.get()
                self.stats['total_completed'] += 1
                yield result
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            self.stats['end_time'] = time.time()

    async def _worker(self, worker_id: int, work_queue: asyncio.Queue, result_queue: asyncio.Queue):
        while True:
            try:
                key = work_queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            self.stats['in_flight'] += 1
            self.stats['peak_in_flight'] = max(self.stats['peak_in_flight'], self.stats['in_flight'])
            try:
                result = await self.validator.validate(self.client, key)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.stats['worker_errors'] += 1
                self.logger.exception(f"Worker {worker_id} failed on {key.masked}: {e}")
                result = ValidatedKey(key, Tier.INVALID, failure_reason=FailureReason.WORKER_ERROR,
                                      detail=f"{type(e).__name__}: {e}")
            finally:
                self.stats['in_flight'] -= 1

            result_queue.put_nowait(result)

    async def collect(self, keys: Iterable[GeminiKey], concurrency: int) -> List[ValidatedKey]:
        """Run the pipeline to completion and return all results"""
        return [result async for result in self.run(keys, concurrency)]

    def get_stats(self):
        return dict(self.stats)
