"""Publisher for fetch run progress events."""
import json
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.config import settings
from shared.models import OverallFetchRunResult, ProcessingSummary

logger = logging.getLogger(__name__)


class RunEventPublisher:
    """
    Publishes progress updates to a Redis channel for reporting surfaces.

    Publishing is best effort: a Redis failure is logged and never affects
    the run.
    """

    def __init__(self, redis_client: Optional[redis.Redis], channel: str = None):
        self.redis = redis_client
        self.channel = channel or settings.redis_events_channel

    async def _publish(self, update: dict):
        if self.redis is None:
            return
        try:
            await self.redis.publish(self.channel, json.dumps(update, default=str))
        except (RedisError, OSError) as e:
            logger.warning(f"Failed to publish {update.get('type')} event: {e}")

    async def publish_source_processed(self, run_id: str, summary: ProcessingSummary):
        """Publish the outcome of one source."""
        await self._publish({
            "type": "source_processed",
            "run_id": run_id,
            "source_id": summary.source_id,
            "source_name": summary.source_name,
            "status": summary.status.value,
            "new_items_added": summary.new_items_added,
            "items_skipped": summary.items_skipped,
            "message": summary.message,
        })

    async def publish_run_completed(self, result: OverallFetchRunResult):
        """Publish the overall run result."""
        await self._publish({
            "type": "run_completed",
            "run_id": result.run_id,
            "status": result.status.value,
            "total_sources_attempted": result.total_sources_attempted,
            "total_sources_succeeded": result.total_sources_succeeded,
            "total_sources_failed": result.total_sources_failed,
            "total_new_articles": result.total_new_articles,
        })
