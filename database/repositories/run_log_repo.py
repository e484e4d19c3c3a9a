"""Fetch run log repository."""
from typing import Optional, List, Dict, Any
from datetime import datetime
from motor.motor_asyncio import AsyncIOMotorDatabase
from shared.models import OverallFetchRunResult, RunStatus


class RunLogRepository:
    """Repository for fetch run logs."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.fetch_run_logs

    async def create_run_log(self, run_id: str, start_time: datetime) -> Dict[str, Any]:
        """Create an in-progress log entry at run start."""
        log = {
            "_id": run_id,
            "start_time": start_time,
            "end_time": None,
            "status": RunStatus.IN_PROGRESS.value,
            "total_sources_attempted": 0,
            "total_sources_succeeded": 0,
            "total_sources_failed": 0,
            "total_new_articles": 0,
            "source_summaries": [],
            "orchestration_errors": [],
        }
        await self.collection.insert_one(log)
        return log

    async def finalize_run_log(self, result: OverallFetchRunResult) -> bool:
        """Store the final run result on its log entry."""
        data = result.model_dump(mode="json", exclude={"run_id", "start_time", "end_time"})
        data["source_summaries"] = data.pop("detailed_summaries")
        data["end_time"] = result.end_time
        update_result = await self.collection.update_one(
            {"_id": result.run_id},
            {"$set": data}
        )
        return update_result.modified_count > 0

    async def get_run_log(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get a run log by ID."""
        return await self.collection.find_one({"_id": run_id})

    async def list_run_logs(self, limit: int = 20, skip: int = 0) -> List[Dict[str, Any]]:
        """List run logs, newest first."""
        cursor = (
            self.collection.find({}, {"source_summaries": 0})
            .sort("start_time", -1)
            .skip(skip)
            .limit(limit)
        )
        return await cursor.to_list(length=limit)
