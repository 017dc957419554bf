"""Run repository: bookkeeping for aggregation runs."""
from datetime import datetime
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase

from aggregator.models import RunStatusEnum, RunTrigger
from shared.utils import generate_run_id, get_utc_now


COUNTER_FIELDS = (
    "sources_processed",
    "items_fetched",
    "items_skipped",
    "articles_created",
    "items_failed",
)


class RunRepository:
    """Repository for AggregationRun records."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.aggregation_runs

    async def create_run(
        self,
        trigger: RunTrigger,
        status: RunStatusEnum = RunStatusEnum.RUNNING
    ) -> Dict[str, Any]:
        """Create a new run record."""
        now = get_utc_now()
        run = {
            "_id": generate_run_id(),
            "trigger": RunTrigger(trigger).value,
            "status": RunStatusEnum(status).value,
            "degraded_stages": 0,
            "error_message": None,
            "started_at": now,
            "updated_at": now,
            "completed_at": now if status != RunStatusEnum.RUNNING else None,
        }
        run.update({name: 0 for name in COUNTER_FIELDS})

        await self.collection.insert_one(run)
        return run

    async def get_run(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get a run by ID."""
        return await self.collection.find_one({"_id": run_id})

    async def increment(self, run_id: str, **counters: int) -> bool:
        """Add to one or more run counters."""
        unknown = set(counters) - set(COUNTER_FIELDS) - {"degraded_stages"}
        if unknown:
            raise ValueError(f"Unknown run counters: {sorted(unknown)}")

        result = await self.collection.update_one(
            {"_id": run_id},
            {
                "$inc": counters,
                "$set": {"updated_at": get_utc_now()}
            }
        )
        return result.modified_count > 0

    async def complete_run(self, run_id: str) -> bool:
        """Mark a run as completed."""
        return await self._finish(run_id, RunStatusEnum.COMPLETED)

    async def fail_run(self, run_id: str, error_message: str) -> bool:
        """Mark a run as failed."""
        return await self._finish(run_id, RunStatusEnum.FAILED, error_message)

    async def _finish(
        self,
        run_id: str,
        status: RunStatusEnum,
        error_message: Optional[str] = None
    ) -> bool:
        now = get_utc_now()
        update = {
            "status": status.value,
            "updated_at": now,
            "completed_at": now
        }
        if error_message is not None:
            update["error_message"] = error_message

        result = await self.collection.update_one({"_id": run_id}, {"$set": update})
        return result.modified_count > 0

    async def list_runs(
        self,
        status: Optional[str] = None,
        limit: int = 50,
        skip: int = 0
    ) -> List[Dict[str, Any]]:
        """List runs, newest first, with optional status filter."""
        query = {}
        if status:
            query["status"] = status

        cursor = self.collection.find(query).sort("started_at", -1).skip(skip).limit(limit)
        return await cursor.to_list(length=limit)

    async def delete_runs_before(self, cutoff: datetime) -> int:
        """Delete finished run records that started before the cutoff."""
        result = await self.collection.delete_many({
            "started_at": {"$lt": cutoff},
            "status": {"$ne": RunStatusEnum.RUNNING.value}
        })
        return result.deleted_count
