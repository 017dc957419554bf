"""Administrative routes: aggregation trigger, run status and source registry."""
from typing import List
from fastapi import APIRouter, HTTPException, Depends, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from aggregator.scheduler import Scheduler
from database.connection import get_db
from database.repositories.run_repo import RunRepository
from database.repositories.source_repo import SourceRepository
from api.schemas.requests import SourceUpdateRequest
from api.schemas.responses import (
    ErrorResponse,
    RunStatusResponse,
    SourceListResponse,
    SourceResponse,
    TriggerResponse
)


router = APIRouter(prefix="/admin", tags=["admin"])


def get_scheduler(request: Request) -> Scheduler:
    """Dependency for the process-wide scheduler built in the app lifespan."""
    return request.app.state.scheduler


@router.post("/news/aggregate", response_model=TriggerResponse, status_code=status.HTTP_202_ACCEPTED)
async def trigger_news_aggregation(scheduler: Scheduler = Depends(get_scheduler)):
    """
    Trigger news aggregation in the background.

    Returns immediately. If a run is already in progress the new run is
    recorded as skipped.
    """
    scheduler.trigger_aggregation()
    return TriggerResponse()


@router.get("/runs", response_model=List[RunStatusResponse])
async def list_runs(
    status_filter: str = None,
    limit: int = 50,
    skip: int = 0,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """List aggregation runs, newest first."""
    run_repo = RunRepository(db)
    runs = await run_repo.list_runs(status=status_filter, limit=limit, skip=skip)
    return [RunStatusResponse.from_record(run) for run in runs]


@router.get(
    "/runs/{run_id}",
    response_model=RunStatusResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_run(run_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Get the status and counters of one aggregation run."""
    run = await RunRepository(db).get_run(run_id)

    if not run:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Run {run_id} not found"
        )

    return RunStatusResponse.from_record(run)


@router.get("/news-sources", response_model=SourceListResponse)
async def get_news_sources(db: AsyncIOMotorDatabase = Depends(get_db)):
    """List all configured news sources ordered by name."""
    sources = await SourceRepository(db).list_sources()
    return SourceListResponse(
        data=[SourceResponse(**source.model_dump()) for source in sources]
    )


@router.put(
    "/news-sources/{source_id}",
    response_model=SourceResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}
)
async def update_news_source(
    source_id: str,
    request: SourceUpdateRequest,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Partially update a news source.

    Setting or clearing `feed_url` switches the source between feed and
    scrape ingestion.
    """
    try:
        source = await SourceRepository(db).update_source(source_id, **request.changes())
    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Another news source already uses {request.url}"
        )

    if not source:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"News source {source_id} not found"
        )

    return SourceResponse(**source.model_dump())
