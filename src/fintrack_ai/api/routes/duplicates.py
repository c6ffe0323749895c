import asyncio
from time import perf_counter
from typing import Annotated

from fastapi import APIRouter, Depends

from fintrack_ai.api.dependencies import get_detector
from fintrack_ai.api.schemas import DetectDuplicateRequest, ScanDuplicatesRequest
from fintrack_ai.core import settings
from fintrack_ai.domain.timefmt import format_duration
from fintrack_ai.logger import get_logger
from fintrack_ai.models import DuplicateGroup, SimilarityResult
from fintrack_ai.services.duplicates import DuplicateDetector

logger = get_logger(__name__)

router = APIRouter(prefix="/api/duplicates")


@router.post("/detect", response_model=SimilarityResult)
async def detect_duplicate(
    req: DetectDuplicateRequest,
    detector: Annotated[DuplicateDetector, Depends(get_detector)],
) -> SimilarityResult:
    window = req.time_window_hours or settings.get_duplicate_time_window_hours()
    return await asyncio.to_thread(
        detector.detect_duplicate,
        req.candidate,
        req.existing,
        time_window_hours=window,
    )


@router.post("/scan", response_model=list[DuplicateGroup])
async def scan_duplicates(
    req: ScanDuplicatesRequest,
    detector: Annotated[DuplicateDetector, Depends(get_detector)],
) -> list[DuplicateGroup]:
    started = perf_counter()
    groups = await asyncio.to_thread(detector.find_potential_duplicates, req.transactions)
    logger.info(
        "[SCAN] %d transactions scanned in %s, %d groups.",
        len(req.transactions or []),
        format_duration(perf_counter() - started),
        len(groups),
    )
    return groups
