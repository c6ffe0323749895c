import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from fintrack_ai.api.dependencies import get_service
from fintrack_ai.api.schemas import CategorizeRequest, LearnRequest, SuggestRequest
from fintrack_ai.logger import get_logger
from fintrack_ai.manager import CategorizerService
from fintrack_ai.models import CategorizationResult, CategorySuggestion

logger = get_logger(__name__)

router = APIRouter()


@router.post("/categorize", response_model=CategorizationResult | None)
async def categorize_transaction(
    req: CategorizeRequest,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> CategorizationResult | None:
    return await asyncio.to_thread(
        service.categorize,
        req.transaction,
        valid_categories=req.valid_categories,
    )


@router.post("/categorize/suggestions", response_model=list[CategorySuggestion])
async def suggest_categories(
    req: SuggestRequest,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> list[CategorySuggestion]:
    return await asyncio.to_thread(
        service.suggest_categories,
        req.transaction,
        req.existing_categories,
    )


@router.post("/learn")
async def learn_transaction(
    req: LearnRequest,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> dict[str, str]:
    await asyncio.to_thread(service.learn, req.transaction, req.category)
    logger.info("[LEARN] '%s' -> '%s'", (req.transaction.name or "")[:50], req.category.name)
    return {"status": "learned"}


@router.post("/api/models/clear")
async def clear_models(
    service: Annotated[CategorizerService, Depends(get_service)],
) -> dict[str, str]:
    await asyncio.to_thread(service.clear_models)
    return {"status": "cleared"}
