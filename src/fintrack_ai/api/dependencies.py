from fastapi import HTTPException, Request

from fintrack_ai.manager import CategorizerService
from fintrack_ai.services.duplicates import DuplicateDetector


def get_service(request: Request) -> CategorizerService:
    service = getattr(request.app.state, "service", None)
    if not service:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return service


def get_detector(request: Request) -> DuplicateDetector:
    detector = getattr(request.app.state, "detector", None)
    if not detector:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return detector
