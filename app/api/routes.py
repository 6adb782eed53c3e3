from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.services.classification_service import ClassificationService, get_classification_service
from app.utils.prompt_builder import get_categories, resolve_language
from app.schemas.classification import AnalyzeRequest, CategoryList, ClassificationResult, ErrorResponse, StatusResponse

router = APIRouter()


@router.get("/", response_model=StatusResponse)
def index():
    return {
        "status": "online",
        "message": "GreenSort AI Server is running 🌱",
        "author": "Trần Quang Dũng",
    }


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/categories", response_model=CategoryList)
def categories(lang: Optional[str] = None):
    lang = resolve_language(lang)
    return {"lang": lang, "categories": get_categories(lang)}


@router.post(
    "/analyze",
    responses={
        200: {"description": "Provider result, passed through unchanged"},
        400: {"model": ErrorResponse},
        500: {"model": ClassificationResult, "description": "Fallback result (confidence 0)"},
    },
)
def analyze(
    request: AnalyzeRequest,
    service: ClassificationService = Depends(get_classification_service),
):
    """
    Classify the waste item in a base64 image.
    """
    status_code, body = service.analyze(request)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))
