from typing import List, Optional

from pydantic import BaseModel


class AnalyzeRequest(BaseModel):
    image: Optional[str] = None
    mime: Optional[str] = None
    lang: Optional[str] = None


class ClassificationResult(BaseModel):
    object: str
    material: str
    category: str
    instruction: str
    tip: str
    confidence: int


class ErrorResponse(ClassificationResult):
    error: str


class StatusResponse(BaseModel):
    status: str
    message: str
    author: str


class CategoryList(BaseModel):
    lang: str
    categories: List[str]
