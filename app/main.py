import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import config
from app.api.middleware import BodySizeLimitMiddleware
from app.api.routes import router
from app.services.classification_service import build_error, build_fallback

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="GreenSort AI Service")
app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError):
    body = exc.body if isinstance(exc.body, dict) else {}
    lang = body.get("lang") if isinstance(body.get("lang"), str) else None
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()[:1]}")
    return JSONResponse(status_code=400, content=build_error(lang, "Invalid request").model_dump())


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.error(f"SERVER ERROR: {exc}")
    return JSONResponse(status_code=500, content=build_fallback(None, str(exc)).model_dump())


app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    logger.info(f"GreenSort Server Live! Port: {config.PORT}")
    uvicorn.run(app, host=config.HOST, port=config.PORT)
