# backend/app/main.py
import os
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from . import config
from .errors import GatewayError

logging.basicConfig(level=config.get_log_level(), format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS, PATCH",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, Accept, X-Requested-With, Origin",
    "Access-Control-Max-Age": "86400",
}

app = FastAPI(
    title="UAQMP Backend",
    description="Urban air quality dashboard API: standard AQI, forecasts, news summaries and planning tools.",
    version="1.0.0",
)

# include routers (relative import)
from .air_quality_route import router as air_quality_router
from .news_route import router as news_router
from .predict_route import router as predict_router
from .urban_planning_route import router as urban_planning_router
from .osm_route import router as osm_router

app.include_router(air_quality_router)
app.include_router(news_router)
app.include_router(predict_router)
app.include_router(urban_planning_router)
app.include_router(osm_router)


@app.middleware("http")
async def cors(request: Request, call_next):
    """Permissive CORS on every response; preflight requests get an empty 204."""
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        response = JSONResponse(
            {"error": "Internal server error", "message": "An unexpected error occurred"}, status_code=500
        )
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse({"error": "Invalid request", "message": details}, status_code=400)


@app.get("/")
def root():
    return {"message": "Welcome to UAQMP API"}


@app.get("/health")
def health():
    return {"status": "ok"}


for key in (config.OPENWEATHER_API_KEY, config.SERPER_API_KEY, config.GEMINI_API_KEY, config.OPENROUTER_API_KEY):
    logger.info("%s configured: %s", key, "Yes" if os.getenv(key) else "No")


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=config.get_port(), log_level=config.get_log_level().lower())
