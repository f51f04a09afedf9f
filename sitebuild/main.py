import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from sitebuild.config import get_settings
from sitebuild.logging_config import configure_logging
from sitebuild.routers.project import limiter, router as project_router
from sitebuild.routers.site import router as site_router

configure_logging(get_settings().log_level)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="sitebuild – site data server",
    description="Serves the pages and shared props projected from CMS content.",
    version="1.0.0",
)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})


app.include_router(site_router)
app.include_router(project_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    return {"message": "Hello from sitebuild"}
