import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from jobsearch.core import SEARCH_FAILED_MESSAGE, get_settings, limiter
from jobsearch.db.session import engine
from jobsearch.routers import ROUTERS
from jobsearch.services import SearchError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    # Branch queries run on pooled asyncpg connections; close them on shutdown
    await engine.dispose()


app = FastAPI(
    title="Job Search API",
    description="Hybrid keyword + semantic job search, title autocomplete and map clustering.",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(SearchError)
async def search_error_handler(_request: Request, exc: SearchError):
    logger.error("Search request failed at stage %s: %s", exc.stage.value, exc.message)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": SEARCH_FAILED_MESSAGE},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in ROUTERS:
    app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok"}
