from .jobs import router as jobs_router

ROUTERS = (jobs_router,)

__all__ = [
    "ROUTERS",
    "jobs_router",
]
