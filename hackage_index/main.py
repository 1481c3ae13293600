import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hackage_index.api.admin import router as admin_router
from hackage_index.api.packages import router as packages_router
from hackage_index.domain.errors import HackageIndexError, NoRepositoryConfigured

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Hackage index metadata",
    version="0.1.0",
    description="Read-only view of the releases and hashes listed in a package repository index.",
)


@app.exception_handler(HackageIndexError)
async def index_error_handler(request: Request, exc: HackageIndexError) -> JSONResponse:
    """
    Report index and configuration problems instead of a bare 500.
    """
    if isinstance(exc, NoRepositoryConfigured):
        logger.warning(f"Request to {request.url.path} with no repository configured: {exc}")
    else:
        logger.error(f"Failed to load index metadata: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health")
async def health() -> dict:
    """
    Lightweight health check endpoint.
    """
    return {"status": "ok"}


app.include_router(packages_router, tags=["packages"])
app.include_router(admin_router, tags=["admin"])


if __name__ == "__main__":
    """
    Allow running `python -m hackage_index.main` to start a development server.
    """
    import uvicorn

    uvicorn.run(
        "hackage_index.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
