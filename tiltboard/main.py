"""FastAPI application entry point"""

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tiltboard.clients.api_client import FermentationApiClient
from tiltboard.config.settings import settings
from tiltboard.models.brew import BrewStatus
from tiltboard.services.dashboard import DashboardContext, DashboardService, UpstreamError
from tiltboard.services.readings.windows import TimeRange

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the API client and view context for the application's lifetime."""
    client = FermentationApiClient()
    context = DashboardContext()
    app.state.client = client
    app.state.context = context
    app.state.service = DashboardService(client)

    logger.info(f"Tiltboard starting against {settings.API_BASE_URL}")
    await context.initialize(client)

    yield

    logger.info("Tiltboard shutting down")
    await client.aclose()


app = FastAPI(
    title="Tiltboard",
    description="Fermentation dashboard for Tilt hydrometer readings",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class StatusChangeRequest(BaseModel):
    """Request body for moving a brew to another status."""
    status: BrewStatus


def get_service(request: Request) -> DashboardService:
    return request.app.state.service


def get_client(request: Request) -> FermentationApiClient:
    return request.app.state.client


def get_context(request: Request) -> DashboardContext:
    return request.app.state.context


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    status_code = 404 if exc.status_code == 404 else 502
    logger.error(f"Upstream failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "tiltboard",
        "version": settings.APP_VERSION,
    }


@app.get("/api/session")
async def get_session(
    context: DashboardContext = Depends(get_context),
    client: FermentationApiClient = Depends(get_client),
):
    """Theme and signed-in user for the rendering layer"""
    if not context.initialized:
        await context.initialize(client)
    return context.to_dict()


@app.post("/api/session/logout")
async def logout(
    context: DashboardContext = Depends(get_context),
    client: FermentationApiClient = Depends(get_client),
):
    await context.teardown(client)
    return context.to_dict()


@app.get("/api/dashboard")
async def dashboard(service: DashboardService = Depends(get_service)):
    """Active brews, hydrometer count and the latest reading"""
    return await service.overview()


@app.get("/api/dashboard/recent-readings")
async def recent_readings(service: DashboardService = Depends(get_service)):
    """Multi-series gravity chart for the last 24 hours"""
    return await service.recent_readings_chart()


@app.get("/api/brews/new/options")
async def new_brew_options(service: DashboardService = Depends(get_service)):
    return await service.new_brew_options()


@app.get("/api/brews/{brew_id}/stats")
async def brew_stats(brew_id: str, service: DashboardService = Depends(get_service)):
    """Current gravity, attenuation, ABV, temperature trend and last reading age"""
    return await service.brew_stats(brew_id)


@app.get("/api/brews/{brew_id}/chart")
async def brew_chart(
    brew_id: str,
    range: str = Query(TimeRange.LAST_7D.value),
    service: DashboardService = Depends(get_service),
):
    try:
        selector = TimeRange.parse(range)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return await service.brew_chart(brew_id, selector)


@app.get("/api/brews/{brew_id}/readings")
async def brew_readings(
    brew_id: str,
    page: int = Query(0, ge=0),
    service: DashboardService = Depends(get_service),
):
    """Newest-first readings table, one page at a time"""
    return await service.brew_readings(brew_id, page)


@app.post("/api/brews/{brew_id}/finish")
async def finish_brew(brew_id: str, service: DashboardService = Depends(get_service)):
    """Snapshot the latest gravity as FG, compute ABV and complete the brew"""
    try:
        return await service.finish_brew(brew_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.post("/api/brews/{brew_id}/status")
async def change_brew_status(
    brew_id: str,
    body: StatusChangeRequest,
    service: DashboardService = Depends(get_service),
):
    try:
        return await service.change_status(brew_id, body.status)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tiltboard.main:app",
        host="0.0.0.0",
        port=8080,
        reload=settings.DEBUG
    )
