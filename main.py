import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from app.auth import get_supabase_client
from app.dependencies import get_dispatcher, get_http_client, get_notifier
from app.errors import SocialCoreError
from app.jobs.scheduled_publisher import run_scheduled_publisher
from app.logging_setup import setup_logging
from app.routes import content_routes, oauth_routes, social_routes
from config import get_settings

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Background tasks
scheduled_publisher_task = None

@asynccontextmanager
async def lifespan(app: FastAPI):
    global scheduled_publisher_task

    scheduled_publisher_task = asyncio.create_task(
        run_scheduled_publisher(get_supabase_client(), get_dispatcher(), settings.scheduler_interval_seconds)
    )
    logger.info("Scheduled publisher started")

    yield

    if scheduled_publisher_task:
        scheduled_publisher_task.cancel()
        logger.info("Scheduled publisher stopped")

    await get_notifier().drain()
    await get_http_client().aclose()

app = FastAPI(
    title="socialhub API",
    description="OAuth connections, token lifecycle and multi-platform publishing",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.app_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(SocialCoreError)
async def social_core_error_handler(request: Request, exc: SocialCoreError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

# Include routers
app.include_router(oauth_routes.router, prefix="/oauth", tags=["oauth"])
app.include_router(oauth_routes.callback_router, tags=["oauth"])
app.include_router(social_routes.router, prefix="/social", tags=["social"])
app.include_router(content_routes.router, prefix="/content", tags=["content"])

@app.get("/")
async def root():
    return {"message": "socialhub API is running"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
