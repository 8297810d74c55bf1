from fastapi import FastAPI
import logging
import uvicorn
from contextlib import asynccontextmanager
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from scriptwatch.api import members, monitor, sheets
from scriptwatch.api.deps import close_clients
from scriptwatch.monitor.session import get_session_manager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("scriptwatch starting")
    yield
    # Stop live sessions, then release shared clients
    await get_session_manager().stop_all()
    await close_clients()
    logger.info("scriptwatch stopped")


app = FastAPI(lifespan=lifespan)

# Include API routers
app.include_router(monitor.router)
app.include_router(members.router)
app.include_router(sheets.router)


@app.get("/healthz")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


def run():
    uvicorn.run("scriptwatch.main:app", host="0.0.0.0", port=3000)


if __name__ == "__main__":
    uvicorn.run("scriptwatch.main:app", host="0.0.0.0", port=3000, reload=True)
