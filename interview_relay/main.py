"""Main FastAPI application."""
from fastapi import FastAPI
from contextlib import asynccontextmanager

from interview_relay.core.config import settings
from interview_relay.core.logging import setup_logging
from interview_relay.db.database import init_db
from interview_relay.api import channels, health, interviews
from interview_relay.api.webhooks import voice


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    yield


app = FastAPI(
    title="Interview Relay",
    description="Relays phone interviews between Twilio and an OpenAI interviewer",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(voice.router, tags=["webhooks"])
app.include_router(channels.router, tags=["channels"])
app.include_router(interviews.router, tags=["interviews"])


def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
