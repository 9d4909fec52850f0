"""
Main FastAPI application
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from taskmaster.config import get_settings
from taskmaster.database import engine, Base, AsyncSessionLocal
from taskmaster.models import User
from taskmaster.api import auth, graphql
from taskmaster.api.auth import get_password_hash
from taskmaster.utils.logger import get_logger

settings = get_settings()
get_logger()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    # Seed the demo account used by the mobile app in development
    if settings.DEMO_USER_EMAIL:
        async with AsyncSessionLocal() as session:
            result = await session.execute(
                select(User).where(User.email == settings.DEMO_USER_EMAIL)
            )
            if not result.scalar_one_or_none():
                session.add(User(
                    email=settings.DEMO_USER_EMAIL,
                    full_name="Demo User",
                    hashed_password=get_password_hash(settings.DEMO_USER_PASSWORD),
                ))
                await session.commit()
                logger.info(f"Created demo user {settings.DEMO_USER_EMAIL}")

    yield

    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(graphql.router, prefix=settings.GRAPHQL_PATH, tags=["GraphQL"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "graphql": settings.GRAPHQL_PATH,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "taskmaster.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
