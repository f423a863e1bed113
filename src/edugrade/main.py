"""
EduGrade Platform FastAPI Application

School grade management: score sheet import, rosters, exams and AI reports
for parents.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from edugrade.ai import get_prompt_library
from edugrade.config import settings
from edugrade.core.database import close_db, engine

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "EduGrade Platform"
VERSION = "0.1.0"


async def _database_check() -> dict[str, Any]:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy"}


def _prompt_check() -> dict[str, Any]:
    try:
        library = get_prompt_library()
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy", "prompts": len(library), "version": library.version}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load report prompts and make sure the database answers before serving."""
    library = get_prompt_library()
    logger.info(f"{SERVICE_NAME} starting with {library!r}")

    database = await _database_check()
    if database["status"] != "healthy":
        logger.error(f"Database connection failed: {database['error']}")
        raise RuntimeError("Database is not reachable")
    logger.info("Database connection verified")

    yield

    logger.info(f"{SERVICE_NAME} shutting down...")
    await close_db()


def create_app() -> FastAPI:
    app = FastAPI(
        title=SERVICE_NAME,
        description="School grade management with AI reports for parents",
        version=VERSION,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_local else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", tags=["Health"])
    async def root() -> dict[str, str]:
        return {
            "service": SERVICE_NAME,
            "status": "operational",
            "version": VERSION,
            "environment": settings.ENVIRONMENT,
        }

    @app.get("/health", tags=["Health"], response_model=None)
    async def health_check() -> JSONResponse:
        """Database and prompt library status; 503 when either is down."""
        checks = {"database": await _database_check(), "prompt_library": _prompt_check()}
        healthy = all(check["status"] == "healthy" for check in checks.values())

        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "healthy" if healthy else "unhealthy",
                "environment": settings.ENVIRONMENT,
                "checks": checks,
            },
        )

    @app.get("/health/live", tags=["Health"])
    async def liveness_check() -> dict[str, str]:
        return {"status": "alive"}

    from edugrade.api.v1 import auth, exams, parents, schools, students, teachers

    app.include_router(auth.router, prefix="/api/v1/auth", tags=["Auth"])
    app.include_router(schools.router, prefix="/api/v1/schools", tags=["Schools"])
    app.include_router(students.router, prefix="/api/v1/schools", tags=["Students"])
    app.include_router(teachers.router, prefix="/api/v1", tags=["Teachers"])
    app.include_router(exams.router, prefix="/api/v1", tags=["Exams"])
    app.include_router(parents.router, prefix="/api/v1/parents", tags=["Parents"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "edugrade.main:app",
        host="0.0.0.0",  # nosec B104 - containers bind all interfaces
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
