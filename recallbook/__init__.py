from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recallbook.config import settings
from recallbook.db import init_all_databases


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.data_dir)
    yield


def create_app() -> FastAPI:
    application = FastAPI(
        title="RecallBook Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from recallbook.routers import health, importer, projects, questions, reviews

    application.include_router(health.router)
    application.include_router(
        reviews.router, prefix="/reviews", tags=["reviews"]
    )
    application.include_router(
        importer.router, prefix="/import", tags=["import"]
    )
    application.include_router(
        projects.router, prefix="/projects", tags=["projects"]
    )
    application.include_router(
        projects.sessions_router, prefix="/sessions", tags=["projects"]
    )
    application.include_router(
        questions.router, prefix="/questions", tags=["questions"]
    )

    return application


app = create_app()
