import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from coursehub.routes import auth, courses, modules, quizzes, instructor, leaderboard, profile, certificates
from coursehub.db.base import Base
from coursehub.db.sessions import engine
from coursehub.core.config import settings
from coursehub.core.errors import CourseHubError

# Import all models to ensure they're registered with Base
import coursehub.models  # noqa: F401

logger = logging.getLogger("coursehub")

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    description="Course catalog, curriculum authoring, progress tracking and quiz grading API"
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router)
app.include_router(courses.router)
app.include_router(modules.router)
app.include_router(quizzes.router)
app.include_router(instructor.router)
app.include_router(leaderboard.router)
app.include_router(profile.router)
app.include_router(certificates.router)


@app.exception_handler(CourseHubError)
async def coursehub_error_handler(request: Request, exc: CourseHubError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


@app.on_event("startup")
async def startup_event():
    logger.info("%s v%s starting...", settings.APP_NAME, settings.APP_VERSION)
    logger.info("Database connected")


@app.get("/health")
def health():
    return {"status": "ok"}
