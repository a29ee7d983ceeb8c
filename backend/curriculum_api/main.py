"""FastAPI application entry point."""
from __future__ import annotations
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from curriculum_api.api import auth, curriculum, review, upload
from curriculum_api.container import get_context

settings = get_context().settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("curriculum_api")

# ------------------------------------------------------------------
# App creation
# ------------------------------------------------------------------
app = FastAPI(
    title="Curriculum API",
    description="Curriculum import, learner onboarding and progress backend",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------------
# Startup: initialise DB schema
# ------------------------------------------------------------------
@app.on_event("startup")
def on_startup():
    context = get_context()
    context.db.init()
    logger.info("Database ready at %s", context.db.path)


@app.exception_handler(Exception)
def unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server Error"})


# ------------------------------------------------------------------
# Routers
# ------------------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(auth.router)
app.include_router(curriculum.router)
app.include_router(review.router)
app.include_router(upload.router)
