from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studyhub.api.dependencies import get_store
from studyhub.api.endpoints import auth, chat, content, discussions, votes
from studyhub.core.config import settings
from studyhub.core.exceptions import AppError, Internal, TransientUnavailable, Unauthenticated
from studyhub.core.logging import capture_error, init_sentry, setup_logging
from studyhub.db.session import create_tables
from studyhub.db.store import DocumentStore
from studyhub.logging import get_logger
from studyhub.middleware.logging import RequestLoggingMiddleware
from studyhub.services.mailer import MailDispatcher

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_sentry()
    if settings.MODE != "test":
        await create_tables()
    app.state.mailer = MailDispatcher()
    yield
    await app.state.mailer.wait_idle()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
## Authentication

The API uses bearer tokens. Sign up with `POST /api/auth/signup` or sign in
with `POST /api/auth/signin` and send the returned token as
`Authorization: Bearer <token>`.

In the docs UI, click **Authorize** and enter your **email** in the
`username` field together with your password.

## Moderation

Subjects, videos and reference links are submitted as `pending`.
Administrators approve or reject them; everyone sees approved items, owners
also see their own, administrators see everything.
    """,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware, enabled=settings.MODE != "test")


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": exc.www_authenticate}
    if isinstance(exc, (TransientUnavailable, Internal)):
        capture_error(exc, context={"request": {"path": request.url.path, "method": request.method}})
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.to_dict()},
        headers=headers,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    capture_error(
        exc,
        context={"request": {"path": request.url.path, "method": request.method}},
        tags={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": Internal().to_dict()},
    )


app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["auth"])
app.include_router(content.router, prefix=f"{settings.API_PREFIX}/content", tags=["content"])
app.include_router(discussions.router, prefix=settings.API_PREFIX, tags=["discussions"])
app.include_router(votes.router, prefix=f"{settings.API_PREFIX}/votes", tags=["votes"])
app.include_router(chat.router, prefix=settings.API_PREFIX, tags=["chat"])


@app.get("/")
def root():
    return {"message": f"Welcome to the {settings.PROJECT_NAME}. The OpenAPI docs live at /docs"}


@app.get("/health")
async def health(store: DocumentStore = Depends(get_store)):
    try:
        await store.ping()
    except TransientUnavailable:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "degraded", "store": "unreachable"},
        )
    return {"status": "ok", "store": "ok"}
