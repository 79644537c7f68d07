import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import database
from .routes import router
from .seed import seed_demo_content
from .settings.config import settings
from .users import auth_backend, ensure_owner_user, fastapi_users

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# HTTP status -> error code carried in every error body
ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    500: "INTERNAL_SERVER_ERROR",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    database.init_engine()
    try:
        await database.verify_connection()
        if settings.RUN_DB_CREATE_ALL:
            logger.info("RUN_DB_CREATE_ALL set; creating tables from metadata")
            await database.create_all()
        async with database.session_factory()() as session:
            await ensure_owner_user(session)
            if settings.SEED_DEMO_CONTENT:
                await seed_demo_content(session)
        yield
    finally:
        await database.dispose_engine()


app = FastAPI(title="LearnHub", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----------------------
# Route Includes
# ----------------------
app.include_router(router)

# Password login / cookie logout
app.include_router(
    fastapi_users.get_auth_router(auth_backend),
    prefix="/auth/jwt",
    tags=["auth"],
)


# ----------------------
# Error bodies
# ----------------------
def _error(status_code: int, detail, headers=None, **extra) -> JSONResponse:
    body = {"detail": detail, "code": ERROR_CODES.get(status_code, "ERROR"), **extra}
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _field_of(loc) -> str | None:
    parts = [str(p) for p in loc if p != "body"]
    return ".".join(parts) or None


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = _field_of(first.get("loc", ()))
    message = first.get("msg", "Invalid input")
    detail = f"{field}: {message}" if field else message
    return _error(400, detail, field=field)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.info("Uniqueness violation on %s: %s", request.url.path, exc.orig)
    return _error(409, "Record already exists")


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage error on %s", request.url.path, exc_info=exc)
    return _error(500, "Storage error")


@app.get("/healthz")
async def healthz():
    return {"ok": True}
