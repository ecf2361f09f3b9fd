import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from formapi.config import config
from formapi.database import database
from formapi.logging_conf import configure_logging
from formapi.routers.user import router as user_router
from formapi.routers.form import router as form_router
from formapi.routers.response import router as response_router
from formapi.routers.uploads import router as uploads_router
from formapi.storage import get_storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # connect database
    await database.connect()
    try:
        get_storage().ensure_bucket()
    except Exception as e:
        logger.error(f"MinIO setup failed: {e}")
    yield
    # disconnect database
    await database.disconnect()

app = FastAPI(
    title="Form Builder API",
    description="API for building forms, sharing them and collecting responses",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(user_router, prefix="/user", tags=["User"])
app.include_router(form_router, prefix="/user", tags=["Form"])
app.include_router(response_router, prefix="/user", tags=["Response"])
app.include_router(uploads_router, prefix="/user", tags=["Uploads"])


def envelope_error(status_code: int, message: str, error=None, headers=None) -> JSONResponse:
    content = {"message": message, "success": False, "data": None}
    if error is not None:
        content["error"] = jsonable_encoder(error)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handle_logging(request: Request, exc: StarletteHTTPException):
    logger.error(f"HTTPException: {exc.status_code} {exc.detail}")
    if isinstance(exc.detail, dict):
        return envelope_error(
            exc.status_code,
            exc.detail.get("message", ""),
            exc.detail.get("error"),
            headers=getattr(exc, "headers", None),
        )
    return envelope_error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = [
        {
            "loc": [str(part) for part in err.get("loc", ()) if part != "body"],
            "msg": str(err.get("msg", "")).removeprefix("Value error, "),
        }
        for err in exc.errors()
    ]
    first = problems[0] if problems else {"loc": [], "msg": "Invalid request"}
    where = ".".join(first["loc"])
    message = f"{where}: {first['msg']}" if where else first["msg"]
    logger.debug(f"Request validation failed: {problems}")
    return envelope_error(400, message, problems)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return envelope_error(500, "Internal server error", str(exc))
