import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import CampaignError, NotEnoughFunds, NotFound, SizeExceeded, StorageFault
from .settings import get_settings
from .routers import campaigns as campaigns_router

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "campaigns",
        "description": "Create, read, update and delete crowdfunding campaigns and donate to them.",
    },
]

app = FastAPI(
    title="Crowdfund Campaign Service",
    description="Persistent campaign records with goal-capped donations.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

_settings = get_settings()

logging.basicConfig(
    level=getattr(logging, _settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ERROR_STATUS = {
    NotFound: 404,
    NotEnoughFunds: 409,
    SizeExceeded: 413,
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(CampaignError)
async def campaign_error_handler(request: Request, exc: CampaignError) -> JSONResponse:
    """
    Map NotFound, NotEnoughFunds and SizeExceeded to typed JSON errors:
        {"error": "<kind>", "message": "<msg>"}
    """
    return JSONResponse(status_code=_ERROR_STATUS[type(exc)], content=exc.to_dict())


@app.exception_handler(StorageFault)
async def storage_fault_handler(request: Request, exc: StorageFault) -> JSONResponse:
    logger.critical(f"Storage fault while handling {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "StorageFault", "message": str(exc)})


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "max_record_bytes": _settings.max_record_bytes}


app.include_router(campaigns_router.router)
