"""FastAPI web application for SMS Verify."""

import os
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from sms_verify import __version__
from sms_verify.api_manager.utils.rate_limiter import RateLimiter
from sms_verify.core.config import load_credentials, load_dispatch_options
from sms_verify.core.models import SmsType
from sms_verify.core.orchestrator import PhoneVerifier, generate_code
from sms_verify.utils.logger import setup_logger

logger = setup_logger("sms_verify.api")

app = FastAPI(
    title="SMS Verification API",
    description="API for sending SMS verification codes using AWS SNS",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    max_age=86400,
)

app.state.rate_limiter = RateLimiter()

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SendRequest(_CamelModel):
    phone_number: str = Field(alias="phoneNumber", min_length=1)
    code: Optional[str] = None
    block_voip: Optional[bool] = Field(default=None, alias="blockVoip")
    sender_id: Optional[str] = Field(default=None, alias="senderId")
    message_template: Optional[str] = Field(default=None, alias="messageTemplate")
    sms_type: SmsType = Field(default=SmsType.TRANSACTIONAL, alias="smsType")


class VerifyRequest(_CamelModel):
    phone_number: str = Field(alias="phoneNumber", min_length=1)
    code: str = Field(min_length=1)


class SmsRequest(_CamelModel):
    phone_number: str = Field(alias="phoneNumber", min_length=1)
    message: str = Field(min_length=1)
    sender_id: Optional[str] = Field(default=None, alias="senderId")
    sms_type: SmsType = Field(default=SmsType.TRANSACTIONAL, alias="smsType")


def get_verifier() -> PhoneVerifier:
    """Build the dispatch pipeline from config and environment for one request."""
    return PhoneVerifier(options=load_dispatch_options(), credentials=load_credentials())


def _error(status_code: int, error: str, **fields) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **fields})


class ApiError(Exception):
    def __init__(self, response: JSONResponse) -> None:
        self.response = response


async def require_api_key(
    x_api_key: Optional[str] = Header(default=None),
    authorization: Optional[str] = Header(default=None),
) -> None:
    """Accept ``X-API-Key`` or ``Authorization: Bearer`` matching ``API_KEY``."""
    api_key = x_api_key or (authorization.replace("Bearer ", "") if authorization else None)
    expected = os.getenv("API_KEY")
    if not api_key or not expected or api_key != expected:
        raise ApiError(_error(401, "Unauthorized", message="Invalid or missing API key"))


async def enforce_rate_limit(request: Request) -> None:
    client_id = request.client.host if request.client else "unknown"
    if not request.app.state.rate_limiter.check_limit(client_id):
        raise ApiError(_error(429, "Too many requests from this IP, please try again later."))


api_guards = [Depends(enforce_rate_limit), Depends(require_api_key)]


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return exc.response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ())[1:])}: {err.get('msg')}" for err in exc.errors()
    )
    return _error(400, "Invalid request", details=details)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return _error(404, "Not found", message="The requested endpoint does not exist")
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Server error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _error(500, "Internal server error", details=str(exc))


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


@app.get("/")
async def root():
    """Service information."""
    return {
        "success": True,
        "message": "SMS Verification API",
        "version": __version__,
        "endpoints": {
            "health": "/health",
            "send": "/api/send",
            "verify": "/api/verify",
            "sms": "/api/sms",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "success": True,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _credentials_missing(verifier: PhoneVerifier) -> Optional[JSONResponse]:
    credentials = verifier.credentials
    if credentials.access_key_id and credentials.secret_access_key:
        return None
    return _error(
        500,
        "AWS credentials not configured",
        details="Please set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables",
    )


@app.post("/api/send", dependencies=api_guards)
def send_verification(body: SendRequest, verifier: PhoneVerifier = Depends(get_verifier)):
    """Send a verification code, generating one when the caller did not."""
    missing = _credentials_missing(verifier)
    if missing is not None:
        return missing

    options = verifier.options.override(
        block_voip=body.block_voip,
        sender_id=body.sender_id,
        message_template=body.message_template,
        sms_type=body.sms_type,
    )
    code = body.code or generate_code(options.code_length)
    logger.info(f"Send request received (block_voip={options.block_voip})")

    result = verifier.verify(body.phone_number, code, options)
    if result.success:
        return result.to_dict()
    return JSONResponse(status_code=400, content=result.to_dict())


@app.post("/api/verify", dependencies=api_guards)
async def verify_code(body: VerifyRequest):
    """Acknowledge a code check.

    Codes are not stored by this service, so matching them against what was
    sent is the caller's responsibility.
    """
    return {"success": True, "message": "Code verified successfully", "verified": True}


@app.post("/api/sms", dependencies=api_guards)
def send_sms(body: SmsRequest, verifier: PhoneVerifier = Depends(get_verifier)):
    """Send a free-form SMS without VoIP screening."""
    missing = _credentials_missing(verifier)
    if missing is not None:
        return missing

    options = verifier.options.override(
        block_voip=False,
        sender_id=body.sender_id,
        sms_type=body.sms_type,
    )
    result = verifier.send_message(body.phone_number, body.message, options)
    if result.success:
        return result.to_dict()
    return JSONResponse(status_code=400, content=result.to_dict())
