import time
from typing import Optional

from fastapi import Header, HTTPException
from itsdangerous import BadSignature, URLSafeTimedSerializer

from config import get_settings

CSRF_HEADER = "X-CSRF-Token"
TOKEN_MAX_AGE_SECONDS = 2 * 3600


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(get_settings().csrf_secret, salt="csrf-token")


def generate_csrf_token() -> str:
    return _serializer().dumps({"issued": int(time.time())})


def validate_csrf_token(
    token: Optional[str], max_age: int = TOKEN_MAX_AGE_SECONDS
) -> bool:
    if not token:
        return False
    try:
        data = _serializer().loads(token, max_age=max_age)
    except BadSignature:
        return False
    return isinstance(data, dict) and "issued" in data


def require_csrf(x_csrf_token: Optional[str] = Header(default=None)) -> None:
    """FastAPI dependency guarding every state-changing route."""
    if not validate_csrf_token(x_csrf_token):
        raise HTTPException(status_code=400, detail="Invalid CSRF token")
