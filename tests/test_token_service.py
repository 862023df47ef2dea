from datetime import datetime, timedelta, timezone

import jwt
import pytest

from application.services.token_service import TokenService
from core.config import settings
from core.exceptions import TokenExpiredException


@pytest.mark.asyncio
async def test_round_trip_returns_identity():
    svc = TokenService()
    token = svc.create_access_token("42")
    assert await svc.verify_access_token(token) == "42"


@pytest.mark.asyncio
async def test_expired_token_raises():
    svc = TokenService()
    token = svc.create_access_token("42", expires_delta=timedelta(seconds=-5))
    with pytest.raises(TokenExpiredException):
        await svc.verify_access_token(token)


@pytest.mark.asyncio
async def test_foreign_signature_is_rejected():
    token = TokenService(secret_key="someone-else").create_access_token("42")
    assert await TokenService().verify_access_token(token) is None


@pytest.mark.asyncio
async def test_garbage_token_is_rejected():
    assert await TokenService().verify_access_token("not-a-jwt") is None


@pytest.mark.asyncio
async def test_refresh_type_is_rejected():
    payload = {
        "sub": "42",
        "type": "refresh",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    assert await TokenService().verify_access_token(token) is None


@pytest.mark.asyncio
async def test_sub_is_used_when_user_id_claim_missing():
    payload = {"sub": "7", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)}
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    assert await TokenService().verify_access_token(token) == "7"
