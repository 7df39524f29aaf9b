"""Unit tests for authentication providers."""

import time

import pytest
from jose import jwt

from finsight.api.middleware.auth import build_auth_provider
from finsight.infrastructure.auth.dev import DEV_USER_ID, DevAuthProvider
from finsight.infrastructure.auth.jwt import JWTAuthProvider
from finsight.shared.exceptions import TokenExpiredError, TokenInvalidError
from tests.fakes import TEST_SECRET, TEST_USER_ID, make_token


class TestJWTAuthProvider:
    @pytest.mark.asyncio
    async def test_valid_token(self):
        provider = JWTAuthProvider(secret=TEST_SECRET)

        user = await provider.verify_token(make_token(email="ana@example.com", name="Ana"))

        assert user.id == TEST_USER_ID
        assert user.email == "ana@example.com"
        assert user.full_name == "Ana"

    @pytest.mark.asyncio
    async def test_expired_token(self):
        provider = JWTAuthProvider(secret=TEST_SECRET)

        with pytest.raises(TokenExpiredError):
            await provider.verify_token(make_token(exp=int(time.time()) - 60))

    @pytest.mark.asyncio
    async def test_wrong_signature(self):
        provider = JWTAuthProvider(secret=TEST_SECRET)
        token = jwt.encode({"sub": TEST_USER_ID}, "another-secret", algorithm="HS256")

        with pytest.raises(TokenInvalidError):
            await provider.verify_token(token)

    @pytest.mark.asyncio
    async def test_token_without_subject(self):
        provider = JWTAuthProvider(secret=TEST_SECRET)
        token = jwt.encode({"email": "ana@example.com"}, TEST_SECRET, algorithm="HS256")

        with pytest.raises(TokenInvalidError):
            await provider.verify_token(token)

    @pytest.mark.asyncio
    async def test_audience_is_checked_when_configured(self):
        provider = JWTAuthProvider(secret=TEST_SECRET, audience="finsight")

        user = await provider.verify_token(make_token(aud="finsight"))
        assert user.id == TEST_USER_ID

        with pytest.raises(TokenInvalidError):
            await provider.verify_token(make_token(aud="someone-else"))


class TestBuildAuthProvider:
    def test_jwt_by_default(self, test_settings):
        provider = build_auth_provider(test_settings)

        assert isinstance(provider, JWTAuthProvider)
        assert provider.secret == test_settings.app_secret_key

    @pytest.mark.asyncio
    async def test_dev_provider_accepts_anything(self, test_settings):
        settings = test_settings.model_copy(update={"auth_provider": "dev"})

        provider = build_auth_provider(settings)
        user = await provider.verify_token("whatever")

        assert isinstance(provider, DevAuthProvider)
        assert user.id == DEV_USER_ID
