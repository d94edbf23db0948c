"""Unit tests for session token minting and validation."""

import time
import uuid
from datetime import timedelta

import pytest
from jose import jwt

from chirpy_auth.kernel.identity.errors import (
    ExpiredError,
    MalformedError,
    UnauthenticatedError,
)
from chirpy_auth.kernel.identity.jwt import (
    ALGORITHM,
    ISSUER,
    SessionTokenService,
    make_jwt,
    validate_jwt,
)

SECRET = "test-secret"


def _signed(claims: dict, secret: str = SECRET, algorithm: str = ALGORITHM) -> str:
    return jwt.encode(claims, secret, algorithm=algorithm)


class TestMintAndValidate:
    """Round trips through make_jwt / validate_jwt."""

    def test_round_trip(self, user_id: uuid.UUID):
        token = make_jwt(user_id, SECRET, timedelta(hours=1))

        assert token
        assert validate_jwt(token, SECRET) == user_id

    def test_wrong_secret(self, user_id: uuid.UUID):
        token = make_jwt(user_id, SECRET, timedelta(hours=1))

        with pytest.raises(UnauthenticatedError):
            validate_jwt(token, "wrong-secret")

    def test_negative_ttl_is_expired(self, user_id: uuid.UUID):
        """A token minted with a negative lifetime is already expired."""
        token = make_jwt(user_id, SECRET, -timedelta(hours=1))

        with pytest.raises(ExpiredError):
            validate_jwt(token, SECRET)

    def test_short_expiration(self, user_id: uuid.UUID):
        token = make_jwt(user_id, SECRET, timedelta(milliseconds=10))
        time.sleep(0.02)

        with pytest.raises(ExpiredError):
            validate_jwt(token, SECRET)

    def test_empty_secret(self, user_id: uuid.UUID):
        """Tokens minted with an empty secret validate only against it."""
        token = make_jwt(user_id, "", timedelta(hours=1))

        assert validate_jwt(token, "") == user_id
        with pytest.raises(UnauthenticatedError):
            validate_jwt(token, "x")

    def test_claims_shape(self, user_id: uuid.UUID):
        token = make_jwt(user_id, SECRET, timedelta(hours=1))

        header = jwt.get_unverified_header(token)
        claims = jwt.get_unverified_claims(token)

        assert header["alg"] == "HS256"
        assert header["typ"] == "JWT"
        assert set(claims) == {"iss", "sub", "iat", "exp"}
        assert claims["iss"] == ISSUER == "chirpy"
        assert claims["sub"] == str(user_id)
        assert claims["exp"] - claims["iat"] == 3600

    def test_readable_by_standard_decoder(self, user_id: uuid.UUID):
        token = make_jwt(user_id, SECRET, timedelta(hours=1))

        claims = jwt.decode(token, SECRET, algorithms=["HS256"])

        assert claims["sub"] == str(user_id)


class TestValidationFailures:
    """Failure classes for validate."""

    @pytest.mark.parametrize("token", ["", "invalid.token.string", "abc", "a.b"])
    def test_unparseable_token_is_malformed(self, token: str):
        with pytest.raises(MalformedError):
            validate_jwt(token, SECRET)

    def test_tampered_payload(self, user_id: uuid.UUID):
        token = make_jwt(user_id, SECRET, timedelta(hours=1))
        other = make_jwt(uuid.uuid4(), SECRET, timedelta(hours=1))
        header, _, signature = token.split(".")
        forged = ".".join([header, other.split(".")[1], signature])

        with pytest.raises(UnauthenticatedError):
            validate_jwt(forged, SECRET)

    def test_other_algorithm_rejected(self, user_id: uuid.UUID):
        now = int(time.time())
        token = _signed(
            {"iss": ISSUER, "sub": str(user_id), "iat": now, "exp": now + 3600},
            algorithm="HS512",
        )

        with pytest.raises(UnauthenticatedError):
            validate_jwt(token, SECRET)

    def test_subject_not_uuid(self):
        now = int(time.time())
        token = _signed({"iss": ISSUER, "sub": "not-a-uuid", "iat": now, "exp": now + 3600})

        with pytest.raises(MalformedError):
            validate_jwt(token, SECRET)

    def test_missing_claims(self, user_id: uuid.UUID):
        token = _signed({"iss": ISSUER, "sub": str(user_id)})

        with pytest.raises(MalformedError):
            validate_jwt(token, SECRET)

    def test_signature_checked_before_expiry(self, user_id: uuid.UUID):
        token = make_jwt(user_id, SECRET, -timedelta(hours=1))

        with pytest.raises(UnauthenticatedError):
            validate_jwt(token, "wrong-secret")


class TestSessionTokenServiceClock:
    """Expiry with an injected clock."""

    def test_valid_until_expiry(self, session_tokens: SessionTokenService, clock, user_id):
        token = session_tokens.mint(user_id, SECRET, timedelta(hours=1))

        clock.advance(timedelta(minutes=59, seconds=59))
        assert session_tokens.validate(token, SECRET) == user_id

        clock.advance(timedelta(seconds=1))
        with pytest.raises(ExpiredError):
            session_tokens.validate(token, SECRET)

    def test_issued_at_matches_clock(self, session_tokens: SessionTokenService, clock, user_id):
        token = session_tokens.mint(user_id, SECRET, timedelta(minutes=5))

        claims = jwt.get_unverified_claims(token)

        assert claims["iat"] == int(clock.now.timestamp())
        assert claims["exp"] == int(clock.now.timestamp()) + 300
