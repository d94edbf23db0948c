"""
Authorization header parsing.

One parsing routine serves both schemes; each caller names the literal scheme
it expects.
"""

import hmac
from typing import Mapping, Optional

from pydantic import BaseModel

from chirpy_auth.kernel.identity.errors import (
    MalformedError,
    NotPresentError,
    UnauthenticatedError,
)

AUTHORIZATION_HEADER = "Authorization"
BEARER_SCHEME = "Bearer"
API_KEY_SCHEME = "ApiKey"


class ExtractedCredential(BaseModel):
    """Scheme and credential parsed from a header value."""

    scheme: str
    value: str


def parse_authorization(header_value: Optional[str], expected_scheme: str) -> ExtractedCredential:
    """
    Split a header value into scheme and credential.

    The value must be exactly "<scheme> <credential>" separated by one space,
    so credentials containing spaces are rejected.

    Raises:
        NotPresentError: Header missing or empty
        MalformedError: Wrong number of parts or scheme mismatch
    """
    if not header_value:
        raise NotPresentError("no credentials supplied", detail={"scheme": expected_scheme})

    parts = header_value.split(" ")
    if len(parts) != 2:
        raise MalformedError(
            "invalid authorization header: incorrect number of spaces",
            detail={"scheme": expected_scheme},
        )
    if parts[0] != expected_scheme:
        raise MalformedError(
            f"invalid authorization header: missing {expected_scheme} prefix",
            detail={"scheme": expected_scheme},
        )
    return ExtractedCredential(scheme=parts[0], value=parts[1])


def extract_credential(header_value: Optional[str], expected_scheme: str) -> str:
    """Return the credential part of a header value for the expected scheme."""
    return parse_authorization(header_value, expected_scheme).value


def _get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """Extract a bearer token (session or refresh) from request headers."""
    return extract_credential(_get_header(headers, AUTHORIZATION_HEADER), BEARER_SCHEME)


def get_api_key(headers: Mapping[str, str]) -> str:
    """Extract a service API key from request headers."""
    return extract_credential(_get_header(headers, AUTHORIZATION_HEADER), API_KEY_SCHEME)


def verify_api_key(headers: Mapping[str, str], expected_key: str) -> None:
    """
    Check the presented API key against the configured one.

    Raises:
        NotPresentError: No Authorization header
        MalformedError: Header is not "ApiKey <key>"
        UnauthenticatedError: Key does not match, or no key is configured
    """
    presented = get_api_key(headers)
    if not expected_key:
        raise UnauthenticatedError("no API key configured")
    if not hmac.compare_digest(presented.encode("utf-8"), expected_key.encode("utf-8")):
        raise UnauthenticatedError("API key does not match")
