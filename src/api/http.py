# manages the connection to the storefront backend, provides helper methods internal to api package
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from api.errors import NetworkError, ParseError, ServerError
from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

BASE_URL = settings.api_base_url
TIMEOUT = settings.request_timeout

# tests swap this for an httpx.MockTransport
TRANSPORT: Optional[httpx.AsyncBaseTransport] = None


@asynccontextmanager
async def connect(token: Optional[str] = None) -> AsyncIterator[httpx.AsyncClient]:
    """Async context manager yielding an httpx client bound to the backend.

    When a token is given every request carries it as a bearer credential.
    """
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    client = httpx.AsyncClient(
        base_url=BASE_URL,
        headers=headers,
        timeout=TIMEOUT,
        transport=TRANSPORT,
    )
    try:
        yield client
    finally:
        await client.aclose()


def _error_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _server_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"] or fallback
    return fallback


async def request(
    method: str,
    path: str,
    *,
    token: Optional[str] = None,
    json: Any = None,
    fallback: str = "Request failed",
) -> Any:
    """
    Send one request and return the decoded JSON body (None for an empty body).

    Raises:
        NetworkError: the request never completed.
        ServerError: non-2xx answer; message taken from the body or `fallback`.
        ParseError: a 2xx answer whose body is not JSON.
    """
    try:
        async with connect(token) as client:
            resp = await client.request(method, path, json=json)
    except httpx.RequestError as exc:
        _logger.warning(f"{method} {path} failed: {exc!r}")
        raise NetworkError() from exc

    if resp.is_error:
        body = _error_body(resp)
        message = _server_message(body, fallback)
        _logger.info(f"{method} {path} -> {resp.status_code}: {message}")
        raise ServerError(message, resp.status_code, body)

    _logger.debug(f"{method} {path} -> {resp.status_code}")
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as exc:
        raise ParseError(f"{method} {path} returned a non-JSON body") from exc
