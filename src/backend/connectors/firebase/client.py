from __future__ import annotations

import json
import logging
import time
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from .config import FirebaseConfig

logger = logging.getLogger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)


class FirebaseHttpError(RuntimeError):
    def __init__(self, status: int, message: str, body: str | None = None):
        super().__init__(f"Firebase HTTP {status}: {message}")
        self.status = status
        self.body = body


def database_request(
    config: FirebaseConfig,
    method: str,
    path: str,
    *,
    payload: Any = None,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """
    Call the Realtime Database REST API at `{database_url}/{path}.json`.

    Returns the decoded JSON body (`None` for a missing node). Transient
    failures (429/5xx, connection errors) are retried with exponential backoff.
    """
    query: dict[str, Any] = dict(params or {})
    if config.auth_token:
        query["auth"] = config.auth_token
    url = build_database_url(config.database_url, path, query)
    data = None if payload is None else json.dumps(payload).encode("utf-8")
    return send_json(
        url,
        method,
        data=data,
        headers=headers,
        timeout_seconds=config.timeout_seconds,
        max_retries=config.max_retries,
    )


def db_get(config: FirebaseConfig, path: str, **params: Any) -> Any:
    return database_request(config, "GET", path, params=params or None)


def db_put(config: FirebaseConfig, path: str, value: Any) -> Any:
    return database_request(config, "PUT", path, payload=value)


def db_patch(config: FirebaseConfig, path: str, fields: dict[str, Any]) -> Any:
    return database_request(config, "PATCH", path, payload=fields)


def db_post(config: FirebaseConfig, path: str, value: Any) -> str:
    """Append under `path` with a generated push key and return that key."""
    body = database_request(config, "POST", path, payload=value)
    if not isinstance(body, dict) or "name" not in body:
        raise FirebaseHttpError(200, "POST response missing generated key", json.dumps(body))
    return body["name"]


def db_delete(config: FirebaseConfig, path: str) -> None:
    database_request(config, "DELETE", path)


def db_query_equal(config: FirebaseConfig, path: str, child: str, value: Any) -> dict[str, Any]:
    # The REST API expects JSON-encoded orderBy/equalTo values.
    body = database_request(
        config,
        "GET",
        path,
        params={"orderBy": json.dumps(child), "equalTo": json.dumps(value)},
    )
    return body or {}


def send_json(
    url: str,
    method: str,
    *,
    data: bytes | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: int = 30,
    max_retries: int = 3,
) -> Any:
    retries = 0
    backoff = 0.5

    while True:
        req = Request(url, data=data, method=method)
        req.add_header("Accept", "application/json")
        if data is not None:
            req.add_header("Content-Type", "application/json")
        for name, value in (headers or {}).items():
            req.add_header(name, value)

        try:
            with urlopen(req, timeout=timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
                return json.loads(raw) if raw else None
        except HTTPError as exc:
            body = exc.read().decode("utf-8") if exc.fp else None
            status = exc.code

            if status in RETRY_STATUSES and retries < max_retries:
                logger.warning("%s %s returned %s; retrying in %.1fs", method, _redact(url), status, backoff)
                time.sleep(backoff)
                retries += 1
                backoff *= 2
                continue

            raise FirebaseHttpError(status, exc.reason, body) from exc
        except URLError as exc:
            if retries < max_retries:
                logger.warning("%s %s failed (%s); retrying in %.1fs", method, _redact(url), exc.reason, backoff)
                time.sleep(backoff)
                retries += 1
                backoff *= 2
                continue
            raise FirebaseHttpError(0, str(exc)) from exc


def build_database_url(database_url: str, path: str, params: dict[str, Any] | None = None) -> str:
    normalized_path = quote(path.strip("/"), safe="/")
    url = f"{database_url.rstrip('/')}/{normalized_path}.json"
    if params:
        url = f"{url}?{urlencode(params)}"
    return url


def _redact(url: str) -> str:
    head, sep, _query = url.partition("?")
    return f"{head}?..." if sep else head
