"""HTTP session management and single-attempt requests for feed_navigator."""

from __future__ import annotations

import atexit
import logging
import re
import threading
import time
from typing import cast, List, Optional

import requests
from requests.adapters import HTTPAdapter
from requests.utils import requote_uri
from urllib3.util.retry import Retry

from .models import FetchOutcome, StrategyAttempt
from .xml_tree import decode_feed

logger = logging.getLogger(__name__)

HTTP_ALLOWED_SCHEMES = ("http://", "https://")
DOWNLOAD_CHUNK_SIZE = 1024 * 64

_CHARSET_PARAM = re.compile(r"charset\s*=\s*[\"']?([^\s;\"']+)", re.IGNORECASE)

_THREAD_LOCAL = threading.local()
_SESSION_REGISTRY: List[requests.Session] = []
_SESSION_REGISTRY_LOCK = threading.Lock()


def normalize_url(url: str) -> str:
    """Normalize URLs while preserving already-encoded segments."""
    normalized = requote_uri(url)
    if normalized != url:
        logger.debug("Normalized URL %s -> %s", url, normalized)
    return cast(str, normalized)


def _configure_http_session(session: requests.Session) -> None:
    """Attach adapters that never retry on their own.

    Fallback order is decided by the fetch strategies, so the transport makes
    exactly one attempt per call. Redirects are still followed.
    """
    retry = Retry(total=0, read=False, raise_on_status=False)
    adapter = HTTPAdapter(max_retries=retry)
    for scheme in HTTP_ALLOWED_SCHEMES:
        session.mount(scheme, adapter)
    logger.debug("Configured HTTP session %s without transport retries", hex(id(session)))


def _get_thread_request_session() -> requests.Session:
    session = getattr(_THREAD_LOCAL, "session", None)
    if session is None:
        session = requests.Session()
        _configure_http_session(session)
        setattr(_THREAD_LOCAL, "session", session)
        with _SESSION_REGISTRY_LOCK:
            _SESSION_REGISTRY.append(session)
        logger.debug("Created new thread-local HTTP session %s", hex(id(session)))
    return session


def _close_all_sessions() -> None:
    with _SESSION_REGISTRY_LOCK:
        for session in _SESSION_REGISTRY:
            try:
                session.close()
            # Best-effort cleanup; ignore shutdown errors
            except Exception:  # pragma: no cover  # nosec B110
                pass
        _SESSION_REGISTRY.clear()


atexit.register(_close_all_sessions)


def _content_charset(content_type: Optional[str]) -> Optional[str]:
    """``charset`` parameter of a Content-Type header, None when absent."""
    if not content_type:
        return None
    match = _CHARSET_PARAM.search(content_type)
    return match.group(1) if match else None


def _read_body(resp: requests.Response, attempt: StrategyAttempt, deadline: float) -> bytes:
    """Read the streamed body, giving up once the attempt deadline has passed."""
    chunks: List[bytes] = []
    for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
        if time.monotonic() > deadline:
            raise requests.exceptions.Timeout(
                f"Attempt exceeded {attempt.timeout_seconds}s while reading the body"
            )
        if chunk:
            chunks.append(chunk)
    return b"".join(chunks)


def perform_request(attempt: StrategyAttempt) -> FetchOutcome:
    """Execute one GET for a strategy attempt and describe what happened.

    Never raises for network-level failures: DNS errors, timeouts and resets
    are reported as an outcome with ``status_code=None``. The body is read
    as bytes and decoded with ``decode_feed``, so a ``text/xml`` response
    without a charset is read as its XML declaration or UTF-8.

    Args:
        attempt: Fully specified request disguise

    Returns:
        FetchOutcome for the attempt
    """
    normalized_url = normalize_url(attempt.url)
    deadline = time.monotonic() + attempt.timeout_seconds
    try:
        session = _get_thread_request_session()
        logger.debug(
            "Opening HTTP connection to %s (strategy=%s, timeout=%s, referer=%s)",
            normalized_url,
            attempt.strategy_id,
            attempt.timeout_seconds,
            attempt.referer,
        )
        resp = session.get(
            normalized_url,
            headers=attempt.headers,
            timeout=attempt.timeout_seconds,
            allow_redirects=True,
            stream=True,
        )
    except requests.RequestException as exc:
        logger.warning(
            "Request to %s failed (strategy=%s): %s", attempt.url, attempt.strategy_id, exc
        )
        return FetchOutcome(
            strategy_id=attempt.strategy_id,
            status_code=None,
            reason=type(exc).__name__,
            error=str(exc),
        )

    try:
        content = _read_body(resp, attempt, deadline) if resp.status_code != 204 else b""
        body = decode_feed(content, _content_charset(resp.headers.get("Content-Type")))
        logger.debug(
            "HTTP request to %s finished with status %s (%d bytes)",
            normalized_url,
            resp.status_code,
            len(content),
        )
        return FetchOutcome(
            strategy_id=attempt.strategy_id,
            status_code=resp.status_code,
            body=body,
            reason=resp.reason or "",
        )
    except (requests.RequestException, OSError) as exc:
        logger.warning("Failed to read response from %s: %s", attempt.url, exc)
        return FetchOutcome(
            strategy_id=attempt.strategy_id,
            status_code=None,
            reason=type(exc).__name__,
            error=str(exc),
        )
    finally:
        resp.close()
