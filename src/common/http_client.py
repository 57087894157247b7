"""Shared HTTP helpers used by repository and channel clients.

Encapsulates common request/timeout error handling so modules avoid
duplicating try/except blocks. Helpers report failures through their return
values; callers decide which failures are fatal.
"""
from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


# Simple in-memory cache for HTTP responses
_http_cache: Dict[str, Tuple[Any, float]] = {}


def _get_cache_key(method: str, url: str, headers: Optional[Dict[str, str]] = None) -> str:
    """Generate cache key from request parameters."""
    headers_str = str(sorted(headers.items())) if headers else ""
    return f"{method}:{url}:{headers_str}"


def _is_cache_valid(cache_entry: Tuple[Any, float]) -> bool:
    """Check if cache entry is still valid."""
    _, cached_time = cache_entry
    return time.time() - cached_time < Constants.HTTP_CACHE_TTL_SEC


def clear_cache() -> None:
    """Drop every cached response."""
    _http_cache.clear()


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout, retries, and caching with DEBUG traces.

    Returns:
        Tuple of (status_code, headers_dict, text). A status code of 0 means
        every attempt failed at the transport level.
    """
    cache_key = _get_cache_key('GET', url, headers)
    safe_target = safe_url(url)

    if cache_key in _http_cache and _is_cache_valid(_http_cache[cache_key]):
        cached_data, _ = _http_cache[cache_key]
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP cache hit",
                extra=extra_context(
                    event="cache_hit",
                    component="http_client",
                    action="GET",
                    target=safe_target
                )
            )
        return cached_data

    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1
                        )
                    )

                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=headers,
                    **kwargs
                )

                if response.status_code < 500:  # Don't cache server errors
                    cache_data = (response.status_code, dict(response.headers), response.text)
                    _http_cache[cache_key] = (cache_data, time.time())

                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response ok",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            outcome="success",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target
                        )
                    )
                return response.status_code, dict(response.headers), response.text

            except requests.Timeout:
                last_exception = "timeout"
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP timeout",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="timeout",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                continue
            except requests.RequestException as exc:
                last_exception = str(exc)
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request exception",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="request_exception",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                continue

    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"


def download_file(url: str, dest: Path) -> int:
    """Stream ``url`` into ``dest``.

    The body is written to a temporary file in the destination directory and
    renamed into place, so ``dest`` never holds a partial download.

    Returns:
        The HTTP status code, or 0 on a transport failure. ``dest`` exists
        only when 200 is returned.
    """
    safe_target = safe_url(url)
    dest.parent.mkdir(parents=True, exist_ok=True)
    with Timer() as t:
        try:
            with requests.get(url, timeout=Constants.REQUEST_TIMEOUT, stream=True) as response:
                if response.status_code != 200:
                    if is_debug_enabled(logger):
                        logger.debug(
                            "Download not available",
                            extra=extra_context(
                                event="http_response",
                                component="http_client",
                                action="download",
                                outcome="handled_non_2xx",
                                status_code=response.status_code,
                                target=safe_target
                            )
                        )
                    return response.status_code
                fd, tmp_name = tempfile.mkstemp(dir=str(dest.parent), suffix=".part")
                try:
                    with os.fdopen(fd, "wb") as fh:
                        for chunk in response.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                            if chunk:
                                fh.write(chunk)
                    os.replace(tmp_name, dest)
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
        except requests.RequestException as exc:
            logger.warning("Download of %s failed: %s", safe_target, exc)
            return 0
    if is_debug_enabled(logger):
        logger.debug(
            "Download complete",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action="download",
                outcome="success",
                status_code=200,
                duration_ms=t.duration_ms(),
                target=safe_target
            )
        )
    return 200
