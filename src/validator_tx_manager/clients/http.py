# -*- coding: utf-8 -*-
"""Async HTTP client with retries for the validator node and fee-distribution endpoint."""

from __future__ import annotations

import asyncio
import random
import uuid
import aiohttp
import structlog
from typing import Any, Callable, Dict, Optional
from structlog.contextvars import bound_contextvars

from validator_tx_manager.config import Settings
from validator_tx_manager.exceptions import LedgerAPIError


class AsyncHttpClient:
    """Async HTTP client for JSON endpoints with bounded retries.

    Injects Settings and optionally an aiohttp.ClientSession. If no session
    is provided, one is created and must be closed via aclose() or used
    as an async context manager.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Configuration (ledger.timeout_seconds, ledger.max_retries).
            session: Optional shared aiohttp session. If None, the client
                creates and owns a session (call aclose() when done).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.ledger.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter, capped at 4 seconds."""
        base = min(4.0, 0.25 * (2**attempt))
        return base + random.uniform(0.0, 0.15)

    async def post(
        self,
        url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        attempts: Optional[int] = None,
    ) -> Any:
        """Perform a POST request with JSON body and return JSON.

        Args:
            url: Full URL to request.
            json: Optional JSON-serializable body.
            attempts: Number of tries; defaults to settings.ledger.max_retries.
                Pass 1 for non-idempotent requests such as transaction submission.

        Returns:
            Parsed JSON response (dict or list).

        Raises:
            LedgerAPIError: If the request fails on every attempt.
        """
        payload = json or {}
        request_id = uuid.uuid4().hex[:12]
        max_attempts = max(1, attempts if attempts is not None else self._settings.ledger.max_retries)
        last_error: Optional[Exception] = None

        with bound_contextvars(
            http_url=url,
            http_request_id=request_id,
            http_max_attempts=max_attempts,
        ):
            for attempt in range(max_attempts):
                with bound_contextvars(http_attempt=attempt + 1):
                    try:
                        session = await self._get_session()
                        async with session.post(url, json=payload) as response:
                            response.raise_for_status()
                            return await response.json(content_type=None)
                    except aiohttp.ClientResponseError as e:
                        last_error = e
                        self._logger.debug(
                            "http_post_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                            http_status_code=getattr(e, "status", None),
                        )
                    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                        last_error = e
                        self._logger.debug(
                            "http_post_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                if attempt + 1 < max_attempts:
                    await asyncio.sleep(self._backoff_delay(attempt))

            status_code = (
                getattr(last_error, "status", None)
                if isinstance(last_error, aiohttp.ClientResponseError)
                else None
            )
            self._logger.warning(
                "http_post_failed",
                http_status_code=status_code,
                http_attempts=max_attempts,
                error_type=type(last_error).__name__ if last_error else None,
                error_message=str(last_error) if last_error else None,
            )
            raise LedgerAPIError(
                f"POST failed after {max_attempts} attempt(s): {url}",
                url=url,
                status_code=status_code,
                cause=last_error,
            ) from last_error
