"""Analysis service boundary.

A review request is submitted once; the service answers with two streams
that progress independently: findings and fatal errors. Both are
asyncio.Queue objects closed by the producer putting ``None``.

HttpAnalysisService speaks newline-delimited JSON over one streaming POST:

    {"issue": {...}}     → issue queue (as an Issue)
    {"error": "message"} → error queue (as a ReviewServiceError)

Transport failures, HTTP error statuses and unreadable lines are reported on
the error queue too, so the consumer has a single place to look for fatal
conditions. Nothing is retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx

from reviewflow_core.errors import ReviewServiceError
from reviewflow_core.models import Issue
from reviewflow_core.request import ReviewRequest

logger = logging.getLogger(__name__)

REVIEW_ENDPOINT = "/v1/review"


@dataclass
class ReviewStreams:
    issues: asyncio.Queue = field(default_factory=asyncio.Queue)
    errors: asyncio.Queue = field(default_factory=asyncio.Queue)
    producer: asyncio.Task | None = None

    async def close(self) -> None:
        """Close both streams. Called by producers when they are done."""
        await self.issues.put(None)
        await self.errors.put(None)

    def cancel(self) -> None:
        if self.producer is not None and not self.producer.done():
            self.producer.cancel()


class AnalysisService(ABC):
    """Anything that can evaluate a ReviewRequest and stream back findings."""

    @abstractmethod
    async def request_review(self, request: ReviewRequest) -> ReviewStreams:
        """Submit ``request`` and return the live issue and error streams."""


class HttpAnalysisService(AnalysisService):
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport

    async def request_review(self, request: ReviewRequest) -> ReviewStreams:
        streams = ReviewStreams()
        streams.producer = asyncio.create_task(self._pump(request, streams))
        return streams

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/x-ndjson"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _pump(self, request: ReviewRequest, streams: ReviewStreams) -> None:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers(),
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                async with client.stream("POST", REVIEW_ENDPOINT, json=request.to_dict()) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        await streams.errors.put(
                            ReviewServiceError(
                                f"Review request failed with status {response.status_code}: "
                                f"{response.text.strip()[:200]}"
                            )
                        )
                        return
                    async for line in response.aiter_lines():
                        if not line.strip():
                            continue
                        if not await self._dispatch(line, streams):
                            return
        except httpx.HTTPError as e:
            await streams.errors.put(ReviewServiceError(f"Could not reach the analysis service: {e}"))
        except Exception as e:
            # A crashed reader must fail the run, not look like a clean close.
            logger.debug("Analysis stream reader failed", exc_info=e)
            await streams.errors.put(ReviewServiceError(f"Reading the analysis stream failed: {e!r}"))
        finally:
            await streams.close()

    @staticmethod
    async def _dispatch(line: str, streams: ReviewStreams) -> bool:
        """Route one NDJSON line; return False once the stream is fatally broken."""
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Unreadable line from analysis service: %s", line[:200])
            await streams.errors.put(ReviewServiceError(f"Unreadable message from analysis service: {line[:200]}"))
            return False

        if isinstance(message, dict) and "issue" in message:
            try:
                if not isinstance(message["issue"], dict):
                    raise TypeError(f"expected an object, got {type(message['issue']).__name__}")
                issue = Issue.from_dict(message["issue"])
            except (TypeError, AttributeError, ValueError) as e:
                await streams.errors.put(
                    ReviewServiceError(f"Unreadable issue from analysis service: {e}: {line[:200]}")
                )
                return False
            await streams.issues.put(issue)
            return True
        if isinstance(message, dict) and "error" in message:
            await streams.errors.put(ReviewServiceError(str(message["error"])))
            return False

        logger.debug("Ignoring unknown message from analysis service: %s", line[:200])
        return True
