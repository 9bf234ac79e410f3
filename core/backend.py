# =============================================================================
# core/backend.py  —  Tiben Backend Gateway
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Talks to the Tiben REST API.  Each public coroutine maps one domain
#   operation onto one POST endpoint:
#
#     solve_image                     →  /v1/solve-image
#     find_similar_problems           →  /v1/similar-problems      (text only)
#     find_similar_problems_by_image  →  /v1/similar-problems-2
#     get_recommended_resources       →  /v1/recommended-resources
#
# HOW AN IMAGE TRAVELS:
#   1. classify_image() tags the string as LocalPath or RemoteUrl.
#   2. LocalPath  →  check the file exists, then multipart/form-data with the
#                    file under the "image" field plus any scalar fields.
#      RemoteUrl  →  JSON body.  The shape differs per endpoint; note that
#                    similar-problems-2 wants {"image": url}, not "image_url".
#   3. Non-2xx    →  BackendError("Backend API error: {status} - {body}").
#   4. 2xx        →  JSON, normalized by core/normalize.py.
#
# ERROR PROPAGATION:
#   find_similar_problems_by_image() is the odd one out: it catches every
#   failure and returns SimilarProblemsResult(problems=[], error=...).  The
#   other three raise.  Keep it that way; the tools layer relies on it.
#
# STATE:
#   None.  Every call opens its own httpx.AsyncClient and its own file handle,
#   so concurrent tool calls never share anything.
# =============================================================================

import logging
import mimetypes
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import httpx

from core.config import BackendConfig
from core.errors import BackendError, ImageNotFoundError
from core.images import classify_image
from core.models import (
    LocalPath,
    RecommendedResourcesResult,
    SimilarProblemsResult,
    SolveResult,
)
from core.normalize import extract_solution, normalize_problems, normalize_resources
from core.retry import is_retryable_error, with_retry

logger = logging.getLogger(__name__)

SOLVE_IMAGE_PATH = "/v1/solve-image"
SIMILAR_PROBLEMS_PATH = "/v1/similar-problems"
SIMILAR_PROBLEMS_BY_IMAGE_PATH = "/v1/similar-problems-2"
RECOMMENDED_RESOURCES_PATH = "/v1/recommended-resources"


class BackendClient:
    """Async HTTP gateway to the Tiben backend."""

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or BackendConfig()
        self._transport = transport

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------
    async def solve_image(
        self, image_url: str, additional_context: Optional[str] = None
    ) -> SolveResult:
        """Solve the problem shown in an image.  Raises on any failure."""
        form: dict[str, str] = {}
        body: dict[str, Any] = {"image_url": image_url}
        if additional_context:
            form["additional_context"] = additional_context
            body["additional_context"] = additional_context

        logger.info(
            "solve_image image_url=%s has_context=%s",
            image_url, bool(additional_context),
        )
        payload = await self._post_image(SOLVE_IMAGE_PATH, image_url, form, body)
        return extract_solution(payload)

    async def find_similar_problems(
        self, query: str, limit: Optional[int] = None
    ) -> SimilarProblemsResult:
        """Text search for similar problems.  JSON only; raises on failure."""
        body: dict[str, Any] = {"query": query}
        if limit is not None:
            body["limit"] = limit

        url = self.config.endpoint(SIMILAR_PROBLEMS_PATH)
        payload = await self._retrying(lambda: self._send_json(url, body))
        return SimilarProblemsResult(problems=normalize_problems(payload))

    async def find_similar_problems_by_image(
        self, image_url: str, limit: int = 1
    ) -> SimilarProblemsResult:
        """Find problems similar to the one in an image.

        Unlike the other operations this one NEVER raises: any failure
        (missing file, HTTP error, bad JSON, network) comes back as
        ``SimilarProblemsResult(problems=[], error=<message>)``.
        """
        form: dict[str, str] = {}
        if limit:
            form["limit"] = str(limit)
        body = {"image": image_url, "limit": limit or 1}

        try:
            payload = await self._post_image(
                SIMILAR_PROBLEMS_BY_IMAGE_PATH, image_url, form, body
            )
            return SimilarProblemsResult(problems=normalize_problems(payload))
        except Exception as exc:
            logger.error("similar-problems-by-image failed: %s", exc)
            return SimilarProblemsResult(problems=[], error=str(exc) or "Unknown error")

    async def get_recommended_resources(self, image_url: str) -> RecommendedResourcesResult:
        """Learning resources for the problem in an image.  Raises on failure."""
        payload = await self._post_image(
            RECOMMENDED_RESOURCES_PATH, image_url, {}, {"image_url": image_url}
        )
        return RecommendedResourcesResult(resources=normalize_resources(payload))

    # -------------------------------------------------------------------------
    # Transport helpers
    # -------------------------------------------------------------------------
    async def _post_image(
        self,
        path: str,
        image_url: str,
        form: dict[str, str],
        body: dict[str, Any],
    ) -> Any:
        url = self.config.endpoint(path)
        image = classify_image(image_url)

        if isinstance(image, LocalPath):
            file_path = Path(image.path)
            if not file_path.exists():
                raise ImageNotFoundError(image.path)
            logger.debug("Uploading %s to %s", file_path.name, url)
            return await self._retrying(lambda: self._send_multipart(url, file_path, form))

        return await self._retrying(lambda: self._send_json(url, body))

    async def _retrying(self, send: Callable[[], Awaitable[Any]]) -> Any:
        cfg = self.config
        return await with_retry(
            send,
            max_retries=cfg.max_retries,
            initial_delay=cfg.initial_delay,
            max_delay=cfg.max_delay,
            backoff_multiplier=cfg.backoff_multiplier,
            retryable=is_retryable_error,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport)

    async def _send_json(self, url: str, body: dict[str, Any]) -> Any:
        async with self._client() as client:
            response = await client.post(url, json=body)
        return self._read_json(response)

    async def _send_multipart(self, url: str, file_path: Path, form: dict[str, str]) -> Any:
        content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        async with self._client() as client:
            with file_path.open("rb") as fh:
                response = await client.post(
                    url,
                    data=form,
                    files={"image": (file_path.name, fh, content_type)},
                )
        return self._read_json(response)

    @staticmethod
    def _read_json(response: httpx.Response) -> Any:
        logger.debug("%s %s → %s", response.request.method, response.request.url, response.status_code)
        if not response.is_success:
            raise BackendError(response.status_code, response.text)
        return response.json()
