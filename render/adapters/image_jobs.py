"""Polling client for the third-party image generation job API."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional

import httpx
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_fixed

from config import ImageJobSettings, get_image_job_settings
from utils.exceptions import ConfigurationError, RemoteJobError, RemoteJobTimeout, ValidationError

from .base import BaseImageGenerator, ImageJobResult


logger = logging.getLogger(__name__)


class _PendingPoll(Exception):
    """Poll did not reach a terminal state (still waiting or transient failure)."""


class KieImageJobClient(BaseImageGenerator):
    """Submit a generation task, then poll its status at a fixed interval."""

    provider = "kie"

    def __init__(
        self,
        *,
        settings: Optional[ImageJobSettings] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        poll_interval_s: Optional[float] = None,
        max_attempts: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_image_job_settings()
        self.api_key = str(api_key or self.settings.api_key or os.getenv("GEMINI_API_KEY") or "").strip()
        self.base_url = str(base_url or self.settings.base_url).strip().rstrip("/")
        self.poll_interval_s = float(self.settings.poll_interval_s if poll_interval_s is None else poll_interval_s)
        self.max_attempts = max(1, int(self.settings.max_attempts if max_attempts is None else max_attempts))
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.request_timeout_s, transport=self._transport)

    async def generate_image(self, prompt: str, *, aspect_ratio: Optional[str] = None) -> str:
        result = await self.run(prompt, aspect_ratio=aspect_ratio)
        return result.image_url

    async def run(self, prompt: str, *, aspect_ratio: Optional[str] = None) -> ImageJobResult:
        text = str(prompt or "").strip()
        if not text:
            raise ValidationError("prompt is required")
        if not self.api_key:
            raise ConfigurationError("image job API key not configured (KIE_API_KEY)")

        async with self._client() as client:
            task_id = await self.create_task(client, text, aspect_ratio=aspect_ratio)
            logger.info("Image task created: %s", task_id)
            return await self.wait_for_result(client, task_id)

    async def create_task(self, client: httpx.AsyncClient, prompt: str, *, aspect_ratio: Optional[str] = None) -> str:
        request_payload = {
            "model": self.settings.model,
            "input": {
                "prompt": prompt,
                "aspect_ratio": aspect_ratio or self.settings.aspect_ratio,
                "resolution": self.settings.resolution,
                "output_format": self.settings.output_format,
            },
        }
        try:
            response = await client.post(f"{self.base_url}/createTask", headers=self._headers(), json=request_payload)
        except httpx.TimeoutException as exc:
            raise RemoteJobError("task creation timed out") from exc
        except httpx.RequestError as exc:
            raise RemoteJobError(f"task creation request failed: {exc}") from exc

        if response.status_code in {401, 403}:
            raise RemoteJobError("image job API auth failed", status_code=response.status_code)
        if response.status_code >= 400:
            raise RemoteJobError(f"task creation failed ({response.status_code}): {response.text[:200]}")

        body = self._json_body(response)
        if body.get("code") != 200:
            raise RemoteJobError(f"task creation error: {body.get('msg') or 'unknown error'}")
        task_id = str((body.get("data") or {}).get("taskId") or "").strip()
        if not task_id:
            raise RemoteJobError("task creation response missing taskId")
        return task_id

    async def wait_for_result(self, client: httpx.AsyncClient, task_id: str) -> ImageJobResult:
        polls = 0
        image_url = ""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.poll_interval_s),
            retry=retry_if_exception_type(_PendingPoll),
        )
        await asyncio.sleep(self.poll_interval_s)
        try:
            async for attempt in retrying:
                with attempt:
                    polls += 1
                    image_url = await self._poll_once(client, task_id)
        except RetryError as exc:
            raise RemoteJobTimeout(
                f"generation timed out after {polls} polls",
                task_id=task_id,
                attempts=polls,
            ) from exc

        logger.info("Image task %s succeeded after %s polls", task_id, polls)
        return ImageJobResult(task_id=task_id, image_url=image_url, polls=polls)

    async def _poll_once(self, client: httpx.AsyncClient, task_id: str) -> str:
        try:
            response = await client.get(
                f"{self.base_url}/recordInfo",
                params={"taskId": task_id},
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as exc:
            logger.warning("Polling request failed (%s), retrying...", exc)
            raise _PendingPoll(str(exc)) from exc

        if response.status_code >= 400:
            logger.warning("Polling failed (%s), retrying...", response.status_code)
            raise _PendingPoll(f"http {response.status_code}")

        try:
            data = dict(self._json_body(response).get("data") or {})
        except RemoteJobError as exc:
            logger.warning("Polling returned unreadable body, retrying...")
            raise _PendingPoll(str(exc)) from exc

        state = str(data.get("state") or "").strip().lower()
        if state == "success":
            return self._extract_result_url(data, task_id)
        if state == "fail":
            raise RemoteJobError(f"generation failed: {data.get('failMsg') or 'unknown error'}", task_id=task_id)
        raise _PendingPoll(state or "waiting")

    @staticmethod
    def _extract_result_url(data: Dict[str, Any], task_id: str) -> str:
        raw = data.get("resultJson")
        try:
            result = json.loads(raw) if isinstance(raw, str) else dict(raw or {})
        except (TypeError, ValueError) as exc:
            raise RemoteJobError("failed to parse success result", task_id=task_id) from exc
        urls = result.get("resultUrls") if isinstance(result, dict) else None
        if not isinstance(urls, list) or not urls or not str(urls[0] or "").strip():
            raise RemoteJobError("no image URL in result", task_id=task_id)
        return str(urls[0]).strip()

    @staticmethod
    def _json_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteJobError("job API returned non-JSON body") from exc
        if not isinstance(body, dict):
            raise RemoteJobError("job API returned unexpected body")
        return body
