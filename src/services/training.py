"""
Client for the external voice-model training endpoint.

The endpoint accepts ``{"owner": <contributor>}`` and answers with
``{"logs": [...]}``.  Transient transport failures are retried up to
3 times with exponential backoff; anything else becomes ``TrainingError``.
"""

import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.core.config import get_settings
from src.core.exceptions import TrainingError

logger = logging.getLogger(__name__)


class TrainingClient:
    """Submits training jobs for one contributor's recordings."""

    def __init__(
        self,
        endpoint_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the training client.

        Args:
            endpoint_url: Job-submission URL (falls back to settings).
            timeout: Request timeout in seconds; training calls can be slow.
            transport: Optional httpx transport override (used in tests).
        """
        settings = get_settings()
        self._endpoint = endpoint_url if endpoint_url is not None else settings.training_endpoint_url
        self._timeout = timeout or settings.training_timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._endpoint)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=16),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _post(self, owner: str) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            return await client.post(self._endpoint, json={"owner": owner})

    async def train(self, owner: str) -> list[str]:
        """Start training for *owner* and return the endpoint's log lines.

        Raises:
            TrainingError: If no endpoint is configured or the call fails.
        """
        if not self.configured:
            raise TrainingError("Training endpoint is not configured (TRAINING_ENDPOINT_URL)")

        logger.info("Starting training for %s", owner)
        try:
            resp = await self._post(owner)
        except httpx.HTTPError as exc:
            logger.error("Training request for %s failed: %s", owner, exc)
            raise TrainingError(f"Training endpoint unreachable: {exc}") from exc

        if resp.status_code >= 400:
            logger.error("Training endpoint returned %d for %s", resp.status_code, owner)
            raise TrainingError(f"Training endpoint returned {resp.status_code}: {resp.text[:200]}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise TrainingError("Training endpoint returned invalid JSON") from exc

        logs = payload.get("logs") if isinstance(payload, dict) else None
        if not isinstance(logs, list):
            raise TrainingError("Training endpoint response has no 'logs' list")
        return [str(line) for line in logs]
