"""
AI Horde provider.

Submits an asynchronous job, then polls the status endpoint until the job
finishes, faults, or the poll budget runs out. Finished jobs carry a
hosted image URL.
"""

import logging
import time
from collections.abc import Callable

import httpx

from visual_tutor.config import ProviderSettings
from visual_tutor.core.models import ImageResult, RemoteImage
from visual_tutor.providers.base import TRANSIENT_STATUS_CODES, ImageProvider

logger = logging.getLogger(__name__)

CLIENT_AGENT = "visual-tutor:0.1.0:unknown"


class AIHordeProvider(ImageProvider):
    """Crowd-sourced Stable Diffusion via AI Horde."""

    def __init__(
        self,
        settings: ProviderSettings,
        http_client: httpx.Client | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(settings, http_client)
        self._sleep = sleep
        self._poll_interval = float(settings.options.get("poll_interval_seconds", 2.0))
        self._max_polls = int(settings.options.get("max_polls", 60))

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._settings.api_key,
            "Client-Agent": CLIENT_AGENT,
            "Content-Type": "application/json",
        }

    def _generate(self, prompt: str) -> ImageResult:
        submit = self._post(
            f"{self._settings.base_url}/generate/async",
            headers=self._headers(),
            json={
                "prompt": prompt,
                "params": {"width": 512, "height": 512, "steps": 25, "n": 1},
                "models": [self.model],
                "r2": True,
            },
        )
        self._check_status(submit)

        job_id = submit.json().get("id")
        if not job_id:
            raise self._missing_image("no job id returned")

        logger.info(f"AI Horde job submitted: {job_id}", extra={"provider": self.name, "job_id": job_id})
        return self._poll(job_id)

    def _poll(self, job_id: str) -> ImageResult:
        status_url = f"{self._settings.base_url}/generate/status/{job_id}"

        for _ in range(self._max_polls):
            response = self._get(status_url, headers=self._headers())
            # The job is already queued; a transient status must not trigger a resubmit
            if response.status_code in TRANSIENT_STATUS_CODES:
                logger.info(
                    f"Transient status {response.status_code} polling AI Horde job {job_id}",
                    extra={"provider": self.name, "job_id": job_id},
                )
                self._sleep(self._poll_interval)
                continue
            self._check_status(response)
            status = response.json()

            if status.get("faulted"):
                raise self._missing_image(f"job {job_id} faulted")

            generations = status.get("generations") or []
            if status.get("done") and generations:
                image = generations[0].get("img")
                if not image:
                    raise self._missing_image(f"job {job_id} finished without img")
                if image.startswith(("http://", "https://")):
                    return RemoteImage(url=image, provider_name=self.name)
                return self._decode_inline(image, "image/webp")

            self._sleep(self._poll_interval)

        raise self._missing_image(f"job {job_id} did not finish after {self._max_polls} polls")
