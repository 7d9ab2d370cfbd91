# calltrainer/cli/api_client.py
from __future__ import annotations
import json
import logging
from typing import List, Optional, Sequence

import httpx
from pydantic import ValidationError

from calltrainer import config
from calltrainer.errors import ClientInputError, ServiceError
from calltrainer.models import ClinicProfile, Mode, PipelineResult, Turn

logger = logging.getLogger(__name__)


class TurnClient:
    """
    Talks to the /voice_turn endpoint.
    """

    def __init__(
        self,
        base_url: str = config.TRAINER_API_URL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        # server stages are capped individually, allow all three plus upload
        if timeout is None:
            timeout = config.STAGE_TIMEOUT_SECONDS * 3 + 10
        self.http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def submit(
        self,
        audio: bytes,
        turns: Sequence[Turn],
        profile: ClinicProfile,
        mode: Mode,
        filename: str = "staff.wav",
    ) -> PipelineResult:
        data = {
            "mode": mode.value,
            "clinicConfig": profile.model_dump_json(by_alias=True),
            "turns": json.dumps([t.model_dump() for t in turns]),
        }
        files = {"audio": (filename, audio, "audio/wav")}

        try:
            res = self.http.post("/voice_turn", data=data, files=files)
        except httpx.HTTPError as e:
            logger.error("Network error while talking to /voice_turn: %s", e)
            raise ServiceError("network", "Network error while talking to /voice_turn.") from e

        if res.status_code >= 500:
            logger.error("API error %s: %s", res.status_code, res.text[:300])
            raise ServiceError("server", "Server error from /voice_turn.")
        if res.status_code >= 400:
            raise ClientInputError(_detail(res))

        try:
            return PipelineResult.model_validate(res.json())
        except (ValueError, ValidationError) as e:
            logger.error("Unusable response from /voice_turn: %s", res.text[:300])
            raise ServiceError("server", "Unusable response from /voice_turn.") from e

    def list_modes(self) -> List[dict]:
        res = self.http.get("/modes")
        res.raise_for_status()
        return res.json()

    def close(self) -> None:
        self.http.close()


def _detail(res: httpx.Response) -> str:
    try:
        body = res.json()
    except ValueError:
        return res.text
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return res.text
