# calltrainer/errors.py
from __future__ import annotations
from typing import Optional


class TrainerError(Exception):
    """Base class for every error raised by the call trainer."""


class ClientInputError(TrainerError):
    """Request was missing a required field or carried a malformed payload (HTTP 400)."""


class ServiceError(TrainerError):
    """
    One of the external capabilities (transcription, generation, synthesis)
    failed, timed out or returned something unusable (HTTP 500).

    `stage` says which one; the message shown to the trainee stays generic.
    """

    def __init__(self, stage: str, message: Optional[str] = None):
        self.stage = stage
        super().__init__(message or f"{stage} stage failed")


class ClientEnvironmentError(TrainerError):
    """Microphone missing or permission denied. Never reaches the server."""
