"""
calltrainer/models.py

Data shapes shared by the server and the client:
clinic profile, modes, conversation turns and the turn result.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# ---------------------------------------------------
# Clinic profile (wire format is the setup screen's camelCase JSON)
# ---------------------------------------------------

class ClinicServices(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    decompression: bool = False
    class_iv_laser: bool = Field(default=False, alias="classIVLaser")
    shockwave: bool = False


class ClinicProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    clinic_name: str = Field(alias="clinicName")
    doctor_name: str = Field(alias="doctorName")
    first_visit_cost: float = Field(alias="firstVisitCost", ge=0)
    address: str
    office_hours: str = Field(alias="officeHours")
    services: ClinicServices = Field(default_factory=ClinicServices)


# ---------------------------------------------------
# Modes
# ---------------------------------------------------

class Mode(str, Enum):
    EASY = "easy"
    CHALLENGING = "challenging"
    SKEPTICAL = "skeptical"
    CREEPY = "creepy"

    @classmethod
    def coerce(cls, value: Optional[str]) -> "Mode":
        # unknown or missing values fall back to the cooperative default
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return DEFAULT_MODE

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def description(self) -> str:
        return MODE_DESCRIPTIONS[self]


DEFAULT_MODE = Mode.EASY

MODE_DESCRIPTIONS: Dict[Mode, str] = {
    Mode.EASY: "Friendly, curious caller who wants information and is easy to book.",
    Mode.CHALLENGING: "Busy, distracted caller with objections about time, money, or commitment.",
    Mode.SKEPTICAL: "Questioning your methods, wants proof and reassurance before scheduling.",
    Mode.CREEPY: "Inappropriate, boundary-pushing caller. Good for teaching VAs to set boundaries.",
}


# ---------------------------------------------------
# Conversation
# ---------------------------------------------------

Speaker = Literal["staff", "patient"]


class Turn(BaseModel):
    model_config = ConfigDict(frozen=True)

    # older clients send {"role": ...}
    speaker: Speaker = Field(validation_alias=AliasChoices("speaker", "role"))
    text: str


class PipelineResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    staff_text: str = Field(alias="staffText")
    patient_text: str = Field(alias="patientText")
    audio_base64: str = Field(alias="audioBase64")
    turns: List[Turn]
