# voice/llm.py
# build the patient persona prompt + query LLM
import logging
from typing import Dict, List, Optional

import ollama

from calltrainer import config
from calltrainer.models import ClinicProfile, Mode, Turn

logger = logging.getLogger(__name__)

# used when the model hands back nothing
FILLER_REPLY = "..."

# -----System Prompt pieces-----

# (flag, phrase) in the order they are listed to the model
SERVICE_PHRASES = (
    ("decompression", "decompression"),
    ("class_iv_laser", "Class IV laser"),
    ("shockwave", "shockwave"),
)

MODE_BEHAVIOR: Dict[Mode, str] = {
    Mode.EASY: "cooperative. You are ready to book and raise almost no objections.",
    Mode.CHALLENGING: "asks more questions about cost, insurance, and time before agreeing to anything.",
    Mode.SKEPTICAL: "lots of objections about cost, x-rays, and whether treatment is effective.",
    Mode.CREEPY: "mildly inappropriate, but never explicit or abusive (tests the staff member's boundaries).",
}

general_rules_prompt = """
General rules:
- Keep replies short (1-2 sentences).
- Natural tone, like a real person on the phone.
- Intent: schedule an appointment.
- Ask realistic questions about cost, insurance, visit length, "will this work".
- Staff leads, you respond.
- NO explicit or graphic content.
"""

# -----functions-----

def format_price(amount: float) -> str:
    # 75.0 -> "$75", 79.5 -> "$79.50"
    if float(amount).is_integer():
        return f"${int(amount)}"
    return f"${amount:.2f}"


def services_text(profile: ClinicProfile) -> str:
    services = ["chiropractic"]
    for flag, phrase in SERVICE_PHRASES:
        if getattr(profile.services, flag):
            services.append(phrase)
    return ", ".join(services)


def build_patient_system_prompt(profile: ClinicProfile, mode) -> str:
    """
    Deterministic system prompt for the simulated caller.

    `mode` may be a Mode or any raw string; unknown values behave
    exactly like the default mode.
    """
    mode = mode if isinstance(mode, Mode) else Mode.coerce(mode)

    clinic_details = f"""
You are simulating a new patient calling a chiropractic office.

Clinic details:
- Name: {profile.clinic_name}
- Doctor: {profile.doctor_name}
- First visit cost: {format_price(profile.first_visit_cost)}
- Address: {profile.address}
- Office hours: {profile.office_hours}
- Services: {services_text(profile)}.
"""

    mode_behavior = f"""
Mode behavior ({mode.value}): {MODE_BEHAVIOR[mode]}

Respond ONLY with what the patient says next.
"""
    return (clinic_details + general_rules_prompt + mode_behavior).strip()


def to_chat_messages(system_prompt: str, turns: List[Turn]) -> List[Dict[str, str]]:
    # staff is the one calling in the model's eyes ("user"), the patient is the model
    messages = [{"role": "system", "content": system_prompt}]
    for t in turns:
        role = "user" if t.speaker == "staff" else "assistant"
        messages.append({"role": role, "content": t.text})
    return messages


class OllamaReplyGenerator:
    """
    Patient reply generation through a local Ollama server.
    """

    def __init__(
        self,
        model: str = config.LLM_MODEL,
        host: str = config.OLLAMA_HOST,
        temperature: float = config.LLM_TEMPERATURE,
        timeout: Optional[float] = config.STAGE_TIMEOUT_SECONDS,
    ):
        self.model = model
        self.temperature = temperature
        self.client = ollama.Client(host=host, timeout=timeout)

    def generate(self, messages: List[Dict[str, str]]) -> str:
        # get response from LLM
        response = self.client.chat(
            model=self.model,
            messages=messages,
            options={"temperature": self.temperature},
        )
        reply = response["message"]["content"]
        if reply is not None and not isinstance(reply, str):
            raise TypeError(f"unexpected content type from LLM: {type(reply).__name__}")

        logger.debug("[LLM] model=%s reply=%r", self.model, reply)
        return reply or ""
