# calltrainer/services/profile_store.py
from __future__ import annotations
import json
import logging
from typing import Optional, Protocol

from pydantic import ValidationError
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from calltrainer.db.create_tables import create_tables
from calltrainer.db.models import ClientSetting
from calltrainer.db.session import SessionLocal, engine
from calltrainer.models import ClinicProfile

logger = logging.getLogger(__name__)

# fixed key the setup form saves under
PROFILE_KEY = "clinicConfig"


class ProfileProvider(Protocol):
    """Where the recording session gets the clinic profile from."""

    def get_profile(self) -> Optional[ClinicProfile]: ...


class ProfileStore:
    """Durable clinic profile storage for the training client."""

    def __init__(self, bind=None):
        if bind is None:
            bind, self.session_factory = engine, SessionLocal
        else:
            self.session_factory = sessionmaker(bind=bind, autoflush=False, future=True)
        create_tables(bind=bind)

    def save_profile(self, profile: ClinicProfile) -> None:
        """Create or replace the stored profile."""
        value = profile.model_dump_json(by_alias=True)
        with self.session_factory() as s:
            row = s.get(ClientSetting, PROFILE_KEY)
            if row is None:
                s.add(ClientSetting(key=PROFILE_KEY, value=value))
            else:
                row.value = value
            s.commit()
        logger.info("Saved clinic profile for %s", profile.clinic_name)

    def load_profile(self) -> Optional[ClinicProfile]:
        with self.session_factory() as s:
            row = s.get(ClientSetting, PROFILE_KEY)
            if row is None:
                return None
            raw = row.value

        # a broken entry counts as "not configured"
        try:
            return ClinicProfile.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("Stored clinic profile is unreadable, ignoring it: %s", e)
            return None

    def clear_profile(self) -> None:
        with self.session_factory() as s:
            row = s.get(ClientSetting, PROFILE_KEY)
            if row is not None:
                s.delete(row)
                s.commit()

    # ProfileProvider
    def get_profile(self) -> Optional[ClinicProfile]:
        try:
            return self.load_profile()
        except OperationalError as e:
            logger.error("Could not read clinic profile from the database: %s", e)
            return None
