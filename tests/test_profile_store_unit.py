from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from conftest import make_profile

from calltrainer.db.models import ClientSetting
from calltrainer.services.profile_store import PROFILE_KEY, ProfileStore


def _store() -> ProfileStore:
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return ProfileStore(bind=engine)


def test_load_without_saved_profile_returns_none() -> None:
    store = _store()
    assert store.load_profile() is None
    assert store.get_profile() is None


def test_save_then_load() -> None:
    store = _store()
    profile = make_profile(firstVisitCost=49.5)
    store.save_profile(profile)
    assert store.get_profile() == profile


def test_save_replaces_existing_profile() -> None:
    store = _store()
    store.save_profile(make_profile())
    store.save_profile(make_profile(clinicName="Eastside Chiro"))
    assert store.load_profile().clinic_name == "Eastside Chiro"
    with store.session_factory() as s:
        assert s.query(ClientSetting).count() == 1


def test_profile_stored_under_fixed_key_as_wire_json() -> None:
    store = _store()
    store.save_profile(make_profile())
    with store.session_factory() as s:
        row = s.get(ClientSetting, PROFILE_KEY)
        assert '"clinicName":"Summit Spine & Wellness"' in row.value


def test_corrupt_entry_counts_as_not_configured() -> None:
    store = _store()
    with store.session_factory() as s:
        s.add(ClientSetting(key=PROFILE_KEY, value="{broken"))
        s.commit()
    assert store.get_profile() is None


def test_clear_profile() -> None:
    store = _store()
    store.save_profile(make_profile())
    store.clear_profile()
    assert store.get_profile() is None
