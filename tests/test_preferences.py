import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import ValidationError
from app.models.email_preference import EmailPreference
from app.services.email.preferences import (
    get_or_create_preferences,
    preferences_to_dict,
    should_send,
    update_preferences,
)


def test_anonymous_recipient_always_allowed(db_session):
    assert should_send(db_session, None, "newsletter") is True


def test_missing_row_allows_everything(db_session):
    assert should_send(db_session, "no-prefs-user", "reservation_confirmed") is True


def test_master_switch_blocks_every_type(db_session):
    update_preferences(db_session, "u-1", {"email_notifications": False})
    assert should_send(db_session, "u-1", "reservation_created") is False
    assert should_send(db_session, "u-1", "something_unmapped") is False


def test_type_flag_blocks_only_its_types(db_session):
    update_preferences(db_session, "u-1", {"reservation_confirmations": False})
    assert should_send(db_session, "u-1", "reservation_cancelled") is False
    assert should_send(db_session, "u-1", "newsletter") is True


def test_unmapped_type_is_allowed(db_session):
    update_preferences(db_session, "u-1", {"newsletter": False})
    assert should_send(db_session, "u-1", "contact_reply") is True


def test_lookup_failure_fails_open(db_session, monkeypatch):
    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("db down"))

    monkeypatch.setattr(db_session, "query", broken_query)
    assert should_send(db_session, "u-1", "newsletter") is True


def test_get_or_create_defaults_to_opted_in(db_session):
    prefs = get_or_create_preferences(db_session, "u-2")
    out = preferences_to_dict(prefs)
    assert all(out[k] is True for k in out if k != "digest_frequency")
    assert out["digest_frequency"] == "immediate"
    assert db_session.query(EmailPreference).count() == 1
    get_or_create_preferences(db_session, "u-2")
    assert db_session.query(EmailPreference).count() == 1


def test_update_ignores_unset_fields(db_session):
    update_preferences(db_session, "u-3", {"newsletter": False})
    prefs = update_preferences(db_session, "u-3", {"project_updates": False, "newsletter": None})
    assert prefs.newsletter is False
    assert prefs.project_updates is False


def test_invalid_digest_frequency_rejected(db_session):
    with pytest.raises(ValidationError):
        update_preferences(db_session, "u-4", {"digest_frequency": "hourly"})
