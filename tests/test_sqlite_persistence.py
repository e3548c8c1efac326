from datetime import datetime, timedelta, timezone

import pytest

from schoolhub.domain.errors import ConflictError
from schoolhub.domain.models import Account, ApiToken
from schoolhub.infrastructure.persistence.migrations import MIGRATIONS, current_version
from schoolhub.infrastructure.persistence.sqlite import SQLitePersistence


def _token(token_id: str, created_by: str, created_at: datetime) -> ApiToken:
    return ApiToken(
        id=token_id,
        token=f"signed-{token_id}-value",
        description="Grading sync",
        created_by=created_by,
        created_at=created_at,
        expiration="30d",
        system="grading",
        user_type="teacher",
        role="user",
    )


@pytest.fixture
def persistence(tmp_path):
    store = SQLitePersistence(tmp_path / "store.db")
    yield store
    store.close()


def test_migrations_bring_schema_to_latest_version(persistence):
    assert current_version(persistence._conn) == len(MIGRATIONS)


def test_account_survives_reopen(tmp_path):
    path = tmp_path / "reopen.db"
    expires = datetime(2030, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    store = SQLitePersistence(path)
    store.create_account(
        Account(
            id="acc-1",
            email="Teacher@School.Edu.Ph",
            password_hash="hash",
            access_type="trial",
            trial_days=3,
            expires_at=expires,
            email_sent=True,
        )
    )
    store.close()

    reopened = SQLitePersistence(path)
    account = reopened.get_account_by_email("teacher@school.edu.ph")
    reopened.close()

    assert account is not None
    assert account.email == "teacher@school.edu.ph"
    assert account.expires_at == expires
    assert account.trial_days == 3
    assert account.email_sent is True
    assert account.is_disabled is False


def test_duplicate_email_is_a_conflict(persistence):
    persistence.create_account(Account(id="a", email="dup@school.edu.ph", password_hash="h"))
    with pytest.raises(ConflictError):
        persistence.create_account(Account(id="b", email="DUP@school.edu.ph", password_hash="h"))


def test_tokens_are_listed_newest_first_and_counted_per_day(persistence):
    now = datetime.now(timezone.utc).replace(microsecond=0)
    persistence.create_token(_token("old", "t@school.edu.ph", now - timedelta(days=2)))
    persistence.create_token(_token("mid", "t@school.edu.ph", now - timedelta(minutes=5)))
    persistence.create_token(_token("new", "t@school.edu.ph", now))
    persistence.create_token(_token("other", "o@school.edu.ph", now))

    tokens = persistence.list_tokens_by_creator("t@school.edu.ph")
    assert [token.id for token in tokens] == ["new", "mid", "old"]
    assert persistence.count_tokens_created_since("t@school.edu.ph", now - timedelta(hours=1)) == 2

    assert persistence.delete_tokens_by_creator("t@school.edu.ph") == 3
    assert persistence.list_tokens_by_creator("t@school.edu.ph") == []
    assert persistence.get_token("other") is not None


def test_update_token_system(persistence):
    persistence.create_token(_token("tok", "t@school.edu.ph", datetime.now(timezone.utc)))
    updated = persistence.update_token_system("tok", "evaluation")
    assert updated.system == "evaluation"
    assert persistence.update_token_system("missing", "grading") is None
