from types import SimpleNamespace

import pytest
from firebase_admin import auth

from schoolhub.domain.errors import AccountExistsError, DirectoryUnavailableError
from schoolhub.infrastructure.credentials import firebase_directory
from schoolhub.infrastructure.credentials.firebase_directory import (
    FirebaseCredentialDirectory,
    NullCredentialDirectory,
    build_credential_directory,
    load_certificate,
)


@pytest.fixture
def directory(monkeypatch):
    users = {}
    calls = []

    def get_user_by_email(email, app=None):
        if email not in users:
            raise auth.UserNotFoundError("no user")
        return SimpleNamespace(uid=users[email])

    def import_users(records, hash_alg=None, app=None):
        calls.append(("import", records, hash_alg))
        for record in records:
            users[record.email] = record.uid
        return SimpleNamespace(failure_count=0, errors=[])

    def delete_user(uid, app=None):
        calls.append(("delete", uid))
        raise auth.UserNotFoundError("already gone")

    fake_auth = SimpleNamespace(
        get_user_by_email=get_user_by_email,
        import_users=import_users,
        delete_user=delete_user,
        update_user=lambda uid, disabled=None, app=None: calls.append(("update", uid, disabled)),
        UserNotFoundError=auth.UserNotFoundError,
        ImportUserRecord=auth.ImportUserRecord,
        UserImportHash=auth.UserImportHash,
    )
    monkeypatch.setattr(firebase_directory, "auth", fake_auth)

    instance = FirebaseCredentialDirectory.__new__(FirebaseCredentialDirectory)
    instance._app = None
    return instance, users, calls


def test_create_account_imports_bcrypt_hash(directory):
    instance, users, calls = directory

    uid = instance.create_account("teacher@school.edu.ph", "$2b$12$abcdefghijklmnopqrstuv")

    assert users["teacher@school.edu.ph"] == uid
    _, records, _ = calls[0]
    assert records[0].password_hash == b"$2b$12$abcdefghijklmnopqrstuv"
    assert instance.find_uid("teacher@school.edu.ph") == uid

    with pytest.raises(AccountExistsError) as excinfo:
        instance.create_account("teacher@school.edu.ph", "$2b$12$abcdefghijklmnopqrstuv")
    assert excinfo.value.uid == uid


def test_unknown_users_and_repeated_deletes(directory):
    instance, _, calls = directory

    assert instance.find_uid("nobody@school.edu.ph") is None
    instance.delete_account("uid-gone")
    instance.set_disabled("uid-1", True)

    assert ("delete", "uid-gone") in calls
    assert ("update", "uid-1", True) in calls


def test_null_directory_is_reported_unavailable():
    directory = build_credential_directory(None)
    assert isinstance(directory, NullCredentialDirectory)
    with pytest.raises(DirectoryUnavailableError):
        directory.find_uid("teacher@school.edu.ph")


def test_load_certificate_rejects_bad_sources(tmp_path):
    with pytest.raises(RuntimeError):
        load_certificate("{not json")
    with pytest.raises(RuntimeError):
        load_certificate(str(tmp_path / "missing.json"))
