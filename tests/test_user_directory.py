# tests/test_user_directory.py
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from backend.lib.dynamodb_service import DynamoDBService
from backend.lib.user_directory import (
    CredentialVerifier,
    DynamoUserDirectory,
    LocalUserDirectory,
    UserExistsError,
)


def test_signup_then_verify(tmp_path):
    directory = LocalUserDirectory(tmp_path)
    user = directory.create_user(" Asha ", "Asha@Example.com", "s3cret")
    assert user.name == "Asha"
    assert user.email == "asha@example.com"
    assert user.password_hash != "s3cret"

    verifier = CredentialVerifier(directory)
    assert verifier.verify("asha@example.com", "s3cret") is True
    assert verifier.verify("asha@example.com", "wrong") is False
    assert verifier.verify("nobody@example.com", "s3cret") is False


def test_duplicate_email_is_rejected(tmp_path):
    directory = LocalUserDirectory(tmp_path)
    directory.create_user("Asha", "asha@example.com", "one")
    with pytest.raises(UserExistsError):
        directory.create_user("Other", " ASHA@example.com", "two")


def test_users_survive_a_new_directory_instance(tmp_path):
    LocalUserDirectory(tmp_path).create_user("Asha", "asha@example.com", "s3cret")
    user = LocalUserDirectory(tmp_path).find_user("asha@example.com")
    assert user is not None
    assert user.name == "Asha"


def test_dynamo_directory_delegates_to_service():
    service = MagicMock()
    service.get_user.return_value = None
    service.put_user.return_value = True
    directory = DynamoUserDirectory(service)

    user = directory.create_user("Asha", "Asha@example.com", "s3cret")
    service.put_user.assert_called_once_with(user)

    service.get_user.return_value = {"name": "Asha", "email": "asha@example.com",
                                     "password_hash": user.password_hash}
    assert CredentialVerifier(directory).verify("asha@example.com", "s3cret") is True
    with pytest.raises(UserExistsError):
        directory.create_user("Asha", "asha@example.com", "again")
