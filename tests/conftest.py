# tests/conftest.py
import pytest

import backend.app as app_module
from backend.lib.record_store import LocalRecordStore
from backend.lib.user_directory import CredentialVerifier, LocalUserDirectory


@pytest.fixture
def app_module_local(tmp_path, monkeypatch):
    """The Flask app wired to local stores in a temp dir, with AWS switched off."""
    directory = LocalUserDirectory(tmp_path)
    monkeypatch.setattr(app_module, "record_store", LocalRecordStore(tmp_path))
    monkeypatch.setattr(app_module, "user_directory", directory)
    monkeypatch.setattr(app_module, "credential_verifier", CredentialVerifier(directory))
    monkeypatch.setattr(app_module, "USE_SNS", False)
    monkeypatch.setattr(app_module, "sns_service", None)
    monkeypatch.setattr(app_module, "USE_S3", False)
    monkeypatch.setattr(app_module, "s3_service", None)
    monkeypatch.setattr(app_module, "DEFAULT_RATE", 8.0)
    monkeypatch.setattr(app_module, "alerted_months", set())
    return app_module


@pytest.fixture
def client(app_module_local):
    app_module_local.app.config["TESTING"] = True
    with app_module_local.app.test_client() as c:
        yield c
