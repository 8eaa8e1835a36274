"""
=============================================================================
USER DIRECTORY - Signup and credential checks
=============================================================================
Users are keyed by their normalized e-mail (the same owner key that usage
records carry). Passwords are stored as salted hashes produced by
werkzeug.security, which ships with Flask.

Two directories share one interface:
- LocalUserDirectory: a JSON file (<data_dir>/users.json)
- DynamoUserDirectory: the Users table via DynamoDBService

CredentialVerifier is what the login route talks to, so nothing outside
this module knows how secrets are stored or compared.
=============================================================================
"""

import json
from pathlib import Path
from typing import Optional

from botocore.exceptions import ClientError
from werkzeug.security import check_password_hash, generate_password_hash

from backend.lib.home_energy_core.io import normalize_owner_key
from backend.lib.home_energy_core.models import User


class UserExistsError(ValueError):
    pass


class LocalUserDirectory:
    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.data_dir / "users.json"

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def find_user(self, email: str) -> Optional[User]:
        obj = self._load().get(normalize_owner_key(email))
        if obj is None:
            return None
        return User(name=obj["name"], email=obj["email"], password_hash=obj["password_hash"])

    def create_user(self, name: str, email: str, password: str) -> User:
        users = self._load()
        key = normalize_owner_key(email)
        if key in users:
            raise UserExistsError("Email already registered")
        user = User(name=name.strip(), email=key, password_hash=generate_password_hash(password))
        users[key] = {"name": user.name, "email": user.email, "password_hash": user.password_hash}
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(users, f, indent=2)
        return user


class DynamoUserDirectory:
    def __init__(self, dynamodb_service):
        self.service = dynamodb_service

    def find_user(self, email: str) -> Optional[User]:
        item = self.service.get_user(normalize_owner_key(email))
        if item is None:
            return None
        return User(name=item["name"], email=item["email"], password_hash=item["password_hash"])

    def create_user(self, name: str, email: str, password: str) -> User:
        key = normalize_owner_key(email)
        user = User(name=name.strip(), email=key, password_hash=generate_password_hash(password))
        try:
            stored = self.service.put_user(user)
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise UserExistsError("Email already registered") from e
            raise
        if not stored:
            raise RuntimeError("Failed to store user")
        return user


class CredentialVerifier:
    def __init__(self, directory):
        self.directory = directory

    def verify(self, owner_key: str, secret: str) -> bool:
        user = self.directory.find_user(owner_key)
        if user is None:
            return False
        return check_password_hash(user.password_hash, secret)
