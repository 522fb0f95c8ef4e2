"""
This module provides user accounts and the per-session authentication state for Saathi.

It defines two classes:
- `AccountService`, a process-wide registry of accounts responsible for registration,
  password hashing and verification, and loading and saving the encrypted account file.
- `AuthSessionProvider`, created once per browser session, which exposes the tri-state
  authentication status, the signed-in user and `logout()`, and notifies subscribed page
  shells whenever the session changes.
"""
# saathi/auth.py

from __future__ import annotations

import hashlib
import logging
import os
import re
from typing import Callable, MutableMapping, Optional

from saathi.events import Subscribers
from saathi.exceptions import SessionResolutionError, StorageUnavailableError
from saathi.models import AuthStatus, EmergencyContact, User

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "saathi_username"
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,32}$")


def _hash_password(salt: str, password: str) -> str:
    return hashlib.sha256((salt + password).encode()).hexdigest()


class AccountService:
    """Manages registered accounts stored in the encrypted account file."""

    def __init__(self, storage):
        """Initializes the service and loads the account file.

        Args:
            storage: An `EncryptedJSONFile` holding `{"users": {...}}`.
        """
        self._storage = storage
        self._data = self._load_data()

    def _load_data(self):
        """Loads the account document, starting fresh if it cannot be read.

        Returns:
            dict: The loaded data with a `users` mapping.
        """
        try:
            data = self._storage.load()
        except StorageUnavailableError as e:
            logger.warning("Could not load account data (%s). Starting with no accounts.", e)
            data = {}
        if not isinstance(data.get("users"), dict):
            data["users"] = {}
        return data

    def _save_data(self):
        """Persists the account document.

        Raises:
            StorageUnavailableError: If the account file cannot be written.
        """
        self._storage.save(self._data)

    def register_user(self, username, password, full_name, contact_name="", contact_phone=""):
        """Registers a new account.

        Args:
            username (str): The chosen username.
            password (str): The plaintext password.
            full_name (str): The user's full name.
            contact_name (str): Optional emergency contact name.
            contact_phone (str): Optional emergency contact phone number.

        Returns:
            str or bool: 'invalid_username', 'weak_password', True for success, or False if
            the username is taken.
        """
        if not USERNAME_PATTERN.match(username or ""):
            return 'invalid_username'
        if not self._is_strong_password(password):
            return 'weak_password'

        users = self._data['users']
        if username in users:
            return False

        # Hash the password with a unique salt.
        salt = os.urandom(16).hex()
        users[username] = {
            'username': username,
            'password_hash': _hash_password(salt, password),
            'salt': salt,
            'full_name': full_name,
            'emergency_contact': _contact_record(contact_name, contact_phone),
        }
        self._save_data()
        logger.info("Registered account %s", username)
        return True

    def _is_strong_password(self, password: str) -> bool:
        """Checks if a password meets the defined strength criteria."""
        if len(password or "") < 8:
            return False
        has_upper = any(c.isupper() for c in password)
        has_lower = any(c.islower() for c in password)
        has_digit = any(c.isdigit() for c in password)
        has_special = any(not c.isalnum() for c in password)
        return has_upper and has_lower and has_digit and has_special

    def login(self, username, password):
        """Verifies credentials.

        Returns:
            User or str or None: The authenticated User, 'error' if the stored record is
            corrupt, or None if authentication fails.
        """
        user_data = self._data['users'].get(username)
        if not user_data:
            return None

        salt = user_data.get('salt')
        if not salt:
            return 'error'  # Indicates a data integrity issue.

        if user_data.get('password_hash') == _hash_password(salt, password):
            return _user_from_record(user_data)
        return None

    def get_user(self, username) -> Optional[User]:
        """Returns the `User` for `username`, or None if no such account exists."""
        user_data = self._data['users'].get(username)
        if not user_data:
            return None
        return _user_from_record(user_data)

    def update_emergency_contact(self, username, contact_name, contact_phone) -> bool:
        """Saves (or clears, when both fields are blank) a user's emergency contact.

        Returns:
            bool: True if the account exists and was updated.
        """
        user_data = self._data['users'].get(username)
        if not user_data:
            return False
        user_data['emergency_contact'] = _contact_record(contact_name, contact_phone)
        self._save_data()
        return True


def _contact_record(name, phone):
    name = (name or "").strip()
    phone = (phone or "").strip()
    if not name or not phone:
        return None
    return {"name": name, "phone": phone}


def _user_from_record(user_data) -> User:
    contact = user_data.get('emergency_contact')
    emergency_contact = None
    if isinstance(contact, dict) and contact.get('name') and contact.get('phone'):
        emergency_contact = EmergencyContact(contact['name'], contact['phone'])
    return User(
        username=user_data['username'],
        password_hash=user_data['password_hash'],
        full_name=user_data.get('full_name'),
        emergency_contact=emergency_contact,
    )


class AuthSessionProvider:
    """Authentication state for one browser session.

    The status starts as `AuthStatus.UNKNOWN` and only becomes AUTHENTICATED or
    UNAUTHENTICATED once `resolve()`, `login()` or `logout()` runs. Page shells treat
    UNKNOWN as "still loading" and never redirect on it.
    """

    def __init__(self, accounts: AccountService, session: MutableMapping):
        """
        Args:
            accounts: The shared account registry.
            session: Per-browser mapping that remembers the signed-in username
                (`st.session_state` in the app, a dict in tests).
        """
        self._accounts = accounts
        self._session = session
        self._status = AuthStatus.UNKNOWN
        self._user: Optional[User] = None
        self._subscribers = Subscribers()

    @property
    def accounts(self) -> AccountService:
        return self._accounts

    @property
    def status(self) -> AuthStatus:
        return self._status

    @property
    def is_authenticated(self) -> Optional[bool]:
        """True or False once resolved, None while the session is still unresolved."""
        if self._status is AuthStatus.UNKNOWN:
            return None
        return self._status is AuthStatus.AUTHENTICATED

    @property
    def user(self) -> Optional[User]:
        return self._user

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self._subscribers.subscribe(callback)

    def resolve(self) -> AuthStatus:
        """Restores the session remembered for this browser, if any.

        Any failure resolves to UNAUTHENTICATED; the status is never left UNKNOWN.
        """
        if self._status is not AuthStatus.UNKNOWN:
            return self._status
        user = None
        username = self._session.get(SESSION_USER_KEY)
        if username:
            try:
                user = self._restore(username)
            except SessionResolutionError as exc:
                logger.warning("Discarding stored session: %s", exc)
                self._session.pop(SESSION_USER_KEY, None)
        self._set_user(user)
        return self._status

    def _restore(self, username) -> User:
        user = self._accounts.get_user(username)
        if user is None:
            raise SessionResolutionError(f"No account named {username!r}")
        return user

    def login(self, username, password):
        """Signs a user in.

        Returns:
            User or str or None: The result of `AccountService.login`.
        """
        result = self._accounts.login(username, password)
        if isinstance(result, User):
            self._session[SESSION_USER_KEY] = result.username
            self._set_user(result)
        return result

    def logout(self) -> None:
        """Clears the session. Calling it again has no further effect."""
        self._session.pop(SESSION_USER_KEY, None)
        if self._status is AuthStatus.UNAUTHENTICATED:
            return
        self._set_user(None)

    def update_emergency_contact(self, contact_name, contact_phone) -> bool:
        """Saves the signed-in user's emergency contact and refreshes `user`."""
        if self._user is None:
            return False
        try:
            updated = self._accounts.update_emergency_contact(self._user.username, contact_name, contact_phone)
        except StorageUnavailableError as exc:
            logger.warning("Emergency contact not saved: %s", exc)
            return False
        if updated:
            self._user = self._accounts.get_user(self._user.username)
            self._subscribers.notify()
        return updated

    def _set_user(self, user: Optional[User]) -> None:
        self._user = user
        self._status = AuthStatus.AUTHENTICATED if user else AuthStatus.UNAUTHENTICATED
        if user:
            logger.info("Session authenticated for %s", user.username)
        else:
            logger.info("Session unauthenticated")
        self._subscribers.notify()
