"""
Operator account directory and login session.

The directory owns every AdminAccount and the single current Session.
Unauthenticated is the normal, customer-facing mode of the shop; logging in
unlocks the operator operations of the queue engine, which asks the
directory through require_operator().

Self-protection rules live here, not in the UI:
    - the 'admin' account can never be deleted
    - the logged-in operator cannot delete their own account, nor change
      their own secret through the directory

Secrets are compared verbatim unless hashing is enabled, in which case
they are stored as werkzeug password hashes.

Thread Safety:
    All public methods run under a single threading.RLock.
"""

from __future__ import annotations

import json
import threading
from typing import Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from core.exceptions import NotAuthorizedError
from models.account import AdminAccount, Session, ADMIN_USERNAME, normalize_username
from models.results import AccountResult
from services.defaults import default_accounts
from services.storage import KeyValueStore, ADMIN_USERS_KEY
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class AdminDirectory:
    """
    Credential store and session holder.

    Attributes:
        current_session: The logged-in operator, or None
    """

    def __init__(
        self,
        store: KeyValueStore,
        admin_secret: str = "admin",
        hash_secrets: bool = False,
    ):
        """
        Initialize an empty directory. Call load() before use.

        Args:
            store: Persistence collaborator
            admin_secret: Secret of the built-in 'admin' account when the
                store holds no accounts yet
            hash_secrets: Store new secrets as password hashes
        """
        self._store = store
        self._admin_secret = admin_secret
        self._hash_secrets = hash_secrets

        self._accounts: Dict[str, AdminAccount] = {}
        self._session: Optional[Session] = None
        self._lock = threading.RLock()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def load(self) -> None:
        """Read accounts from the store, falling back to the default 'admin'."""
        accounts = self._read_accounts()
        if accounts is None:
            accounts = [self._encode(a) for a in default_accounts(self._admin_secret)]
            logger.info("Using default operator account")

        with self._lock:
            self._accounts = {account.key: account for account in accounts}
            if ADMIN_USERNAME not in self._accounts:
                logger.warning("Stored accounts lacked 'admin', restoring it")
                admin = default_accounts(self._admin_secret)[0]
                self._accounts[ADMIN_USERNAME] = self._encode(admin)
            self._session = None
            self._save()

        logger.info(f"Admin directory loaded with {len(self._accounts)} accounts")

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def authenticate(self, username: str, secret: str) -> Optional[Session]:
        """
        Check a credential pair without starting a session.

        Returns:
            A Session for the matching account, or None
        """
        if not username or not secret:
            return None

        with self._lock:
            account = self._accounts.get(normalize_username(username))
            if account is None or not self._matches(account, secret):
                return None
            return Session.start(account.username)

    def login(self, username: str, secret: str) -> Optional[Session]:
        session = self.authenticate(username, secret)
        with self._lock:
            if session is None:
                logger.warning(f"Failed login for '{username}'")
                return None
            self._session = session
        logger.info(f"Operator '{session.username}' logged in")
        return session

    def logout(self) -> None:
        with self._lock:
            if self._session is not None:
                logger.info(f"Operator '{self._session.username}' logged out")
            self._session = None

    def require_operator(self, operation: str) -> Session:
        """
        Return the active session or refuse the operation.

        Raises:
            NotAuthorizedError: If nobody is logged in
        """
        session = self._session
        if session is None:
            raise NotAuthorizedError(operation)
        return session

    # =========================================================================
    # ACCOUNT MANAGEMENT
    # =========================================================================

    def list_accounts(self) -> List[str]:
        with self._lock:
            return sorted((a.username for a in self._accounts.values()), key=str.lower)

    def create_account(self, username: str, secret: str) -> AccountResult:
        self.require_operator("create_account")
        username = (username or "").strip()
        if not username or not secret:
            return AccountResult.invalid("Username and password cannot be empty.")

        with self._lock:
            key = normalize_username(username)
            if key in self._accounts:
                return AccountResult.conflict("Username already exists.")
            account = self._encode(AdminAccount(username=username, credential_secret=secret))
            self._accounts[key] = account
            self._save()

        logger.info(f"Created operator account '{username}'")
        return AccountResult.success(f"User '{username}' created.")

    def delete_account(self, username: str) -> AccountResult:
        key = normalize_username(username)
        if key == ADMIN_USERNAME:
            return AccountResult.conflict("The 'admin' user cannot be deleted.")

        session = self.require_operator("delete_account")
        if session.is_for(username):
            return AccountResult.conflict("You cannot delete your own account.")

        with self._lock:
            if key not in self._accounts:
                return AccountResult.not_found("User not found.")
            removed = self._accounts.pop(key)
            self._save()

        logger.info(f"Deleted operator account '{removed.username}'")
        return AccountResult.success(f"User '{removed.username}' deleted.")

    def rotate_secret(self, username: str, new_secret: str) -> AccountResult:
        session = self.require_operator("rotate_secret")
        if session.is_for(username):
            return AccountResult.conflict("You cannot edit your own account here.")
        if not new_secret:
            return AccountResult.invalid("Password cannot be empty.")

        with self._lock:
            key = normalize_username(username)
            account = self._accounts.get(key)
            if account is None:
                return AccountResult.not_found("User not found.")
            self._accounts[key] = self._encode(
                AdminAccount(username=account.username, credential_secret=new_secret)
            )
            self._save()

        logger.info(f"Rotated secret for operator account '{account.username}'")
        return AccountResult.success(f"Password for '{account.username}' updated.")

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _encode(self, account: AdminAccount) -> AdminAccount:
        if not self._hash_secrets:
            return account
        return AdminAccount(
            username=account.username,
            credential_secret=generate_password_hash(account.credential_secret),
        )

    def _matches(self, account: AdminAccount, secret: str) -> bool:
        if self._hash_secrets:
            return check_password_hash(account.credential_secret, secret)
        return account.credential_secret == secret

    def _read_accounts(self) -> Optional[List[AdminAccount]]:
        blob = self._store.get(ADMIN_USERS_KEY)
        if blob is None:
            return None
        try:
            data = json.loads(blob)
            accounts = [AdminAccount.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse stored accounts, resetting to default: {e}")
            return None
        return accounts or None

    def _save(self) -> None:
        blob = json.dumps([a.to_dict() for a in self._accounts.values()])
        try:
            self._store.set(ADMIN_USERS_KEY, blob)
        except Exception as e:
            logger.error(f"Could not save accounts: {e}")
