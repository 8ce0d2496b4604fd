"""User accounts.

Identities come from the external authentication provider; the account
record (profile fields, library lists) lives in the local store and is
mirrored by the sync coordinator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import structlog

from studyhub.core.entities import AccountRole, AppRole, UserAccount, utc_now
from studyhub.db.local_store import LocalStore
from studyhub.utils.validators import validate_email

if TYPE_CHECKING:
    from studyhub.sync.coordinator import SyncCoordinator

logger = structlog.get_logger(__name__)

PROFILE_FIELDS = frozenset(
    {
        "name",
        "age",
        "account_role",
        "district",
        "reason",
        "school_name",
        "current_grade",
        "bio",
        "profile_pic",
        "is_public",
        "terms_accepted",
    }
)


class AccountNotFoundError(LookupError):
    """Raised when a user id has no local account."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Account not found: {user_id}")


@dataclass
class AuthIdentity:
    """A signed-in identity as delivered by the authentication provider."""

    uid: str
    email: str
    display_name: str = ""


class AuthProvider(Protocol):
    def sign_out(self) -> None: ...


def is_profile_complete(account: UserAccount) -> bool:
    return bool(
        account.name
        and account.district
        and account.current_grade
        and account.terms_accepted
    )


class AccountService:
    def __init__(
        self,
        store: LocalStore,
        admin_emails: list[str] | None = None,
        coordinator: SyncCoordinator | None = None,
        provider: AuthProvider | None = None,
    ):
        self.store = store
        self.admin_emails = {e.lower() for e in admin_emails or []}
        self.coordinator = coordinator
        self.provider = provider

    def get(self, user_id: str) -> UserAccount:
        account = self.store.get("users", user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

    def list_accounts(self) -> list[UserAccount]:
        return self.store.get_all("users")

    def _role_for(self, email: str) -> AppRole:
        return AppRole.ADMIN if email.lower() in self.admin_emails else AppRole.USER

    async def sign_in(self, identity: AuthIdentity) -> UserAccount:
        """Create the account on first sign-in, else refresh last_login.

        Starts a sync session when a coordinator is attached.
        """
        if not validate_email(identity.email):
            raise ValueError(f"Invalid email: {identity.email!r}")

        account = self.store.get("users", identity.uid)
        if account is None:
            now = utc_now()
            account = UserAccount(
                id=identity.uid,
                email=identity.email,
                name=identity.display_name,
                role=self._role_for(identity.email),
                date_joined=now,
                last_login=now,
            )
            logger.info("accounts.created", user_id=account.id, role=account.role.value)
        else:
            account.last_login = utc_now()
            account.role = self._role_for(account.email)
        self.store.upsert("users", account)

        if self.coordinator is not None:
            await self.coordinator.on_login(account.id)
        return account

    def update_profile(self, user_id: str, **fields: Any) -> UserAccount:
        """Write profile fields locally and recompute completeness.

        Raises:
            ValueError: Unknown field or invalid value
            AccountNotFoundError: Unknown user
        """
        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

        account = self.get(user_id)
        for name, value in fields.items():
            if name == "account_role" and value is not None:
                value = AccountRole(value)
            elif name == "age" and value is not None:
                value = int(value)
                if value <= 0:
                    raise ValueError(f"Invalid age: {value}")
            setattr(account, name, value)

        account.is_profile_complete = is_profile_complete(account)
        self.store.upsert("users", account)
        logger.info(
            "accounts.profile_updated",
            user_id=user_id,
            fields=sorted(fields),
            complete=account.is_profile_complete,
        )
        return account

    def sign_out(self) -> None:
        if self.provider is not None:
            self.provider.sign_out()
        if self.coordinator is not None:
            self.coordinator.on_logout()

    def delete_account(self, user_id: str) -> bool:
        return self.store.delete_user(user_id)
