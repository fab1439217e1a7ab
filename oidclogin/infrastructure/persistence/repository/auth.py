"""SQLAlchemy repository implementations for auth domain."""

from datetime import UTC, datetime

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from oidclogin.domain.auth.model.account_link import AccountLink
from oidclogin.domain.auth.model.user import LocalUser
from oidclogin.domain.auth.port.repository import (
    AccountLinkRepository,
    UserProvisioner,
    UserRepository,
)
from oidclogin.domain.shared.error import ConflictError
from oidclogin.infrastructure.persistence.tables import account_link_table, users_table


def _row_to_link(row: dict) -> AccountLink:
    return AccountLink(
        login=row["user"],
        provider=row["provider"],
        remote_user_id=row["provider_user"],
        connected_at=row["date_connected"],
    )


def _link_to_dict(link: AccountLink) -> dict:
    return {
        "user": link.login,
        "provider": link.provider,
        "provider_user": link.remote_user_id,
        "date_connected": link.connected_at,
    }


def _row_to_user(row: dict) -> LocalUser:
    return LocalUser(
        login=row["login"],
        email=row["email"],
        superuser_access=bool(row["superuser_access"]),
        token_auth=row["token_auth"],
    )


class SQLAlchemyAccountLinkRepository(AccountLinkRepository):
    """AccountLinkRepository backed by the `account_link` table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_remote(self, provider: str, remote_user_id: str) -> AccountLink | None:
        stmt = select(account_link_table).where(
            account_link_table.c.provider == provider,
            account_link_table.c.provider_user == remote_user_id,
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return _row_to_link(dict(row)) if row else None

    async def get_by_login(self, login: str, provider: str) -> AccountLink | None:
        stmt = select(account_link_table).where(
            account_link_table.c.user == login,
            account_link_table.c.provider == provider,
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return _row_to_link(dict(row)) if row else None

    async def add(self, link: AccountLink) -> bool:
        # SAVEPOINT so a constraint violation leaves the surrounding transaction usable
        try:
            async with self.session.begin_nested():
                await self.session.execute(insert(account_link_table).values(**_link_to_dict(link)))
        except IntegrityError:
            return False
        return True

    async def delete(self, login: str, provider: str) -> bool:
        stmt = delete(account_link_table).where(
            account_link_table.c.user == login,
            account_link_table.c.provider == provider,
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0


class SQLAlchemyUserRepository(UserRepository):
    """Read side of the `users` table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, login: str) -> LocalUser | None:
        stmt = select(users_table).where(users_table.c.login == login)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return _row_to_user(dict(row)) if row else None


class SQLAlchemyUserProvisioner(UserProvisioner):
    """Creates users directly in the store, without any caller permission check."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_user(self, login: str, email: str, password: str) -> LocalUser:
        values = {
            "login": login,
            "password": password,
            "email": email,
            "superuser_access": False,
            "token_auth": None,
            "created_at": datetime.now(UTC),
        }
        try:
            async with self.session.begin_nested():
                await self.session.execute(insert(users_table).values(**values))
        except IntegrityError as e:
            raise ConflictError(f"Login already exists: {login}", code="login_taken") from e
        return LocalUser(login=login, email=email)
