"""Account link store operations."""

import logging

from oidclogin.domain.auth.model.account_link import AccountLink
from oidclogin.domain.auth.port.repository import AccountLinkRepository
from oidclogin.domain.shared.service import Service

logger = logging.getLogger(__name__)


class AccountLinkService(Service):
    """Creates, looks up and removes links between local users and remote subjects.

    Duplicate inserts are reported as "already linked" rather than raised; the
    storage constraints are what serialize concurrent first-link attempts.
    """

    _link_repo: AccountLinkRepository

    async def find_by_remote(self, provider: str, remote_user_id: str) -> AccountLink | None:
        return await self._link_repo.get_by_remote(provider, remote_user_id)

    async def find_for_user(self, login: str, provider: str) -> AccountLink | None:
        return await self._link_repo.get_by_login(login, provider)

    async def link(self, login: str, provider: str, remote_user_id: str) -> bool:
        """Insert a link if none exists.

        Returns:
            True if this call created the row, False if a conflicting row already existed
        """
        created = await self._link_repo.add(AccountLink.create(login, provider, remote_user_id))
        if created:
            logger.info(
                "Account linked: login=%s, provider=%s, remote_user_id=%s",
                login,
                provider,
                remote_user_id,
            )
        else:
            logger.debug(
                "Link insert skipped, row exists: login=%s, provider=%s, remote_user_id=%s",
                login,
                provider,
                remote_user_id,
            )
        return created

    async def unlink(self, login: str, provider: str) -> bool:
        """Remove a user's link for a provider. Removing a missing link is a no-op."""
        removed = await self._link_repo.delete(login, provider)
        if removed:
            logger.info("Account unlinked: login=%s, provider=%s", login, provider)
        return removed
