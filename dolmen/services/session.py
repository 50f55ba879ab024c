"""
Admin session resolver.

Decides whether the current caller is a signed-in admin:

    unauthenticated -> authenticating -> authenticated-admin
                                      -> authenticated-non-admin

Resolution runs at mount and again on every identity-provider event. A
resolution that outlasts the timeout settles on non-admin, so the panel
never stays in its loading view.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Set, Union

from dolmen.core.exceptions import IdentityProviderError, StoreError
from dolmen.schemas.auth import AdminStatus, Identity
from dolmen.services.gateways import AdminDirectory, IdentityProvider

logger = logging.getLogger(__name__)

DEFAULT_RESOLUTION_TIMEOUT = 10.0

StatusListener = Callable[[AdminStatus], Union[None, Awaitable[None]]]


class SessionResolver:
    """Owns the admin status; the only way it changes is through here."""

    def __init__(
        self,
        identity_provider: IdentityProvider,
        admin_directory: AdminDirectory,
        timeout: float = DEFAULT_RESOLUTION_TIMEOUT,
    ):
        self._identity_provider = identity_provider
        self._admin_directory = admin_directory
        self.timeout = timeout

        self.status = AdminStatus.UNAUTHENTICATED
        self.identity: Optional[Identity] = None
        self.resolved = False
        self.timed_out = False

        self._listeners: List[StatusListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def is_admin(self) -> bool:
        return self.status is AdminStatus.ADMIN

    def add_listener(self, listener: StatusListener) -> None:
        """Register a callback (sync or async) run after every status change."""
        self._listeners.append(listener)

    async def _set_status(self, status: AdminStatus, identity: Optional[Identity]) -> None:
        changed = status is not self.status
        self.status = status
        self.identity = identity
        if not changed:
            return
        logger.debug(f"Admin status -> {status.value}")
        for listener in list(self._listeners):
            result = listener(status)
            if inspect.isawaitable(result):
                await result

    async def _check_membership(self, identity: Identity) -> AdminStatus:
        await self._set_status(AdminStatus.AUTHENTICATING, identity)
        if not identity.email:
            return AdminStatus.NON_ADMIN
        try:
            found = await self._admin_directory.is_admin(identity.email)
        except StoreError as exc:
            logger.error(f"Admin membership lookup failed for {identity.email}: {exc.message}")
            return AdminStatus.NON_ADMIN
        except Exception:
            logger.exception(f"Unexpected error checking admin membership for {identity.email}")
            return AdminStatus.NON_ADMIN
        return AdminStatus.ADMIN if found else AdminStatus.NON_ADMIN

    async def _lookup(self, identity: Optional[Identity], use_provider: bool) -> AdminStatus:
        if use_provider:
            identity = await self._identity_provider.get_current_identity()
        if identity is None:
            self.identity = None
            return AdminStatus.UNAUTHENTICATED
        return await self._check_membership(identity)

    async def _run(self, identity: Optional[Identity] = None, use_provider: bool = True) -> AdminStatus:
        self.timed_out = False
        try:
            status = await asyncio.wait_for(
                self._lookup(identity, use_provider), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Admin status not resolved within {self.timeout}s, falling back to non-admin"
            )
            self.timed_out = True
            status = AdminStatus.NON_ADMIN
        except IdentityProviderError as exc:
            logger.error(f"Identity provider error: {exc.message}")
            self.resolved = True
            await self._set_status(AdminStatus.UNAUTHENTICATED, None)
            raise

        self.resolved = True
        await self._set_status(status, self.identity if status is not AdminStatus.UNAUTHENTICATED else None)
        return status

    async def resolve(self) -> AdminStatus:
        """
        Query the identity provider, then admin membership.

        Raises:
            IdentityProviderError: the provider failed for a reason other
                than "no session". The status is already unauthenticated.
        """
        return await self._run()

    async def apply_identity(self, identity: Optional[Identity]) -> AdminStatus:
        """Re-drive the machine from an identity pushed by the provider."""
        return await self._run(identity, use_provider=False)

    def start(self) -> None:
        """Follow identity-provider sign-in/sign-out events."""
        if self._unsubscribe is None:
            self._unsubscribe = self._identity_provider.on_identity_change(self._on_identity_change)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in self._pending:
            task.cancel()
        self._pending.clear()

    def _on_identity_change(self, event: str, identity: Optional[Identity]) -> None:
        logger.info(f"Identity event {event}")
        task = asyncio.get_running_loop().create_task(self.apply_identity(identity))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_idle(self) -> None:
        """Wait for re-resolutions triggered by identity events."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def sign_out(self) -> None:
        await self._identity_provider.sign_out()
        self.resolved = True
        await self._set_status(AdminStatus.UNAUTHENTICATED, None)
