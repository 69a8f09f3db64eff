"""
Identity and family context.

The external identity provider authenticates the user and hands us a
user id. From there this context resolves the user's profile and the
family whose ledger is visible, and tells interested parties (the
ledger store) whenever the active family changes.

DESIGN DECISION: The context is passed explicitly to whoever needs it
instead of being looked up globally. Listeners are async callables
invoked with the new family (or None) only when the family id changes.
"""

import secrets
import string
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Optional

import structlog

from family_budget.activity.logger import ActivityLogger
from family_budget.models.activity import ActivityEntryBuilder, ActivityLogEntry
from family_budget.models.identity import Family, IdentitySnapshot, Profile
from family_budget.services.notifications import LoggingNotifier, NotifierInterface
from family_budget.services.storage import DuplicateError, IdentityStoreInterface


logger = structlog.get_logger(__name__)

FamilyListener = Callable[[Optional[Family]], Awaitable[None]]

FAMILY_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 5


class IdentityError(Exception):
    """Base exception for identity operations."""
    pass


class NotAuthenticatedError(IdentityError):
    """The operation needs a signed-in user with a profile."""
    pass


class FamilyNotFoundError(IdentityError):
    """No family uses the given join code."""
    pass


def generate_family_code(length: int = 6) -> str:
    """Random join code of uppercase letters and digits."""
    return "".join(secrets.choice(FAMILY_CODE_ALPHABET) for _ in range(length))


class IdentityContext:
    """
    Current user, profile and family.

    Usage:
        identity = IdentityContext(store)
        await identity.sign_in(user_id)
        identity.snapshot.family_id
    """

    def __init__(
        self,
        store: IdentityStoreInterface,
        activity_logger: Optional[ActivityLogger] = None,
        notifier: Optional[NotifierInterface] = None,
        family_code_length: int = 6,
    ):
        self._store = store
        self._activity = activity_logger or ActivityLogger()
        self._notifier = notifier or LoggingNotifier()
        self._family_code_length = family_code_length

        self._user_id: Optional[str] = None
        self._profile: Optional[Profile] = None
        self._family: Optional[Family] = None
        self._loading = False
        self._listeners: list[FamilyListener] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> IdentitySnapshot:
        return IdentitySnapshot(
            user_id=self._user_id,
            profile=self._profile,
            family=self._family,
            loading=self._loading,
        )

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    @property
    def family(self) -> Optional[Family]:
        return self._family

    @property
    def family_id(self) -> Optional[str]:
        return self._family.id if self._family else None

    @property
    def loading(self) -> bool:
        return self._loading

    def add_listener(self, callback: FamilyListener) -> None:
        """Call ``callback(family)`` every time the family id changes."""
        self._listeners.append(callback)

    async def _set_family(self, family: Optional[Family]) -> None:
        previous = self.family_id
        self._family = family
        if self.family_id == previous:
            return

        logger.info("family_changed", previous=previous, current=self.family_id)
        for callback in self._listeners:
            await callback(family)

    def _require_profile(self) -> Profile:
        if self._user_id is None or self._profile is None:
            raise NotAuthenticatedError("Usuário não autenticado")
        return self._profile

    async def _log(self, entry: ActivityLogEntry) -> None:
        await self._activity.log(entry)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def _fetch_profile(
        self, user_id: str
    ) -> tuple[Optional[Profile], Optional[Family]]:
        """Profile and family of a user; (None, None) if the lookup fails."""
        try:
            profile = await self._store.get_profile(user_id)
            if profile is None:
                logger.info("profile_missing", user_id=user_id)
                return None, None

            family = None
            if profile.family_id:
                family = await self._store.get_family(profile.family_id)
            else:
                logger.info("profile_without_family", user_id=user_id)
            return profile, family
        except Exception as e:
            logger.error("profile_fetch_failed", user_id=user_id, error=str(e))
            return None, None

    async def _find_family(self, code: str) -> Family:
        family = await self._store.find_family_by_code(code.strip())
        if family is None:
            raise FamilyNotFoundError("Código de família não encontrado")
        return family

    async def _create_family(self) -> Family:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_family_code(self._family_code_length)
            try:
                family = await self._store.create_family(code)
            except DuplicateError:
                logger.info("family_code_taken", code=code)
                continue
            logger.info("family_created", family_id=family.id, code=family.code)
            return family
        raise IdentityError("Não foi possível gerar um código de família")

    async def family_members(self) -> list[Profile]:
        """Profiles sharing the active family."""
        if self.family_id is None:
            return []
        return await self._store.list_profiles_by_family(self.family_id)

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    async def sign_in(self, user_id: str) -> IdentitySnapshot:
        """
        Adopt a user the identity provider has already authenticated.

        A missing profile is not an error: the user stays signed in
        without a profile or family and sees no ledger data.
        """
        self._loading = True
        try:
            profile, family = await self._fetch_profile(user_id)
            self._user_id = user_id
            self._profile = profile
            await self._set_family(family)
        finally:
            self._loading = False

        if family is not None:
            await self._log(ActivityEntryBuilder.login(user_id, family.id))
        self._notifier.success("Login realizado com sucesso!")
        return self.snapshot

    async def register(
        self,
        user_id: str,
        name: str,
        family_code: Optional[str] = None,
    ) -> IdentitySnapshot:
        """
        Create the profile of a newly registered user.

        With a ``family_code`` the user joins that family; without one a
        new family with a generated code is created.

        Raises:
            FamilyNotFoundError: If no family uses ``family_code``
            StorageError: If the identity store fails
        """
        self._loading = True
        created = False
        try:
            if family_code:
                family = await self._find_family(family_code)
            else:
                family = await self._create_family()
                created = True

            profile = await self._store.save_profile(
                Profile(id=user_id, name=name, family_id=family.id)
            )
            self._user_id = user_id
            self._profile = profile
            await self._set_family(family)
        except Exception as e:
            logger.error("register_failed", user_id=user_id, error=str(e))
            self._notifier.error(f"Erro ao criar conta: {e}")
            raise
        finally:
            self._loading = False

        if created:
            await self._log(ActivityEntryBuilder.family_created(user_id, family.id, family.code))
        await self._log(ActivityEntryBuilder.signup(user_id, family.id, profile.name))
        self._notifier.success("Conta criada com sucesso!")
        return self.snapshot

    async def sign_out(self) -> None:
        """Forget the current user. Listeners see the family go away."""
        if self._user_id is not None and self.family_id is not None:
            await self._log(ActivityEntryBuilder.logout(self._user_id, self.family_id))

        self._user_id = None
        self._profile = None
        await self._set_family(None)

    # -------------------------------------------------------------------------
    # Profile and family changes
    # -------------------------------------------------------------------------

    async def update_profile(self, name: str) -> Profile:
        """
        Rename the current user.

        Raises:
            NotAuthenticatedError: If nobody is signed in
            StorageError: If the identity store fails
        """
        try:
            profile = self._require_profile()
            updated = await self._store.save_profile(
                profile.model_copy(
                    update={"name": name.strip(), "updated_at": datetime.now(timezone.utc)}
                )
            )
        except Exception as e:
            logger.error("profile_update_failed", user_id=self._user_id, error=str(e))
            self._notifier.error(f"Erro ao atualizar perfil: {e}")
            raise

        self._profile = updated
        if updated.family_id:
            await self._log(
                ActivityEntryBuilder.profile_updated(
                    updated.id, updated.family_id, profile.name, updated.name
                )
            )
        self._notifier.success("Perfil atualizado com sucesso!")
        return updated

    async def join_family(self, code: str) -> Family:
        """
        Move the current user to the family with this join code.

        Raises:
            NotAuthenticatedError: If nobody is signed in
            FamilyNotFoundError: If no family uses ``code``
            StorageError: If the identity store fails
        """
        try:
            profile = self._require_profile()
            family = await self._find_family(code)
            updated = await self._store.save_profile(
                profile.model_copy(
                    update={"family_id": family.id, "updated_at": datetime.now(timezone.utc)}
                )
            )
        except Exception as e:
            logger.error("join_family_failed", user_id=self._user_id, error=str(e))
            self._notifier.error(f"Erro ao ingressar na família: {e}")
            raise

        self._profile = updated
        await self._set_family(family)
        await self._log(ActivityEntryBuilder.family_joined(updated.id, family.id, family.code))
        self._notifier.success("Você ingressou na família com sucesso!")
        return family
