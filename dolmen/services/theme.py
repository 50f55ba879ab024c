"""
Theme synchronizer.

Loads the single theme_settings row and publishes it as named style
variables for every page. Saving is update-only against the fixed row id.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from dolmen.core.exceptions import AdminRequiredError, BackendError, RecordValidationError, StoreError
from dolmen.schemas.catalog import ThemeSettings
from dolmen.services.error_classifier import classify
from dolmen.services.gateways import ThemeStore
from dolmen.services.normalize import normalize_theme
from dolmen.services.notifier import Notifier
from dolmen.services.session import SessionResolver
from dolmen.services.validation import validate_theme

logger = logging.getLogger(__name__)

STYLE_VARIABLES = {
    "primary_color": "--color-primary",
    "secondary_color": "--color-secondary",
    "accent_color": "--color-accent",
    "extra_color_1": "--color-extra-1",
    "extra_color_2": "--color-extra-2",
    "background_color": "--color-background",
    "border_color": "--color-border",
    "label_name": "--label-name",
}

ThemeListener = Callable[["ThemeState"], None]


class ThemeState:
    """Current theme as seen by the presentation layer."""

    def __init__(self, settings: Optional[ThemeSettings] = None):
        self.settings = ThemeSettings()
        self.variables: Dict[str, str] = {}
        self._listeners: List[ThemeListener] = []
        self.apply(settings or ThemeSettings())
        self.loaded = settings is not None

    def subscribe(self, listener: ThemeListener) -> None:
        self._listeners.append(listener)

    def apply(self, settings: ThemeSettings) -> None:
        self.settings = settings
        self.loaded = True
        self.variables = {
            variable: getattr(settings, field) for field, variable in STYLE_VARIABLES.items()
        }
        for listener in list(self._listeners):
            listener(self)

    def css(self) -> str:
        lines = []
        for variable, value in self.variables.items():
            if variable == "--label-name":
                escaped = value.replace("\\", "\\\\").replace('"', '\\"')
                value = f'"{escaped}"'
            lines.append(f"  {variable}: {value};")
        return ":root {\n" + "\n".join(lines) + "\n}\n"


class ThemeSynchronizer:
    def __init__(
        self,
        store: ThemeStore,
        state: ThemeState,
        theme_id: str,
        session: Optional[SessionResolver] = None,
        notifier: Optional[Notifier] = None,
    ):
        self._store = store
        self.state = state
        self.theme_id = theme_id
        self._session = session
        self._notifier = notifier

    async def load(self) -> bool:
        """
        Read the theme row and propagate it.

        Failures are logged only; the previous (or built-in) theme stays.
        """
        try:
            row = await self._store.select_single(self.theme_id)
            settings = ThemeSettings.model_validate(row)
        except StoreError as exc:
            logger.warning(f"Failed to load theme settings: {classify(exc)}")
            return False
        except ValidationError as exc:
            logger.warning(f"Theme settings row is malformed: {exc}")
            return False

        self.state.apply(settings)
        return True

    async def save(self, form: ThemeSettings) -> None:
        """
        Update the theme row, then reload it.

        Raises:
            AdminRequiredError: no admin session.
            RecordValidationError: a color or the label name is invalid.
            BackendError: the update failed; the current theme is kept.
        """
        if self._session is None or not self._session.is_admin:
            raise AdminRequiredError()

        errors = validate_theme(form)
        if errors:
            raise RecordValidationError(errors)

        try:
            await self._store.update(self.theme_id, normalize_theme(form))
        except StoreError as exc:
            message = classify(exc)
            logger.error(f"Failed to save theme settings: {message}")
            raise BackendError(message, exc.code) from exc

        await self.load()
        if self._notifier is not None:
            self._notifier.alert("Theme updated!")
