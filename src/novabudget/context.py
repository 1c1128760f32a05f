"""Application context for dependency injection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from .config import BaseConfig
from .errors import NovaBudgetError, SessionExpiredError, SubscriptionError
from .infra.database import bootstrap_database
from .infra.store import DocumentStore
from .logging_config import get_logger
from .models.user import User
from .services.auth import AuthService
from .services.ledger_store import LedgerStore
from .services.reconciler import BalanceReconciler

logger = get_logger(__name__)

Notifier = Callable[[str, str], None]


_LEVELS = {"info": logging.INFO, "success": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}


def _log_notifier(message: str, level: str) -> None:
    logger.log(_LEVELS.get(level, logging.INFO), message, extra={"notification": True})


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    config: BaseConfig
    engine: Engine
    session_factory: Callable[[], Session]

    store: DocumentStore
    auth: AuthService
    ledger: LedgerStore
    reconciler: BalanceReconciler

    current_month: date
    notifier: Notifier = _log_notifier
    _auth_unsubscribe: Optional[Callable[[], None]] = field(default=None, repr=False)

    @property
    def current_user(self) -> Optional[User]:
        return self.auth.current_user

    def require_user_id(self) -> int:
        """Return the current user id or raise if not set."""

        user = self.auth.current_user
        if user is None or user.id is None:
            raise SessionExpiredError("Please sign in first")
        return user.id

    def notify(self, message: str, level: str = "info") -> None:
        """Transient user-facing message (toast)."""

        self.notifier(message, level)

    def run_action(self, action: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a user-triggered mutation; errors become notifications.

        Returns the action's result, or None when it failed. Only a lost session
        signs the user out; a rejected sign-in or any other error leaves the
        current session intact.
        """

        try:
            return action(*args, **kwargs)
        except SessionExpiredError as exc:
            self.notify(str(exc), "error")
            self.auth.sign_out()
        except NovaBudgetError as exc:
            logger.info("Action failed", extra={"action": getattr(action, "__name__", str(action))})
            self.notify(str(exc), "error")
        return None

    def shutdown(self) -> None:
        """Detach listeners and release the engine."""

        if self._auth_unsubscribe is not None:
            self._auth_unsubscribe()
            self._auth_unsubscribe = None
        self.ledger.detach()
        self.engine.dispose()

    def _on_auth_state_changed(self, user: Optional[User]) -> None:
        if user is None or user.id is None:
            self.ledger.detach()
        else:
            self.ledger.attach(user.id)

    def _on_subscription_error(self, error: SubscriptionError) -> None:
        self.notify(str(error), "error")


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    notifier: Optional[Notifier] = None,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)

    store = DocumentStore.from_session_factory(session_factory)
    auth = AuthService(session_factory)
    ledger = LedgerStore(store, on_error=lambda error: ctx._on_subscription_error(error))
    reconciler = BalanceReconciler(store, ledger)

    ctx = AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        store=store,
        auth=auth,
        ledger=ledger,
        reconciler=reconciler,
        current_month=date.today().replace(day=1),
        notifier=notifier or _log_notifier,
    )
    ctx._auth_unsubscribe = auth.on_auth_state_changed(ctx._on_auth_state_changed)
    return ctx
