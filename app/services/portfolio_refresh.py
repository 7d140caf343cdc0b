"""
app/services/portfolio_refresh.py

Best-effort refresh of the portfolio totals materialized view.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.logging_utils import log_event
from app.services.task_executor import TaskExecutor
from db.models.portfolio import PORTFOLIO_TOTALS_VIEW

logger = logging.getLogger(__name__)


class PortfolioTotalsRefresher:
    """
    Schedules `REFRESH MATERIALIZED VIEW CONCURRENTLY` on a detached executor.

    Failures are logged and swallowed; callers never see them.
    """

    def __init__(
        self,
        *,
        executor: TaskExecutor,
        session_factory: Callable[[], Session] | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory
        self._executor = executor

    def schedule(self, *, reason: str) -> None:
        try:
            self._executor.submit(self.refresh, reason=reason)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.WARNING, "portfolio_refresh_schedule_failed", reason=reason, error=str(exc))

    def refresh(self, *, reason: str) -> None:
        try:
            with self._session_factory() as db:
                db.execute(text(f"REFRESH MATERIALIZED VIEW CONCURRENTLY {PORTFOLIO_TOTALS_VIEW}"))
                db.commit()
            log_event(logger, logging.INFO, "portfolio_refresh_completed", reason=reason)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.WARNING, "portfolio_refresh_failed", reason=reason, error=str(exc))
