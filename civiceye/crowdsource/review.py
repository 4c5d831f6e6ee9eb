"""
Authority review workflow
Moves reports through their status lifecycle, one selected report at a time
"""

import asyncio
import logging
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

from civiceye.core.exceptions import (
    ActionInProgressError,
    InvalidTransitionError,
    NoReportSelectedError,
    ReportNotFoundError,
    ReviewActionError,
)
from civiceye.crowdsource.models import CivicReport, ReportStatus
from civiceye.crowdsource.report_store import ReportStore

logger = logging.getLogger(__name__)


class ReviewAction(str, Enum):
    """Operator actions on a report."""
    DISPATCH = "DISPATCH"
    RESOLVE = "RESOLVE"
    REJECT = "REJECT"

    @property
    def target_status(self) -> ReportStatus:
        return ACTION_TARGETS[self]


ACTION_TARGETS = {
    ReviewAction.DISPATCH: ReportStatus.DISPATCHED,
    ReviewAction.RESOLVE: ReportStatus.RESOLVED,
    ReviewAction.REJECT: ReportStatus.REVIEWED,
}


@runtime_checkable
class AuthorityGateway(Protocol):
    """Municipal backend that receives operator actions."""

    async def submit(self, report: CivicReport, action: ReviewAction) -> None:
        """Deliver the action; raise on failure."""
        ...


class SimulatedAuthorityGateway:
    """Stand-in for the municipal backend: waits, then accepts."""

    def __init__(self, delay_seconds: float = 1.0):
        self.delay_seconds = delay_seconds

    async def submit(self, report: CivicReport, action: ReviewAction) -> None:
        await asyncio.sleep(self.delay_seconds)
        logger.debug(f"Simulated authority accepted {action.value} for {report.id}")


class ReviewWorkflow:
    """
    Operator console state.

    One report is selected at a time and at most one action is in flight.
    A successful action updates the store and clears the selection; a
    failed one leaves both untouched so the operator can try again.
    """

    def __init__(
        self,
        store: ReportStore,
        gateway: Optional[AuthorityGateway] = None,
        max_retries: int = 3,
        backoff_seconds: float = 0.5
    ):
        """
        Initialize workflow.

        Args:
            store: Report store to update
            gateway: Backend receiving actions (default: simulated)
            max_retries: Attempts per action before giving up
            backoff_seconds: Pause between attempts
        """
        self.store = store
        self.gateway = gateway or SimulatedAuthorityGateway()
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds

        self._selected_id: Optional[str] = None
        self._processing = False

    @property
    def is_processing(self) -> bool:
        return self._processing

    @property
    def selected(self) -> Optional[CivicReport]:
        """Currently selected report, as stored now."""
        if self._selected_id is None:
            return None
        return self.store.get(self._selected_id)

    def select(self, report_id: str) -> CivicReport:
        """Select a report for review."""
        if self._processing:
            raise ActionInProgressError("Wait for the current action to finish")

        report = self.store.get(report_id)
        if report is None:
            raise ReportNotFoundError(f"Report not found: {report_id}")

        self._selected_id = report_id
        return report

    def clear_selection(self) -> None:
        if self._processing:
            raise ActionInProgressError("Wait for the current action to finish")
        self._selected_id = None

    async def perform(self, action: ReviewAction) -> CivicReport:
        """
        Apply an action to the selected report.

        Args:
            action: Operator action

        Returns:
            Report with its new status

        Raises:
            ActionInProgressError: Another action is still running
            NoReportSelectedError: Nothing selected
            InvalidTransitionError: Action not allowed from the current status
            ReviewActionError: Backend rejected the action on every attempt
        """
        if self._processing:
            raise ActionInProgressError("Wait for the current action to finish")

        report = self.selected
        if report is None:
            raise NoReportSelectedError("Select a report before issuing an action")

        target = action.target_status
        if not report.status.can_transition_to(target):
            raise InvalidTransitionError(
                f"Cannot {action.value} report {report.id}: "
                f"{report.status.value} -> {target.value} is not allowed"
            )

        self._processing = True
        try:
            await self._submit_with_retry(report, action)
            updated = self.store.update_status(report.id, target)
            if updated is None:
                raise ReportNotFoundError(f"Report not found: {report.id}")
            self._selected_id = None
        finally:
            self._processing = False

        logger.info(f"Review action {action.value} applied to {report.id}")

        return updated

    async def _submit_with_retry(self, report: CivicReport, action: ReviewAction) -> None:
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                await self.gateway.submit(report, action)
                return
            except Exception as e:
                last_error = e
                logger.warning(
                    f"{action.value} for {report.id} failed "
                    f"(attempt {attempt}/{self.max_retries}): {e}"
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(self.backoff_seconds)

        raise ReviewActionError(
            f"{action.value} for {report.id} failed after {self.max_retries} attempts: {last_error}"
        )
