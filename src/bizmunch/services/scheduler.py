"""Weekly rotation recomputation across all users."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from bizmunch.domain.errors import CollaboratorUnavailableError, NotFoundError
from bizmunch.services.rotation import RotationService

_logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


class Clock(Protocol):
    """Time source used by the scheduler."""

    def now(self) -> datetime:
        """Return the current aware datetime."""

    async def sleep(self, seconds: float) -> None:
        """Wait for the given number of seconds."""


class SystemClock:
    """Clock backed by the system time and asyncio.sleep."""

    def now(self) -> datetime:
        return datetime.now(tz=UTC)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


@dataclass
class PassReport:
    """Outcome of one recomputation pass."""

    started_at: datetime
    refreshed: list[UUID] = field(default_factory=list)
    skipped: list[UUID] = field(default_factory=list)
    failed: list[UUID] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {
            "started_at": self.started_at.isoformat(),
            "refreshed": [str(user_id) for user_id in self.refreshed],
            "skipped": [str(user_id) for user_id in self.skipped],
            "failed": [str(user_id) for user_id in self.failed],
        }


@dataclass
class RotationScheduler:
    """Run recomputation passes on a fixed weekly slot."""

    rotation_service: RotationService
    clock: Clock = field(default_factory=SystemClock)
    weekday: int = 0
    hour: int = 0
    timezone_name: str = "UTC"
    max_workers: int = 8
    user_timeout_seconds: float = 30.0
    retry_attempts: int = 2
    retry_delay_seconds: float = 0.5
    next_due: datetime | None = None

    def next_run_after(self, moment: datetime) -> datetime:
        """Return the first scheduled slot strictly after ``moment``."""
        tz = ZoneInfo(self.timezone_name)
        local = moment.astimezone(tz)
        days_ahead = (self.weekday - local.weekday()) % DAYS_PER_WEEK
        candidate = (local + timedelta(days=days_ahead)).replace(
            hour=self.hour, minute=0, second=0, microsecond=0
        )
        if candidate <= local:
            candidate += timedelta(days=DAYS_PER_WEEK)
        return candidate.astimezone(UTC)

    async def tick(self) -> PassReport | None:
        """Run a pass when the next slot has been reached."""
        now = self.clock.now()
        if self.next_due is None:
            self.next_due = self.next_run_after(now)
        if now < self.next_due:
            return None
        report = await self.run_pass()
        self.next_due = self.next_run_after(now)
        return report

    async def run_forever(self) -> None:
        """Sleep until each scheduled slot and run a pass."""
        _logger.info("Rotation scheduler started")
        try:
            while True:
                now = self.clock.now()
                if self.next_due is None:
                    self.next_due = self.next_run_after(now)
                delay = (self.next_due - now).total_seconds()
                if delay > 0:
                    await self.clock.sleep(delay)
                try:
                    await self.tick()
                except Exception:
                    _logger.exception("Rotation pass aborted")
                    self.next_due = self.next_run_after(self.clock.now())
        except asyncio.CancelledError:
            _logger.info("Rotation scheduler stopped")
            raise

    async def run_pass(self) -> PassReport:
        """Refresh every user's rotation, isolating per-user failures."""
        report = PassReport(started_at=self.clock.now())
        user_ids = await asyncio.to_thread(
            self.rotation_service.repository.list_user_ids
        )
        _logger.info("Rotation pass started: users=%s", len(user_ids))
        semaphore = asyncio.Semaphore(max(self.max_workers, 1))

        async def worker(user_id: UUID) -> None:
            async with semaphore:
                await self._refresh_isolated(user_id, report)

        await asyncio.gather(*(worker(user_id) for user_id in user_ids))
        _logger.info(
            "Rotation pass finished: refreshed=%s skipped=%s failed=%s",
            len(report.refreshed),
            len(report.skipped),
            len(report.failed),
        )
        return report

    async def _refresh_isolated(self, user_id: UUID, report: PassReport) -> None:
        try:
            await self._refresh_with_retry(user_id)
        except NotFoundError:
            _logger.warning("Rotation skipped, user not found: user_id=%s", user_id)
            report.skipped.append(user_id)
        except CollaboratorUnavailableError as exc:
            _logger.warning(
                "Rotation skipped, collaborator unavailable: user_id=%s error=%s",
                user_id,
                exc,
            )
            report.skipped.append(user_id)
        except TimeoutError:
            _logger.warning("Rotation skipped, timed out: user_id=%s", user_id)
            report.skipped.append(user_id)
        except Exception:
            _logger.exception("Rotation failed: user_id=%s", user_id)
            report.failed.append(user_id)
        else:
            report.refreshed.append(user_id)

    async def _refresh_with_retry(self, user_id: UUID) -> None:
        """Refresh one user, backing off on collaborator outages."""
        attempt = 0
        while True:
            try:
                await asyncio.wait_for(
                    self.rotation_service.refresh_user(user_id),
                    timeout=self.user_timeout_seconds,
                )
                return
            except CollaboratorUnavailableError as exc:
                attempt += 1
                _logger.warning(
                    "Rotation refresh failed (attempt %s/%s): user_id=%s error=%s",
                    attempt,
                    self.retry_attempts + 1,
                    user_id,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await self.clock.sleep(self.retry_delay_seconds * 2 ** (attempt - 1))
