"""
Counter Store - atomic per tenant/year sequence allocation

IMPORTANT: the value is reserved with ONE statement
(UPDATE ... SET next_seq = next_seq + 1 RETURNING next_seq). Never read the
counter and write it back in two steps: two concurrent requests would see the
same "next" number.
"""
import logging
import time
from datetime import datetime
from typing import Callable, NamedTuple, Optional

from sqlalchemy import update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from field_reports.config import settings
from field_reports.core.exceptions import StoreUnavailableError
from field_reports.models.project_counter import ProjectCounter

logger = logging.getLogger(__name__)


class ScopeKey(NamedTuple):
    """Partition of the project number counter"""
    tenant_id: int
    year: int


def year_block_start(year: int, base_year: int, block_size: int) -> int:
    """
    First number handed out for a year

    Each year since base_year gets its own block, so numbers of different
    years never overlap: (year - base_year) * block_size + 1, at least 1.
    """
    return max(1, (year - base_year) * block_size + 1)


class ProjectCounterStore:
    """
    Store abstraction exposing only allocate_next(scope)

    Each allocation runs in its own short transaction and commits right away,
    so a reserved number is never handed out twice even if the caller's own
    transaction is later rolled back.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        base_year: Optional[int] = None,
        block_size: Optional[int] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session_factory = session_factory
        self.base_year = base_year if base_year is not None else settings.PROJECT_NUMBER_BASE_YEAR
        self.block_size = block_size if block_size is not None else settings.PROJECT_NUMBER_YEAR_BLOCK
        self.max_retries = max_retries if max_retries is not None else settings.COUNTER_MAX_RETRIES
        self.retry_delay = retry_delay if retry_delay is not None else settings.COUNTER_RETRY_DELAY_SECONDS
        self._sleep = sleep

    def start_value(self, year: int) -> int:
        return year_block_start(year, self.base_year, self.block_size)

    def allocate_next(self, scope: ScopeKey) -> int:
        """
        Reserves and returns the next number for the scope

        Raises:
            StoreUnavailableError: store unreachable after max_retries attempts
        """
        last_error = None
        for attempt in range(1, self.max_retries + 1):
            try:
                return self._allocate_once(scope)
            except (OperationalError, DBAPIError) as e:
                # IntegrityError is handled inside _allocate_once
                last_error = e
                logger.warning(
                    "[COUNTER] Store unavailable for tenant %s/%s (attempt %d/%d): %s",
                    scope.tenant_id, scope.year, attempt, self.max_retries, e,
                )
                if attempt < self.max_retries:
                    self._sleep(self.retry_delay * attempt)

        raise StoreUnavailableError(
            f"Counter store unavailable after {self.max_retries} attempts: {last_error}",
            attempts=self.max_retries,
        ) from last_error

    def _allocate_once(self, scope: ScopeKey) -> int:
        while True:
            value = self._increment(scope)
            if value is not None:
                return value

            # First allocation for this tenant/year
            start = self.start_value(scope.year)
            if self._insert(scope, start):
                logger.info(
                    "[COUNTER] Created counter for tenant %s/%s starting at %d",
                    scope.tenant_id, scope.year, start,
                )
                return start
            # Lost the insert race: the row exists now, go through the increment path

    def _increment(self, scope: ScopeKey) -> Optional[int]:
        stmt = (
            update(ProjectCounter)
            .where(
                ProjectCounter.tenant_id == scope.tenant_id,
                ProjectCounter.year == scope.year,
            )
            .values(next_seq=ProjectCounter.next_seq + 1, updated_at=datetime.utcnow())
            .returning(ProjectCounter.next_seq)
        )
        with self.session_factory() as db:
            with db.begin():
                next_seq = db.execute(stmt).scalar_one_or_none()
        if next_seq is None:
            return None
        return next_seq - 1

    def _insert(self, scope: ScopeKey, start: int) -> bool:
        """Inserts the counter row; False when another request created it first"""
        with self.session_factory() as db:
            try:
                with db.begin():
                    db.add(ProjectCounter(
                        tenant_id=scope.tenant_id,
                        year=scope.year,
                        next_seq=start + 1,
                        updated_at=datetime.utcnow(),
                    ))
            except IntegrityError:
                logger.debug(
                    "[COUNTER] Counter for tenant %s/%s created concurrently, retrying increment",
                    scope.tenant_id, scope.year,
                )
                return False
        return True
