"""Database-backed per-user leases."""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta

from sqlalchemy import delete, update

from youtube_exporter.domain.services.lease_manager import Lease, LeaseManager
from youtube_exporter.infrastructure.persistence.database import Database
from youtube_exporter.infrastructure.persistence.models import LeaseRow, utcnow

logger = logging.getLogger(__name__)


class SqlLeaseManager(LeaseManager):
    """
    Lease manager using one row per user.

    Taking a lease is either an insert of a fresh row or a takeover of an
    expired one, each a single statement.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    def acquire(self, user_id: str, ttl_seconds: int) -> Lease | None:
        now = utcnow()
        lease = Lease(
            user_id=user_id,
            token=uuid.uuid4().hex,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

        with self._database.session("lease acquisition") as session:
            taken_over = session.execute(
                update(LeaseRow)
                .where(LeaseRow.user_id == user_id, LeaseRow.expires_at <= now)
                .values(token=lease.token, expires_at=lease.expires_at)
                .execution_options(synchronize_session=False)
            ).rowcount
            if not taken_over:
                inserted = session.execute(
                    self._database.insert_ignoring_conflicts(
                        LeaseRow,
                        user_id=user_id,
                        token=lease.token,
                        expires_at=lease.expires_at,
                    )
                ).rowcount
                if not inserted:
                    logger.debug(f"Lease for {user_id} is held by another worker")
                    return None

        logger.debug(f"Acquired lease {lease.token} for {user_id} until {lease.expires_at}")
        return lease

    def release(self, lease: Lease) -> None:
        with self._database.session("lease release") as session:
            session.execute(
                delete(LeaseRow)
                .where(LeaseRow.user_id == lease.user_id, LeaseRow.token == lease.token)
                .execution_options(synchronize_session=False)
            )
        logger.debug(f"Released lease {lease.token} for {lease.user_id}")
