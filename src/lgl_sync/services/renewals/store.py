"""Persistence for member renewal state and reminder claims."""

from __future__ import annotations

from datetime import date, datetime
from typing import AsyncIterator, Sequence

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lgl_sync.core.errors import StorageError
from lgl_sync.models.member_renewal import MemberRenewal


class RenewalStoreError(StorageError):
    """Raised when member renewal state cannot be read or written."""


def _matches(column, value):
    return column.is_(None) if value is None else column == value


class MemberRenewalStore:
    """Reads members and performs the compare-and-set reminder claims."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, member_id: str) -> MemberRenewal | None:
        try:
            return await self._session.get(MemberRenewal, member_id)
        except SQLAlchemyError as exc:
            raise RenewalStoreError(f"Failed to load renewal state for member {member_id}") from exc

    async def upsert_member(
        self,
        member_id: str,
        *,
        renewal_date: date | None,
        email: str | None = None,
        first_name: str | None = None,
    ) -> MemberRenewal:
        """Create or update a member; a new renewal date starts a new cycle."""

        try:
            member = await self._session.get(MemberRenewal, member_id)
            if member is None:
                member = MemberRenewal(member_id=member_id)
                self._session.add(member)
            elif member.renewal_date != renewal_date:
                member.deactivated_at = None
            member.renewal_date = renewal_date
            member.email = email
            member.first_name = first_name
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise RenewalStoreError(f"Failed to store renewal state for member {member_id}") from exc
        return member

    async def list_members(self, *, limit: int = 100, offset: int = 0) -> Sequence[MemberRenewal]:
        stmt = select(MemberRenewal).order_by(MemberRenewal.member_id).limit(max(limit, 0)).offset(max(offset, 0))
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise RenewalStoreError("Failed to list member renewals") from exc
        return list(result.scalars())

    async def iter_batches(self, batch_size: int = 100) -> AsyncIterator[Sequence[MemberRenewal]]:
        offset = 0
        while True:
            batch = await self.list_members(limit=batch_size, offset=offset)
            if not batch:
                return
            yield batch
            if len(batch) < batch_size:
                return
            offset += batch_size

    async def all_members(self) -> list[MemberRenewal]:
        stmt = select(MemberRenewal).order_by(MemberRenewal.member_id)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise RenewalStoreError("Failed to list member renewals") from exc
        return list(result.scalars())

    async def claim_interval(
        self,
        member_id: str,
        *,
        expected_interval: int | None,
        expected_cycle_date: date | None,
        interval: int,
        cycle_date: date,
        now: datetime,
    ) -> bool:
        """Record ``interval`` as sent if the stored state is still what was read.

        The update is committed before returning. False means another
        invocation changed the row first.
        """

        stmt = (
            update(MemberRenewal)
            .where(MemberRenewal.member_id == member_id)
            .where(_matches(MemberRenewal.last_reminder_interval_sent, expected_interval))
            .where(_matches(MemberRenewal.last_reminder_cycle_date, expected_cycle_date))
            .values(
                last_reminder_interval_sent=interval,
                last_reminder_cycle_date=cycle_date,
                last_reminder_sent_at=now,
            )
        )
        claimed = await self._execute_cas(stmt, member_id, "claim")
        if claimed:
            logger.debug("Renewal reminder claimed", member_id=member_id, interval=interval)
        return claimed

    async def release_claim(
        self,
        member_id: str,
        *,
        interval: int,
        cycle_date: date,
        previous_interval: int | None,
        previous_cycle_date: date | None,
        previous_sent_at: datetime | None = None,
    ) -> bool:
        """Undo a claim, but only while the row still holds that claim."""

        stmt = (
            update(MemberRenewal)
            .where(MemberRenewal.member_id == member_id)
            .where(MemberRenewal.last_reminder_interval_sent == interval)
            .where(MemberRenewal.last_reminder_cycle_date == cycle_date)
            .values(
                last_reminder_interval_sent=previous_interval,
                last_reminder_cycle_date=previous_cycle_date,
                last_reminder_sent_at=previous_sent_at,
            )
        )
        released = await self._execute_cas(stmt, member_id, "release")
        if released:
            logger.info("Renewal reminder claim released", member_id=member_id, interval=interval)
        return released

    async def mark_deactivated(self, member_id: str, *, now: datetime) -> None:
        stmt = (
            update(MemberRenewal)
            .where(MemberRenewal.member_id == member_id)
            .where(MemberRenewal.deactivated_at.is_(None))
            .values(deactivated_at=now)
        )
        await self._execute_cas(stmt, member_id, "deactivate")

    async def _execute_cas(self, stmt, member_id: str, action: str) -> bool:
        try:
            result = await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise RenewalStoreError(f"Failed to {action} renewal reminder for member {member_id}") from exc
        return result.rowcount == 1


__all__ = ["MemberRenewalStore", "RenewalStoreError"]
