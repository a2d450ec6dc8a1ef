from sqlalchemy import Column, Date, DateTime, Integer, String, func

from lgl_sync.db.base import Base


class MemberRenewal(Base):
    """Plugin-side renewal tracking for a member.

    ``last_reminder_cycle_date`` holds the renewal date the last reminder was
    sent against; once ``renewal_date`` moves the stored interval belongs to a
    finished cycle and is ignored.
    """

    __tablename__ = "member_renewals"

    member_id = Column(String(64), primary_key=True)
    email = Column(String(320), nullable=True)
    first_name = Column(String(120), nullable=True)
    renewal_date = Column(Date, nullable=True, index=True)
    last_reminder_interval_sent = Column(Integer, nullable=True)
    last_reminder_cycle_date = Column(Date, nullable=True)
    last_reminder_sent_at = Column(DateTime(timezone=True), nullable=True)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
