"""ORM model for friend requests; an accepted row is the friendship itself."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from winejournal.constants import FRIEND_REQUEST_STATUSES
from winejournal.database import Base


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    requester_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(*FRIEND_REQUEST_STATUSES, name="friend_request_status"), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    seen_at = Column(DateTime(timezone=True), nullable=True)

    requester = relationship("User", foreign_keys=[requester_id], back_populates="friend_requests_sent")
    recipient = relationship("User", foreign_keys=[recipient_id], back_populates="friend_requests_received")

    __table_args__ = (
        UniqueConstraint("requester_id", "recipient_id", name="uq_friend_request_pair"),
        Index("ix_friend_requests_recipient_status", "recipient_id", "status"),
        Index("ix_friend_requests_requester_status", "requester_id", "status"),
    )

    def other_party(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.recipient_id if self.requester_id == user_id else self.requester_id

    def involves(self, user_id: uuid.UUID) -> bool:
        return user_id in {self.requester_id, self.recipient_id}


__all__ = ["FriendRequest"]
