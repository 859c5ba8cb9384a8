"""
Review left by a tenant after a completed stay.
"""

from sqlalchemy import Column, Integer, Text, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from roomrental.db.base import Base, TimestampMixin

REVIEW_UNIQUE_CONSTRAINT = "uq_review_user_room"


class Review(Base, TimestampMixin):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)

    user = relationship("User", back_populates="reviews")
    room = relationship("Room", back_populates="reviews")

    __table_args__ = (
        UniqueConstraint("user_id", "room_id", name=REVIEW_UNIQUE_CONSTRAINT),
        CheckConstraint("rating BETWEEN 1 AND 5", name="check_review_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, user={self.user_id}, room={self.room_id}, rating={self.rating})>"
