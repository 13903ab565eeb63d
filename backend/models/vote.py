"""Vote model definitions."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship
from backend.database import Base


class Vote(Base):
    """Represents one judge's rating of one submission."""
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("submission_id", "judge_id", name="uq_votes_submission_judge"),
        CheckConstraint("rating >= 1 AND rating <= 10", name="ck_votes_rating_range"),
    )

    id = Column(Integer, primary_key=True)
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False)
    judge_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    remarks = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    submission = relationship("Submission", back_populates="votes")
    judge = relationship("User")
