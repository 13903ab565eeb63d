"""Submission model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship
from backend.database import Base


class Submission(Base):
    """Represents a hackathon project entered for judging."""
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True)
    team_member_name = Column(String(255), nullable=False)
    project_name = Column(String(255))
    submission_link = Column(Text, nullable=False)
    problem_description = Column(Text, nullable=False)
    hours_spent = Column(Integer, nullable=True)
    services_used = Column(Text)
    git_repo_url = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    votes = relationship("Vote", back_populates="submission", cascade="all, delete-orphan")
