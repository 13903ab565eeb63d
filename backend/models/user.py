"""User model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, func
from backend.database import Base


class User(Base):
    """Represents a judge or superadmin account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    # Column keeps its historical name; it stores a digest, never plaintext.
    password_digest = Column("password", String(255), nullable=False)
    role = Column(String(50), nullable=False, default="judge")  # judge/superadmin
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
