"""Database models."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Interview(Base):
    """Interview session model."""

    __tablename__ = "interviews"

    id = Column(String(32), primary_key=True, index=True)
    phone_number = Column(String, nullable=False)
    topic = Column(Text, nullable=False)
    status = Column(String, default="starting", nullable=False)  # starting, in_progress, completed, failed
    call_sid = Column(String, nullable=True, index=True)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)

    # Relationships
    turns = relationship(
        "InterviewTurn",
        back_populates="interview",
        order_by="InterviewTurn.position",
        cascade="all, delete-orphan",
    )


class InterviewTurn(Base):
    """One utterance of an interview transcript."""

    __tablename__ = "interview_turns"

    id = Column(Integer, primary_key=True, index=True)
    interview_id = Column(String(32), ForeignKey("interviews.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    role = Column(String, nullable=False)  # system, user, assistant
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    interview = relationship("Interview", back_populates="turns")
