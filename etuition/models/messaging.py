"""Conversation and message model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from etuition.database import Base


class Conversation(Base):
    """A thread between two users.

    Participants are stored in sorted order so a pair maps to one row.
    """
    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("participant_a", "participant_b", name="uq_conversations_pair"),
    )

    id = Column(Integer, primary_key=True, index=True)
    participant_a = Column(String, index=True, nullable=False)
    participant_b = Column(String, index=True, nullable=False)
    last_message = Column(Text)
    last_message_at = Column(DateTime, default=datetime.now)
    created_at = Column(DateTime, default=datetime.now)

    @property
    def participants(self) -> list[str]:
        return [self.participant_a, self.participant_b]

    def other_email(self, email: str) -> str:
        return self.participant_b if self.participant_a == email else self.participant_a


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id", ondelete="CASCADE"), index=True, nullable=False)
    sender_email = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.now)
