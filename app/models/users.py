from sqlalchemy import Column, String, BigInteger
from sqlalchemy.dialects.postgresql import TIMESTAMP, JSONB
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    """Authenticated player account and its persisted game state."""
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(128), nullable=False)
    username = Column(String(64), unique=True)

    # Game state - replaced wholesale on every save
    balance = Column(BigInteger, nullable=False, default=0)
    completed_missions = Column(JSONB, nullable=False, default=list)
    prison_time = Column(TIMESTAMP(timezone=True), nullable=True)
    cooldowns = Column(JSONB, nullable=False, default=dict)  # mission id -> end (epoch ms)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())
