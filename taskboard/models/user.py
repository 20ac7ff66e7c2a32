from sqlalchemy import Column, Integer, String, DateTime, Boolean
from datetime import datetime
from taskboard.core.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Annuaire: équipe (CRM, AI, ...), rôle et approbation
    team = Column(String, nullable=True, index=True)
    role = Column(String, default="user")
    approved = Column(Boolean, default=False)
