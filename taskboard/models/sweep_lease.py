from sqlalchemy import Column, String, DateTime
from taskboard.core.database import Base


class SweepLease(Base):
    __tablename__ = "sweep_leases"

    name = Column(String, primary_key=True)
    holder = Column(String, nullable=False)
    expires_at = Column(DateTime, nullable=False)
