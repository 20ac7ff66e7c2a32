"""Team directory backed by the users table"""

from sqlalchemy.orm import Session
from typing import List
from taskboard.models.user import User


class UserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def list_approved_identities_by_team(self, team: str) -> List[str]:
        rows = self.db.query(User.email).filter(
            User.team == team,
            User.approved == True
        ).all()
        return [row.email for row in rows if row.email]

    def is_registered(self, identity: str) -> bool:
        return self.db.query(User.id).filter(
            User.email == identity.strip().lower()
        ).first() is not None

    def list_approved_identities(self) -> List[str]:
        rows = self.db.query(User.email).filter(User.approved == True).all()
        return [row.email for row in rows if row.email]
