from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from taskboard.core.config import settings

# Les tokens sont émis par le fournisseur d'identité, on ne fait que les vérifier.
# create_access_token sert aux outils internes et aux tests.

def create_access_token(user_id: int, email: str) -> str:
    payload = {
        "user_id": user_id,
        "email": email.strip().lower(),
        "exp": datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRE_MIN),
        "type": "access"
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")

def verify_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload

def decode_token(token: str) -> Optional[str]:
    """Retourne l'email (identité) porté par le token, ou None"""
    payload = verify_token(token)
    if payload is None:
        return None
    email = payload.get("email")
    return email.lower() if email else None
