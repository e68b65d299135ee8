# talentmatch/auth/jwt.py
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext

from talentmatch.core.errors import AuthenticationError
from talentmatch.models.member import Member

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGORITHM = "HS256"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

def create_access_token(subject: str, secret_key: str, expires_minutes: int = 60) -> str:
    payload = {
        "sub": subject,
        "exp": datetime.now(tz=timezone.utc) + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)

def decode_access_token(token: str, secret_key: str) -> str:
    """Returns the subject (member id)."""
    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        raise AuthenticationError("Invalid or expired token") from e
    sub = payload.get("sub")
    if not sub:
        raise AuthenticationError("Token has no subject")
    return str(sub)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

async def get_current_member(request: Request, token: str | None = Depends(oauth2_scheme)) -> Member:
    if not token:
        raise AuthenticationError("Missing bearer token")
    container = request.app.state.container
    member_id = decode_access_token(token, container.settings.SECRET_KEY)
    member = await container.members.get(member_id)
    if member is None:
        raise AuthenticationError("Unknown member")
    return member
