# talentmatch/api/routes.py
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm

from talentmatch.api.deps import get_container
from talentmatch.auth.jwt import create_access_token, get_password_hash, verify_password
from talentmatch.container import Container
from talentmatch.core.errors import AuthenticationError, IntegrityViolationError
from talentmatch.schemas.member import MemberCreate, MemberOut, Token

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}

@router.post("/auth/register", response_model=MemberOut, status_code=201)
async def register(member_in: MemberCreate, container: Container = Depends(get_container)):
    """Create a new organisation member"""
    if await container.members.get_by_email(member_in.email):
        raise IntegrityViolationError("Email already registered")
    return await container.members.create(
        email=member_in.email,
        full_name=member_in.full_name,
        organisation_id=member_in.organisation_id,
        hashed_password=get_password_hash(member_in.password),
    )

@router.post("/auth/login", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), container: Container = Depends(get_container)):
    """Authenticate member and return JWT"""
    member = await container.members.get_by_email(form_data.username)
    if not member or not verify_password(form_data.password, member.hashed_password):
        raise AuthenticationError("Invalid email or password")

    s = container.settings
    token = create_access_token(member.id, s.SECRET_KEY, s.ACCESS_TOKEN_EXPIRE_MINUTES)
    return {"access_token": token, "token_type": "bearer"}
