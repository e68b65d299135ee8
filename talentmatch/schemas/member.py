# talentmatch/schemas/member.py
from pydantic import BaseModel, EmailStr

class MemberCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: str | None = None
    organisation_id: str

class MemberOut(BaseModel):
    id: str
    email: EmailStr
    full_name: str | None
    organisation_id: str

    class Config:
        from_attributes = True  # pydantic v2: allow ORM objects

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
