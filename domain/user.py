from pydantic import BaseModel, EmailStr, Field, HttpUrl
from typing import Literal, Optional
import datetime

UserType = Literal["founder", "business", "investor", "customer"]


class SignUpUser(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    password: str = Field(min_length=8)
    user_type: UserType = "founder"


class Challenge(BaseModel):
    challenge: str


class Profile(BaseModel):
    name: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    avatar_url: Optional[str] = None
    user_type: UserType = "founder"
    updated_at: Optional[datetime.datetime] = None


class ProfileUpdate(BaseModel):
    name: str = Field(min_length=2)
    title: str = Field(min_length=2)
    company: Optional[str] = None
    bio: str = Field(default="", max_length=500)
    location: Optional[str] = None
    website: Optional[HttpUrl] = None
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    user_type: UserType = "founder"
