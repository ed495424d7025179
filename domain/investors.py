from pydantic import BaseModel, Field
from typing import List, Optional
import datetime

PLACEHOLDER_LOGO = "/placeholder.svg?height=80&width=80"
PLACEHOLDER_AVATAR = "/placeholder.svg?height=40&width=40"


class Partner(BaseModel):
    name: str
    avatar: Optional[str] = None


class LinkedStartup(BaseModel):
    id: str
    name: str
    logo: Optional[str] = None


class Investor(BaseModel):
    id: str
    name: str
    avatar: Optional[str] = None
    logo: Optional[str] = None
    description: str
    type: str
    investmentRange: Optional[str] = None
    location: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    partners: Optional[List[Partner]] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


class InvestorDetail(Investor):
    startups: List[LinkedStartup] = Field(default_factory=list)


class InvestorCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str
    type: str
    investmentRange: Optional[str] = None
    location: Optional[str] = None
    interests: str = ""  # comma separated, as typed into the form
    partners: List[Partner] = Field(default_factory=list)


def split_interests(raw: str) -> List[str]:
    return [interest.strip() for interest in raw.split(",") if interest.strip()]
