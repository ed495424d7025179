from pydantic import BaseModel, Field
from typing import List, Optional
import datetime


class StartupSocial(BaseModel):
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None


class TeamMember(BaseModel):
    name: str
    role: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None


class StartupMetrics(BaseModel):
    customers: Optional[int] = None
    arpu: Optional[str] = None
    retention: Optional[str] = None
    growth: Optional[str] = None


class LinkedInvestor(BaseModel):
    id: Optional[str] = None
    name: str
    logo: Optional[str] = None


class Startup(BaseModel):
    id: str
    name: str
    logo: Optional[str] = None
    description: str
    longDescription: Optional[str] = None
    category: str
    stage: str
    foundedYear: Optional[int] = None
    location: Optional[str] = None
    employeeCount: Optional[str] = None
    fundingTotal: Optional[str] = None
    website: Optional[str] = None
    social: StartupSocial = Field(default_factory=StartupSocial)
    tags: List[str] = Field(default_factory=list)
    team: List[TeamMember] = Field(default_factory=list)
    metrics: Optional[StartupMetrics] = None
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


class StartupDetail(Startup):
    investors: List[LinkedInvestor] = Field(default_factory=list)
