from pydantic import BaseModel, Field
from typing import Optional
import datetime

PLACEHOLDER_IMAGE = "/placeholder.svg?height=200&width=400"


class Resource(BaseModel):
    id: str
    title: str
    image: Optional[str] = None
    description: str
    type: str
    category: str
    read_time: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    content_url: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


class ResourceCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str
    type: str
    category: str
    read_time: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    content_url: Optional[str] = None
