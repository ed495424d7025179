from pydantic import BaseModel, Field
from typing import List, Optional
import datetime


class PostAuthor(BaseModel):
    name: str
    avatar: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None


class Post(BaseModel):
    id: str
    author: PostAuthor
    content: str
    image: Optional[str] = Field(default=None)
    time: Optional[str] = Field(default=None)
    likes: int = 0
    comments: int = 0
    shares: int = 0
    tags: List[str] = Field(default_factory=list)
    created_at: datetime.datetime
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True
