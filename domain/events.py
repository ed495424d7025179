from pydantic import BaseModel, Field
from typing import Optional
import datetime


class Event(BaseModel):
    id: str
    title: str
    description: str
    date: str  # free-form, e.g. "2025-07-01" or "2025-07-01 - 2025-07-03"
    time: Optional[str] = None
    location: str
    type: str
    category: str
    attendees: int = Field(default=0, ge=0)
    organizer: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True

    def start_date(self) -> Optional[datetime.date]:
        """First ISO date found in ``date``, or None when it does not parse."""
        head = self.date.split(" - ")[0].strip()
        try:
            return datetime.date.fromisoformat(head[:10])
        except ValueError:
            return None
