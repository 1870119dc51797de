from datetime import datetime

from pydantic import BaseModel


class Message(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    content: str
    created_at: datetime
