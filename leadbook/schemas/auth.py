from typing import Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr


class DemoLoginRequest(BaseModel):
    email: EmailStr = "demo@example.com"
    name: str = "Demo User"


class SessionUser(BaseModel):
    id: UUID
    email: str
    name: Optional[str] = None

    model_config = {"from_attributes": True}
