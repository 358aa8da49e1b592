from pydantic import BaseModel
from typing import Optional


class Contact(BaseModel):
    id: Optional[int] = None
    name: str
    phone: str
    email: str
    address: str


class ContactUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    def changes(self) -> dict:
        # blank means "keep the old value"
        return {
            field: value
            for field, value in self.model_dump().items()
            if value is not None and value.strip()
        }
