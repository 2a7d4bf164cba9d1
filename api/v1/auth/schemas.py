from pydantic import BaseModel, ConfigDict, EmailStr
from typing import List, Optional
from datetime import datetime

# -----------------------------
#  Identity provider webhook payload
# -----------------------------

class EmailAddress(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email_address: EmailStr


class UserCreatedData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email_addresses: List[EmailAddress] = []
    primary_email_address_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None


# -----------------------------
#  Users
# -----------------------------

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_image: Optional[str] = None
    tier_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
