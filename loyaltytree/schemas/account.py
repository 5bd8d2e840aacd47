from typing import Literal, Optional

from uuid import UUID

from pydantic import Field

from loyaltytree.schemas.base import CamelModel, UtcDatetime


AccountType = Literal["customer", "retailer"]


class RegisterRequest(CamelModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)
    name: Optional[str] = None
    role: AccountType = "customer"


class LoginRequest(CamelModel):
    email: str
    password: str
    role: AccountType = "customer"


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None


class AccountOut(CamelModel):
    id: UUID
    email: str
    name: str
    role: str

    # customers only
    points: Optional[int] = None

    # retailers only
    description: Optional[str] = None
    logo: Optional[str] = None

    created_at: Optional[UtcDatetime] = None


class AuthResponse(CamelModel):
    user: AccountOut
    token: str
