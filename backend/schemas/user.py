from pydantic import EmailStr, Field, model_validator
from typing import Optional
from datetime import datetime

from schemas.common import ORMBase

# Shared properties for user models
class UserBase(ORMBase):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str = Field(min_length=1)

# Schema for user registration requests
class UserCreate(UserBase):
    password: str = Field(min_length=6)
    name: Optional[str] = None

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    name: Optional[str] = None
    created_at: Optional[datetime] = None

# Identity attached to orders and reviews
class UserSummary(ORMBase):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None

# Schema for partial profile updates; at least one field is required
class ProfileUpdate(ORMBase):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None

    @model_validator(mode="after")
    def _at_least_one(self):
        if not self.name and not self.email:
            raise ValueError("At least one field (name or email) must be provided")
        return self

class PasswordChange(ORMBase):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)

class RefreshRequest(ORMBase):
    refresh_token: str = Field(min_length=1)

# Schema for JWT token pair responses
class TokenPair(ORMBase):
    token: str
    refresh_token: str

# Register / login response
class AuthResponse(TokenPair):
    user: UserResponse
