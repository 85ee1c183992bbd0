"""
Pydantic schemas for registration, login and user payloads
"""
from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator
from uuid import UUID


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please add a name")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: UUID = Field(..., validation_alias=AliasChoices("_id", "id"), serialization_alias="_id")
    name: str
    email: str
    credits: int
    isSubscribed: bool = Field(..., validation_alias=AliasChoices("isSubscribed", "is_subscribed"))

    class Config:
        from_attributes = True
        populate_by_name = True


class AuthResponse(BaseModel):
    status: str = "success"
    token: str
    user: UserResponse
