from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional


def not_blank(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Field must not be empty")
    return value


def username_without_at(value: Optional[str]) -> Optional[str]:
    # "@" marks an email at login, so usernames may not carry one
    if value is not None and "@" in value:
        raise ValueError("Username must not contain '@'")
    return value


class UserCreate(BaseModel):
    username: str = Field(..., min_length=6, max_length=30, example="alice_writes",
                          description="Unique username of the user")
    email: EmailStr = Field(..., example="alice@example.com", description="Unique email of the user")
    password: str = Field(..., min_length=6, max_length=1024, example="secret1",
                          description="Password for the user account")
    first_name: str = Field(..., example="Alice", description="First name of the user")
    last_name: str = Field(..., example="Liddell", description="Last name of the user")

    _validate_names = field_validator("username", "first_name", "last_name")(not_blank)
    _validate_username = field_validator("username")(username_without_at)


class UserLogin(BaseModel):
    identifier: str = Field(..., validation_alias=AliasChoices("identifier", "username", "email"),
                            example="alice@example.com", description="Username or email of the user")
    password: str = Field(..., example="secret1", description="Password for the user account")


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., example=1, description="User identification number")
    username: str = Field(..., example="alice_writes", description="Username")
    email: EmailStr = Field(..., example="alice@example.com", description="User's email address")
    first_name: str = Field(..., example="Alice")
    last_name: str = Field(..., example="Liddell")
    is_admin: bool = Field(..., example=False, description="Whether the user administers the platform")
    is_verified_author: bool = Field(..., example=True, description="Whether the user is a verified author")
    created_at: Optional[datetime] = Field(None, example="2025-09-03T12:34:56Z",
                                           description="Date of creation of the user account")
    last_login: Optional[datetime] = Field(None, example="2025-09-03T12:34:56Z",
                                           description="Date of the user's last login")


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=6, max_length=30)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    _validate_names = field_validator("username", "first_name", "last_name")(not_blank)
    _validate_username = field_validator("username")(username_without_at)


class PasswordUpdate(BaseModel):
    old_password: str = Field(..., example="secret1", description="Current password")
    password: str = Field(..., min_length=6, max_length=1024, example="secret2", description="New password")


class UserCreated(BaseModel):
    success: bool = True
    message: str = Field(..., example="Successfully created user")
    user: UserResponse


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    user: UserResponse
    access_token: str = Field(..., alias="accessToken", example="eyJhbGciOiJSUzI1NiIsInR",
                              description="JWT access token, kept in memory by the client")


class RefreshResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    access_token: str = Field(..., alias="accessToken", example="eyJhbGciOiJSUzI1NiIsInR",
                              description="New JWT access token")


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool = True
    detail: str = Field(..., example="Operation completed successfully",
                        description="Message displayed after the command has been successfully executed")
