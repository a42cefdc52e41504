"""Request and response models of the auth module."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictInt

from src.api.constants import USER_CREATED_MESSAGE

type Country = Literal["CANADA", "INDIA", "UK", "USA"]


class CreateUserRequest(BaseModel):
    """Body of ``POST /auth/user``."""

    user_email: EmailStr = Field(..., description="Email of the user to create")
    user_role: StrictInt = Field(..., description="Numeric role of the user")
    user_country: Country = Field(..., description="Country the user is based in")


class CreateUserResponse(BaseModel):
    """Created user, as returned to the client."""

    model_config = ConfigDict(from_attributes=True)

    user_id: int
    user_email: str
    user_role: int
    user_country: Country | None
    firebase_uid: str


class CreateUserEnvelope(BaseModel):
    """Response body of ``POST /auth/user``."""

    status: int = 201
    message: str = USER_CREATED_MESSAGE
    data: CreateUserResponse
