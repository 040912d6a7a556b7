"""Schemas for administrator auth and submitter registration."""

from pydantic import BaseModel, EmailStr, Field


class AdminRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class AdminLogin(BaseModel):
    email: EmailStr
    password: str


class AdminRead(BaseModel):
    id: int
    name: str
    email: str
    role: int

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    id: int
    name: str
    role: int
    token: str


class SubmitterRegisterRequest(BaseModel):
    identifier: str = Field(..., min_length=3, max_length=255)
    form_id: int


class SubmitterRegisterResponse(BaseModel):
    message: str
    identifier: str
    is_existing_user: bool


class SubmitterVerifyRequest(BaseModel):
    identifier: str = Field(..., min_length=3, max_length=255)
    external_uid: str = Field(..., min_length=1, max_length=255)


class OtpRequest(BaseModel):
    identifier: str = Field(..., min_length=3, max_length=255)


class OtpVerifyRequest(BaseModel):
    identifier: str = Field(..., min_length=3, max_length=255)
    otp: str = Field(..., min_length=4, max_length=10)


class OtpVerifyResponse(BaseModel):
    message: str
    identifier: str
    token: str
