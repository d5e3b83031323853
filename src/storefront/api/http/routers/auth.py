"""Registration, login, profile and one-time code endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from src.storefront.api.http.deps import (
    any_user,
    get_jwt_service,
    get_otp_service,
    get_user_service,
)
from src.storefront.core.models import Principal
from src.storefront.core.services.jwt_service import JwtService
from src.storefront.core.services.otp_service import OtpService
from src.storefront.core.services.user_service import UserService
from src.storefront.entities.core.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None
    admin_id: str | None = Field(default=None, alias="adminId")


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class SendOtpRequest(BaseModel):
    email: str | None = None


class VerifyOtpRequest(BaseModel):
    email: str | None = None
    otp: str | int | None = None


class UserSummary(BaseModel):
    id: int
    username: str
    email: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, username=user.username, email=user.email, role=user.role.value)


class UserProfile(UserSummary):
    admin_id: str | None = Field(default=None, serialization_alias="adminId")
    created_at: datetime = Field(serialization_alias="createdAt")

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role.value,
            admin_id=user.admin_id,
            created_at=user.created_at,
        )


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class LoginResponse(MessageResponse):
    token: str
    user: UserSummary


class MeResponse(BaseModel):
    success: bool = True
    user: UserProfile


@router.post("/register", response_model=MessageResponse, status_code=201)
def register(
    body: RegisterRequest, users: UserService = Depends(get_user_service)
) -> MessageResponse:
    """Create an account. Admin accounts must carry an ``adminId``."""
    users.register(
        username=body.username,
        email=body.email,
        password=body.password,
        role=body.role,
        admin_id=body.admin_id,
    )
    return MessageResponse(message="Registration successful")


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    users: UserService = Depends(get_user_service),
    jwt_service: JwtService = Depends(get_jwt_service),
) -> LoginResponse:
    token, user = users.login(body.email, body.password, jwt_service)
    return LoginResponse(
        message="Login successful", token=token, user=UserSummary.from_user(user)
    )


@router.get("/me", response_model=MeResponse)
def me(
    principal: Principal = Depends(any_user),
    users: UserService = Depends(get_user_service),
) -> MeResponse:
    return MeResponse(user=UserProfile.from_user(users.me(principal)))


@router.post("/send-otp", response_model=MessageResponse)
async def send_otp(
    body: SendOtpRequest, otp: OtpService = Depends(get_otp_service)
) -> MessageResponse:
    await otp.send(body.email)
    return MessageResponse(message="OTP sent to email")


@router.post("/verify-otp", response_model=MessageResponse)
async def verify_otp(
    body: VerifyOtpRequest, otp: OtpService = Depends(get_otp_service)
) -> MessageResponse:
    await otp.verify(body.email, body.otp)
    return MessageResponse(message="OTP verified successfully")
