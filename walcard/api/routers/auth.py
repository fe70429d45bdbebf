# walcard/api/routers/auth.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from walcard.api.deps import get_context
from walcard.context import AppContext
from walcard.domain.schemas import AccountInfo, ActionResult, LoginResult, LoginStatus
from walcard.services.auth_service import normalize_phone

router = APIRouter(prefix="/auth", tags=["auth"])


class PhoneIn(BaseModel):
    phone: str = Field(..., min_length=1)
    country_code: str | None = None


class SendOtpIn(PhoneIn):
    full_name: str | None = None


class VerifyOtpIn(PhoneIn):
    token: str


class PhoneCheckOut(BaseModel):
    phone: str
    exists: bool
    account: AccountInfo | None = None


@router.post("/check-phone", response_model=PhoneCheckOut)
def check_phone(payload: PhoneIn, ctx: AppContext = Depends(get_context)):
    phone = normalize_phone(payload.country_code, payload.phone)
    info = ctx.auth_service.check_user_exists(phone)
    return PhoneCheckOut(phone=phone, exists=info is not None, account=info)


@router.post("/otp", response_model=ActionResult)
def send_otp(payload: SendOtpIn, ctx: AppContext = Depends(get_context)):
    phone = normalize_phone(payload.country_code, payload.phone)
    return ctx.auth_service.send_otp(phone, payload.full_name)


@router.post("/otp/verify", response_model=ActionResult)
def verify_otp(payload: VerifyOtpIn, ctx: AppContext = Depends(get_context)):
    phone = normalize_phone(payload.country_code, payload.phone)
    return ctx.auth_service.verify_otp(phone, payload.token)


@router.post("/login", response_model=LoginResult)
def login(payload: PhoneIn, ctx: AppContext = Depends(get_context)):
    phone = normalize_phone(payload.country_code, payload.phone)
    return ctx.auth_service.login_user(phone)


@router.get("/status", response_model=LoginStatus)
def status(ctx: AppContext = Depends(get_context)):
    return ctx.auth_service.check_login_status()


@router.post("/refresh")
def refresh(ctx: AppContext = Depends(get_context)):
    return {"success": ctx.auth_service.refresh_user_session()}


@router.post("/logout")
def logout(ctx: AppContext = Depends(get_context)):
    return {"success": ctx.auth_service.logout_user()}
