# walcard/api/deps.py
from fastapi import Depends, HTTPException, Request

from walcard.context import AppContext
from walcard.domain import messages
from walcard.domain.schemas import UserSession


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def require_session(ctx: AppContext = Depends(get_context)) -> UserSession:
    session = ctx.session_service.get_session()
    if not session or not session.is_approved:
        raise HTTPException(status_code=401, detail=messages.LOGIN_REQUIRED)
    return session
