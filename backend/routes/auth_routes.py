from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from backend.auth.authenticator import AuthFailureReason, AuthSuccess
from backend.auth.context import AuthContext
from backend.auth.dependencies import get_auth_context
from backend.core import config

router = APIRouter(tags=['auth'])

FAILURE_STATUS_CODES = {
    AuthFailureReason.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    AuthFailureReason.USER_NOT_FOUND: status.HTTP_401_UNAUTHORIZED,
    AuthFailureReason.INVALID_PASSWORD: status.HTTP_401_UNAUTHORIZED,
    AuthFailureReason.DATABASE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class LoginRequest(BaseModel):
    email: str = ''
    password: str = ''


class SessionUserResponse(BaseModel):
    id: int | str
    email: str
    name: str
    role: str


class LoginResponse(BaseModel):
    user: SessionUserResponse
    redirect: str


@router.get('/login')
def login_page(auth: AuthContext = Depends(get_auth_context)):
    if auth.session is not None:
        return RedirectResponse(url=config.DEFAULT_PAGE, status_code=status.HTTP_303_SEE_OTHER)
    return {'message': 'Sign in by posting email and password to /auth/login.'}


@router.post('/login', response_model=LoginResponse)
def login(data: LoginRequest, auth: AuthContext = Depends(get_auth_context)):
    result = auth.sign_in(data.email, data.password)
    if not isinstance(result, AuthSuccess):
        raise HTTPException(status_code=FAILURE_STATUS_CODES[result.reason], detail=result.message)
    return LoginResponse(
        user=SessionUserResponse(**result.user.to_dict()),
        redirect=config.DEFAULT_PAGE,
    )


@router.post('/logout')
def logout(auth: AuthContext = Depends(get_auth_context)):
    auth.sign_out()
    return {'status': 'signed_out', 'redirect': config.LOGIN_PAGE}


@router.get('/me', response_model=SessionUserResponse)
def me(auth: AuthContext = Depends(get_auth_context)):
    if auth.session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Not authenticated')
    return SessionUserResponse(**auth.session.to_dict())
