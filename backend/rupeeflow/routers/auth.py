from fastapi import APIRouter, Depends, Response, status
from fastapi.security import OAuth2PasswordRequestForm

from rupeeflow.dependencies import ACCESS_COOKIE, get_current_user, get_state
from rupeeflow.models.auth import (
    GoogleLoginIn,
    LoginIn,
    MessageOut,
    PasswordResetConfirmIn,
    PasswordResetRequestIn,
    RegisterIn,
    TokenOut,
    User,
    UserRead,
    VerifyEmailIn,
)
from rupeeflow.state import AppState


router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


def _user_read(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        name=user.name,
        email=user.email,
        email_verified=user.email_verified,
        provider=user.provider,
    )


def _token_response(response: Response, state: AppState, user: User, token: str) -> TokenOut:
    # Store token in HttpOnly cookie as well as returning it for bearer use
    is_prod = not state.settings.debug and state.settings.public_base_url.startswith("https")
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=token,
        httponly=True,
        secure=is_prod,
        samesite="none" if is_prod else "lax",
        max_age=state.settings.access_token_expire_minutes * 60,
        path="/",
    )
    return TokenOut(access_token=token, user=_user_read(user))


@router.post(
    "/register",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
)
def register(payload: RegisterIn, state: AppState = Depends(get_state)):
    """Create an account; sign-in is possible once the emailed link is used."""
    user = state.identity.register(payload.name, payload.email, payload.password)
    return MessageOut(
        message=f"We've sent a verification link to {user.email}.",
        needs_verification=True,
    )


@router.post(
    "/verify-email",
    response_model=UserRead,
    status_code=status.HTTP_200_OK,
)
def verify_email(payload: VerifyEmailIn, state: AppState = Depends(get_state)):
    return _user_read(state.identity.verify_email(payload.token))


@router.post(
    "/login",
    response_model=TokenOut,
    status_code=status.HTTP_200_OK,
)
def login(payload: LoginIn, response: Response, state: AppState = Depends(get_state)):
    user, token = state.identity.login(payload.email, payload.password)
    return _token_response(response, state, user, token)


@router.post(
    "/token",
    response_model=TokenOut,
    status_code=status.HTTP_200_OK,
)
def token(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    state: AppState = Depends(get_state),
):
    # OAuth2PasswordRequestForm uses 'username' as the email field
    user, access_token = state.identity.login(form_data.username, form_data.password)
    return _token_response(response, state, user, access_token)


@router.post(
    "/google",
    response_model=TokenOut,
    status_code=status.HTTP_200_OK,
)
async def google_login(payload: GoogleLoginIn, response: Response, state: AppState = Depends(get_state)):
    user, access_token = await state.identity.login_with_google(payload.id_token)
    return _token_response(response, state, user, access_token)


@router.post(
    "/password-reset",
    response_model=MessageOut,
    status_code=status.HTTP_200_OK,
)
def request_password_reset(payload: PasswordResetRequestIn, state: AppState = Depends(get_state)):
    state.identity.request_password_reset(payload.email)
    return MessageOut(message="Reset link sent to your email.")


@router.post(
    "/password-reset/confirm",
    response_model=MessageOut,
    status_code=status.HTTP_200_OK,
)
def confirm_password_reset(payload: PasswordResetConfirmIn, state: AppState = Depends(get_state)):
    state.identity.reset_password(payload.token, payload.password)
    return MessageOut(message="Password updated. Please sign in.")


@router.get(
    "/me",
    response_model=UserRead,
    status_code=status.HTTP_200_OK,
)
def me(current_user: User = Depends(get_current_user)):
    return _user_read(current_user)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
)
def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    state: AppState = Depends(get_state),
):
    state.identity.logout(current_user.id)
    response.delete_cookie(key=ACCESS_COOKIE, path="/")
    return None
