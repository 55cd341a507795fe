from fastapi import APIRouter, Depends, HTTPException, Response, status

from auth import CurrentUser, get_current_user
from config import settings
from errors import AuthError
from schemas import OAuthUrlResponse, SignInRequest, SignInResponse, SignUpRequest, SignUpResponse
from services import auth_service
from services.checkout_service import checkout_sessions

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(payload: SignUpRequest) -> SignUpResponse:
    try:
        result = await auth_service.sign_up(
            payload.email, payload.password, name=payload.name, phone=payload.phone
        )
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SignUpResponse(**result)


@router.post("/signin", response_model=SignInResponse)
async def sign_in(payload: SignInRequest) -> SignInResponse:
    try:
        result = await auth_service.sign_in(payload.email, payload.password)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return SignInResponse(**result)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(user: CurrentUser = Depends(get_current_user)) -> Response:
    try:
        await auth_service.sign_out(user.access_token)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    checkout_sessions.discard(user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/google", response_model=OAuthUrlResponse)
async def google_sign_in_url() -> OAuthUrlResponse:
    return OAuthUrlResponse(url=auth_service.google_oauth_url(f"{settings.site_url}/auth/callback"))
