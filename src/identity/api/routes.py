"""FastAPI endpoints for registration and token-based authentication."""

from fastapi import APIRouter, Depends

from identity import account
from identity.api.schemas import LoginRequest, RegisterRequest
from identity.dependencies import AuthContext, rate_limited, require_auth
from shared import responses

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_payload(result: dict) -> dict:
    return {**result, "token_type": "Bearer"}


@router.post("/register", status_code=201, dependencies=[Depends(rate_limited("public_browsing"))])
def register(body: RegisterRequest):
    result = account.register(name=body.name, email=body.email, password=body.password)
    return responses.created(_token_payload(result), "User registered successfully")


@router.post("/login", dependencies=[Depends(rate_limited("public_browsing"))])
def login(body: LoginRequest):
    result = account.login(email=body.email, password=body.password)
    return responses.success(_token_payload(result), "Login successful")


@router.post("/logout", dependencies=[Depends(rate_limited("authenticated"))])
def logout(auth: AuthContext = Depends(require_auth)):
    account.logout(auth.token.id)
    return responses.success(None, "Logged out successfully")


@router.get("/me", dependencies=[Depends(rate_limited("authenticated"))])
def me(auth: AuthContext = Depends(require_auth)):
    return responses.success(auth.user.to_response(), "User retrieved successfully")
