from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from blogapi.config import REFRESH_COOKIE_NAME, refresh_cookie_options, clear_cookie_options
from blogapi.database import get_db
from blogapi.dependencies import get_session_controller
from blogapi.error_handlers import error_response
from blogapi.exceptions import ValidationError, TokenExpiredError
from blogapi.models.user_model import User
from blogapi.schemas.user_schema import UserCreate, UserLogin, UserResponse, UserCreated, LoginResponse, RefreshResponse
from blogapi.services.session import SessionController
from blogapi.utils.auth import generate_password
from blogapi.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/register", summary="new user registration", response_model=UserCreated,
             description=
             """
                Creates a new user based on the data provided. The username and email address must be unique,
                and the password is stored as a salted digest.
             """,
             responses={
                 400: {"description": "Username or email already in use"},
                 422: {"description": "Fields do not meet the requirements"},
                 201: {"description": "User created"},
             },
             status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, response: Response, db: Session = Depends(get_db)):
    existing_user = db.query(User).filter(
        or_(User.username == user.username, func.lower(User.email) == func.lower(user.email))
    ).first()
    if existing_user:
        if existing_user.username == user.username:
            raise ValidationError("Username is already in use")
        raise ValidationError("Email is already in use")

    salt, password_hash = generate_password(user.password)
    new_user = User(
        username=user.username,
        email=user.email,
        salt=salt,
        password_hash=password_hash,
        first_name=user.first_name,
        last_name=user.last_name,
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info("user_registered", user_id=new_user.id)

    response.headers["Location"] = f"/user/{new_user.id}"
    return {"success": True, "message": "Successfully created user", "user": UserResponse.model_validate(new_user)}


@router.post("/login", response_model=LoginResponse, summary="User login to account",
             description="""
                User logs into the account with username or email and password.
                Returns the JWT access token in the body and sets the refresh token as an httpOnly cookie.
             """,
             responses={
                 401: {"description": "Failed to login"}
             })
def login_user(user: UserLogin, response: Response,
               controller: SessionController = Depends(get_session_controller)):
    session = controller.login(user.identifier, user.password)

    response.set_cookie(key=REFRESH_COOKIE_NAME, value=session.refresh_token, **refresh_cookie_options)
    return {"success": True, "user": UserResponse.model_validate(session.user), "accessToken": session.access_token}


@router.api_route("/refresh", methods=["GET", "POST"], response_model=RefreshResponse,
                  summary="Issues a new access token",
                  description="""
                                 Reads the refresh token from the jwt cookie and returns a new access token.
                              """,
                  responses={
                      401: {"description": "Refresh token is missing"},
                      403: {"description": "Token is expired or has been revoked"},
                      200: {"description": "Token refreshed successfully",
                            "content": {
                                "application/json": {
                                    "example": {
                                        "success": True,
                                        "accessToken": "eyJhbGciOiJSUzI1NiIsInR...",
                                    }
                                }
                            }}
                  })
def refresh_token(refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE_NAME),
                  controller: SessionController = Depends(get_session_controller)):
    try:
        session = controller.refresh(refresh_cookie)
    except TokenExpiredError as exc:
        # The expired token is already gone from the store; drop it from the client too
        expired_response = error_response(exc.status_code, exc.detail)
        expired_response.delete_cookie(REFRESH_COOKIE_NAME, **clear_cookie_options)
        return expired_response

    return {"success": True, "accessToken": session.access_token}


@router.post("/logout",
             summary="Logging out of your user account",
             description="""
                            Revokes the refresh token carried by the jwt cookie and clears the cookie.
                          """,
             responses={
                 200: {"description": "User logged out successfully",
                       "content": {"application/json": {"example": {"success": True}}}},
                 204: {"description": "Nothing to revoke"},
             })
def logout(refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE_NAME),
           controller: SessionController = Depends(get_session_controller)):
    if controller.logout(refresh_cookie):
        response = JSONResponse(status_code=status.HTTP_200_OK, content={"success": True})
    else:
        response = Response(status_code=status.HTTP_204_NO_CONTENT)

    response.delete_cookie(REFRESH_COOKIE_NAME, **clear_cookie_options)
    return response
