from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from blogapi.config import REFRESH_COOKIE_NAME, clear_cookie_options
from blogapi.dependencies import RequestContext, get_request_context, require_admin
from blogapi.database import get_db
from blogapi.exceptions import AuthorizationError, NotFoundError, ValidationError
from blogapi.models.user_model import User
from blogapi.schemas.user_schema import UserResponse, UserUpdate, PasswordUpdate, MessageResponse
from blogapi.utils.auth import check_password_validity, generate_password
from blogapi.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/", response_model=list[UserResponse],
            summary="Listing all users",
            description="""
                            Returns every user account. Only available to administrators.
                        """,
            responses={
                401: {"description": "Not authenticated"},
                403: {"description": "Insufficient permissions"}
            })
def list_users(db: Session = Depends(get_db), context: RequestContext = Depends(require_admin)):
    return db.query(User).order_by(User.id).all()


@router.get("/me", response_model=UserResponse,
            summary="Displaying user information",
            description="""
                            Displays the profile and role flags of the logged-in user
                        """,
            responses={
                401: {"description": "Not authenticated"},
                403: {"description": "Access token is expired or has been revoked"}
            })
def get_current_user(context: RequestContext = Depends(get_request_context)):
    return context.user


@router.patch("/update", response_model=UserResponse,
              summary="Returns updated user data",
              description="""
                            Updates the username, email or name of the logged-in user and returns the edited profile.
                          """,
              responses={
                  400: {"description": "Username or email already in use"},
                  401: {"description": "Not authenticated"},
                  422: {"description": "Fields do not meet the requirements"}
              }
              )
def update_profile(update_data: UserUpdate, db: Session = Depends(get_db),
                   context: RequestContext = Depends(get_request_context)):
    user = context.user

    if update_data.username or update_data.email:
        existing_user = db.query(User).filter(
            User.id != user.id,
            or_(User.username == update_data.username, func.lower(User.email) == func.lower(update_data.email))
        ).first()
        if existing_user:
            if update_data.username and existing_user.username == update_data.username:
                raise ValidationError("Username is already in use")
            raise ValidationError("Email is already in use")

    for field_name, value in update_data.model_dump(exclude_none=True).items():
        setattr(user, field_name, value)

    db.commit()
    db.refresh(user)
    return user


@router.patch("/password", response_model=MessageResponse,
              summary="Changing the account password",
              description="""
                            Replaces the password of the logged-in user after checking the current one.
                          """,
              responses={
                  400: {"description": "Password does not match"},
                  401: {"description": "Not authenticated"}
              })
def update_password(password_data: PasswordUpdate, db: Session = Depends(get_db),
                    context: RequestContext = Depends(get_request_context)):
    user = context.user
    if not check_password_validity(password_data.old_password, user.password_hash, user.salt):
        raise ValidationError("Password does not match")

    user.salt, user.password_hash = generate_password(password_data.password)
    db.commit()
    return {"success": True, "detail": "Successfully updated password"}


@router.delete("/delete", response_model=MessageResponse,
               summary="Deleting a user account",
               description="""
                           Deletes the user account together with its refresh tokens, this step is irreversible.
                         """,
               responses={
                  401: {"description": "Not authenticated"}
              }
)
def delete_profile(db: Session = Depends(get_db), context: RequestContext = Depends(get_request_context)):
    user_id = context.user.id
    db.delete(context.user)
    db.commit()
    logger.info("user_deleted", user_id=user_id)

    response = JSONResponse(content={"success": True, "detail": "User deleted"})
    response.delete_cookie(REFRESH_COOKIE_NAME, **clear_cookie_options)
    return response


@router.get("/{user_id}", response_model=UserResponse,
            summary="Displaying a user by id",
            description="""
                            Displays a user account. Users may read their own account, administrators any account.
                        """,
            responses={
                401: {"description": "Not authenticated"},
                403: {"description": "Insufficient permissions"},
                404: {"description": "Unable to find user"}
            })
def get_user(user_id: int, db: Session = Depends(get_db), context: RequestContext = Depends(get_request_context)):
    if context.user.id != user_id and not context.user.is_admin:
        raise AuthorizationError()

    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError()
    return user
