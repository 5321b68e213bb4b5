import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from .. import schemas
from ..database import get_repository
from ..repository import UserRepository

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": schemas.ErrorOut},
    status.HTTP_404_NOT_FOUND: {"model": schemas.ErrorOut},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": schemas.ErrorOut},
}

router = APIRouter(prefix="/users", tags=["users"], responses=ERROR_RESPONSES)

USER_NOT_FOUND = "User not found"


@router.get("", response_model=List[schemas.UserOut])
def list_users(repo: UserRepository = Depends(get_repository)):
    """Return all users."""
    return repo.list_users()


@router.post("", response_model=schemas.UserCreated)
def create_user(user_in: schemas.UserIn, repo: UserRepository = Depends(get_repository)):
    user_id = repo.create_user(user_in)
    logger.info("Created user %d", user_id)
    return schemas.UserCreated(id=user_id)


@router.put("/{user_id}", response_model=schemas.Message)
def update_user(
    user_id: int,
    user_in: schemas.UserIn,
    repo: UserRepository = Depends(get_repository),
):
    """Overwrite all fields of a user. 404 if the id does not exist."""
    if repo.update_user(user_id, user_in) == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    return schemas.Message(message="User updated")


@router.delete("/{user_id}", response_model=schemas.Message)
def delete_user(user_id: int, repo: UserRepository = Depends(get_repository)):
    if repo.delete_user(user_id) == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    return schemas.Message(message="User deleted")
