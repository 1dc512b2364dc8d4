"""Shared API dependencies for authentication and common functionality."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from verser.core.settings import settings
from verser.models import User
from verser.services.membership import MembershipStore
from verser.services.relay import RelayHub
from verser.storage import Storage, get_storage

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for the shared storage backend
StorageDep = Annotated[Storage, Depends(get_storage)]


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    storage: StorageDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Tokens are issued elsewhere; this only verifies the signature and reads
    the numeric user id from the ``sub`` claim.

    Raises:
        HTTPException: If token is invalid or user not found
    """
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise _credentials_error() from err

    subject = payload.get("sub")
    if subject is None:
        raise _credentials_error()
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as err:
        raise _credentials_error() from err

    user = await storage.get_user(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_membership_store(storage: StorageDep) -> MembershipStore:
    """Membership facade bound to the request's storage backend."""
    return MembershipStore(storage)


MembershipDep = Annotated[MembershipStore, Depends(get_membership_store)]


@lru_cache
def get_relay_hub() -> RelayHub:
    """Return the process-wide relay hub."""
    return RelayHub(get_storage())


RelayHubDep = Annotated[RelayHub, Depends(get_relay_hub)]
