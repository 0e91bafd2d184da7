"""
Dependências compartilhadas das rotas
"""
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.db.session import Store
from src.schemas.auth_schemas import UserIdentity
from src.services.auth_service import AuthClient
from src.utils.errors import AuthenticationError, ConstraintError, NotFoundError, StoreError
from src.utils.result import Result

# auto_error=False: as rotas de página decidem sozinhas o que fazer sem token
security = HTTPBearer(auto_error=False)


def get_store(request: Request) -> Store:
    # O Store criado no lifespan
    return request.app.state.store


def get_auth(request: Request) -> AuthClient:
    return request.app.state.auth


def get_optional_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_access_token(token: Optional[str] = Depends(get_optional_token)) -> str:
    if token is None:
        raise _unauthorized("Not authenticated")
    return token


async def get_current_user(
    token: str = Depends(get_access_token),
    auth: AuthClient = Depends(get_auth),
) -> UserIdentity:
    try:
        user = await auth.get_user(token)
    except StoreError as e:
        raise http_error(e)
    if user is None:
        raise _unauthorized("Could not validate credentials")
    return user


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def http_error(error: StoreError) -> HTTPException:
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, AuthenticationError):
        return _unauthorized(error.message)
    if isinstance(error, ConstraintError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Store unavailable")


def unwrap_or_raise(result: Result):
    if not result.ok:
        raise http_error(result.error)
    return result.value


# Atalhos
StoreDep = Annotated[Store, Depends(get_store)]
AuthDep = Annotated[AuthClient, Depends(get_auth)]
CurrentUser = Annotated[UserIdentity, Depends(get_current_user)]
AccessToken = Annotated[str, Depends(get_access_token)]
OptionalToken = Annotated[Optional[str], Depends(get_optional_token)]
