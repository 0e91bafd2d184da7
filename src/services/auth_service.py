"""
Autenticação sobre o mesmo banco: cadastro, login, logout, consulta de
sessão e um stream de notificações de mudança de sessão.

Tokens são JWT (python-jose) com o id da AuthSession no claim "jti";
o logout apaga a linha e o token deixa de valer mesmo antes do "exp".
"""
from datetime import timedelta
from enum import Enum
from typing import Callable, List, Optional

from jose import JWTError, jwt
from loguru import logger
from passlib.context import CryptContext
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from src.db.session import Store
from src.models.study_set import utcnow
from src.models.user import AuthSession, User
from src.schemas.auth_schemas import AuthToken, UserIdentity
from src.utils.config import settings
from src.utils.errors import AuthenticationError, ConstraintError, StoreError, translate_store_error
from src.utils.result import Result, store_failure

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthListener = Callable[[AuthEvent, Optional[UserIdentity]], None]


class Subscription:
    """Inscrição num AuthClient. Use com `with` para garantir o unsubscribe."""

    def __init__(self, client: "AuthClient", listener: AuthListener):
        self._client = client
        self._listener = listener
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._client._remove_listener(self._listener)
            self.active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()


class AuthClient:
    def __init__(
        self,
        store: Store,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_minutes: Optional[int] = None,
    ):
        self.store = store
        self.secret_key = secret_key or settings.JWT_SECRET_KEY
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.expire_minutes = expire_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
        self._listeners: List[AuthListener] = []

    # --- notificações ---

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _remove_listener(self, listener: AuthListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: AuthEvent, user: Optional[UserIdentity]):
        for listener in list(self._listeners):
            try:
                listener(event, user)
            except Exception:
                # Um listener quebrado não derruba os outros
                logger.exception(f"Auth listener failed on {event.value}")

    # --- operações ---

    async def sign_up(self, email: str, password: str) -> Result[UserIdentity]:
        email = email.strip().lower()
        try:
            with self.store.session() as session:
                existing = session.exec(select(User).where(User.email == email)).first()
                if existing is not None:
                    raise ConstraintError("Email already registered")

                user = User(email=email, hashed_password=pwd_context.hash(password))
                session.add(user)
                session.commit()
                session.refresh(user)
                logger.info(f"User created: {user.email} (ID: {user.id})")
                return Result.success(UserIdentity(id=user.id, email=user.email))
        except (StoreError, SQLAlchemyError) as e:
            return store_failure("sign_up", e)

    async def sign_in(self, email: str, password: str) -> Result[AuthToken]:
        email = email.strip().lower()
        try:
            with self.store.session() as session:
                user = session.exec(select(User).where(User.email == email)).first()
                if user is None or not pwd_context.verify(password, user.hashed_password):
                    raise AuthenticationError("Incorrect email or password")

                expires_at = utcnow() + timedelta(minutes=self.expire_minutes)
                auth_session = AuthSession(user_id=user.id, expires_at=expires_at)
                session.add(auth_session)
                session.commit()

                identity = UserIdentity(id=user.id, email=user.email)
                token = jwt.encode(
                    {"sub": user.id, "email": user.email, "jti": auth_session.id, "exp": expires_at},
                    self.secret_key,
                    algorithm=self.algorithm,
                )
        except (StoreError, SQLAlchemyError) as e:
            return store_failure("sign_in", e)

        self._emit(AuthEvent.SIGNED_IN, identity)
        return Result.success(AuthToken(access_token=token, user=identity))

    async def sign_out(self, access_token: str) -> Result[bool]:
        claims = self._decode(access_token)
        if claims is None:
            return store_failure("sign_out", AuthenticationError("Could not validate credentials"))
        try:
            with self.store.session() as session:
                auth_session = session.get(AuthSession, claims["jti"])
                if auth_session is not None:
                    session.delete(auth_session)
                    session.commit()
        except SQLAlchemyError as e:
            return store_failure("sign_out", e)

        self._emit(AuthEvent.SIGNED_OUT, UserIdentity(id=claims["sub"], email=claims.get("email", "")))
        return Result.success(True)

    async def get_user(self, access_token: Optional[str]) -> Optional[UserIdentity]:
        """
        Usuário dono do token, ou None se não há sessão válida.
        Falha de transporte levanta StoreError (não é "sem sessão").
        """
        if not access_token:
            return None
        claims = self._decode(access_token)
        if claims is None:
            return None
        try:
            with self.store.session() as session:
                if session.get(AuthSession, claims["jti"]) is None:
                    return None
                user = session.get(User, claims["sub"])
                if user is None:
                    return None
                return UserIdentity(id=user.id, email=user.email)
        except SQLAlchemyError as e:
            raise translate_store_error(e, "get_user") from e

    def _decode(self, access_token: str) -> Optional[dict]:
        try:
            claims = jwt.decode(access_token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        if not claims.get("sub") or not claims.get("jti"):
            return None
        return claims
