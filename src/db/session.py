from contextlib import contextmanager
from typing import Iterator, Optional

from loguru import logger
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from src.utils.config import settings

# IMPORTANTE: Importe os modelos aqui para registrá-los no SQLModel
from src.models.user import User, AuthSession
from src.models.study_set import StudySet
from src.models.flashcard import Flashcard
from src.models.starred_flashcard import StarredFlashcard


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # Sem isso o SQLite ignora as foreign keys e os erros de constraint somem
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """Handle explícito para o banco relacional.

    Substitui o engine global: quem precisa do banco recebe o Store.

        store = Store("sqlite://").connect()
        with store.session() as session:
            ...
        store.dispose()

    Também funciona como context manager (connect na entrada, dispose na saída).
    """

    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None):
        self.database_url = database_url or settings.DATABASE_URL
        self.echo = settings.SQL_ECHO if echo is None else echo
        self.engine: Optional[Engine] = None

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def connected(self) -> bool:
        return self.engine is not None

    def connect(self) -> "Store":
        if self.engine is not None:
            return self

        kwargs = {"echo": self.echo}
        if self.is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
            # Banco em memória: uma conexão só, senão cada sessão vê um banco vazio
            if self.database_url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.database_url, **kwargs)
        if self.is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.init_db()
        logger.info(f"Store connected: {self.engine.url.render_as_string(hide_password=True)}")
        return self

    def init_db(self):
        # Agora o create_all "enxerga" todas as tabelas
        SQLModel.metadata.create_all(self._require_engine())

    def dispose(self):
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            logger.info("Store disposed")

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self._require_engine()) as session:
            yield session

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise RuntimeError("Store is not connected; call connect() first")
        return self.engine

    def __enter__(self) -> "Store":
        return self.connect()

    def __exit__(self, exc_type, exc, tb):
        self.dispose()
