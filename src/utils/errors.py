"""
Taxonomia de erros das chamadas ao banco.

Toda operação de acesso a dados devolve a falha embrulhada num Result
(src.utils.result). Ninguém abaixo da camada HTTP levanta essas exceções,
a não ser que o chamador faça unwrap().
"""
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError


class StoreError(Exception):
    """Base: algo deu errado falando com o banco."""

    def __init__(self, message: str, *, operation: str = ""):
        super().__init__(message)
        self.message = message
        self.operation = operation

    def __str__(self):
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class StoreUnavailableError(StoreError):
    """Falha de transporte/conexão (banco fora, credencial inválida...)."""


class NotFoundError(StoreError):
    """A linha pedida não existe."""


class ConstraintError(StoreError):
    """Insert rejeitado: validação ou constraint de integridade."""


class AuthenticationError(StoreError):
    """Login recusado ou token inválido."""


def translate_store_error(exc: Exception, operation: str = "") -> StoreError:
    if isinstance(exc, StoreError):
        if operation and not exc.operation:
            exc.operation = operation
        return exc
    if isinstance(exc, IntegrityError):
        return ConstraintError(str(exc.orig), operation=operation)
    if isinstance(exc, NoResultFound):
        return NotFoundError(str(exc), operation=operation)
    if isinstance(exc, SQLAlchemyError):
        return StoreUnavailableError(str(exc), operation=operation)
    raise exc
