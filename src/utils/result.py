from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from loguru import logger

from src.utils.errors import StoreError, translate_store_error

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Resultado de uma chamada ao banco: o valor ou o erro que a interrompeu.

    Lista vazia continua sendo sucesso: quem chama sempre distingue
    "não tem nada" de "a consulta falhou".
    """

    value: Optional[T] = None
    error: Optional[StoreError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: StoreError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    def unwrap_or(self, default: T) -> T:
        return default if self.error is not None else self.value

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        if self.error is not None:
            return Result(error=self.error)
        return Result(value=fn(self.value))


def store_failure(operation: str, exc: Exception) -> Result:
    # Loga uma vez, aqui na camada de dados; quem chama decide o resto
    error = translate_store_error(exc, operation)
    logger.error(f"Error in {operation}: {error}")
    return Result.failure(error)
