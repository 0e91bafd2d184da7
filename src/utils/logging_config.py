import sys
from loguru import logger


def configure_logging(level: str = "INFO"):
    # Um único sink em stderr, chamado no lifespan da API
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{function} - {message}",
    )
