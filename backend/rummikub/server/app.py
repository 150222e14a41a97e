import structlog

from rummikub.logic.rummikub_service import RummikubService
from rummikub.logic.settlement import Ledger
from rummikub.server.settings import EngineSettings
from shared.logging import setup_logging

logger = structlog.get_logger()


def create_service(
    settings: EngineSettings | None = None,
    ledger: Ledger | None = None,
) -> RummikubService:
    if settings is None:
        settings = EngineSettings()

    service = RummikubService(settings=settings, ledger=ledger, log_dir=settings.log_dir)
    logger.info("rummikub engine ready", max_games=settings.max_games, treasury=settings.treasury)
    return service


def get_service() -> RummikubService:
    """Service factory for production hosts; configures logging first."""
    settings = EngineSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_service(settings=settings)
