from rich.console import Console

from src.storefront.core.services.database import DbSessionService

console = Console()


def get_db_service() -> DbSessionService:
    """Database service built from the active configuration."""
    return DbSessionService()
