from __future__ import annotations
import logging
import uvicorn
from git_packages.infrastructure.config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    """Configure logging and serve the API with uvicorn."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    configured = [
        key for key in ("github", "gitlab", "bitbucket")
        if getattr(settings, f"{key}_token") is not None
    ]
    logger.info("Provider tokens configured for: %s", ", ".join(configured) or "none")
    uvicorn.run(
        "git_packages.interface.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
