"""Initialize logging and the authorization database as a standalone step."""

import logging

from authcore.config import settings
from authcore.core.database import init_db
from authcore.core.logging import configure_logging


def main() -> None:
    configure_logging(settings)
    logger = logging.getLogger("authcore")
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} ({settings.ENVIRONMENT})")
    init_db()


if __name__ == "__main__":
    main()
