"""Entry point for the streamcircle server."""

import argparse
import logging
import sys

from streamcircle.api.app import create_api, run_server
from streamcircle.config import Config


def main():
    """Load configuration and serve the API, webhooks and realtime relay."""
    parser = argparse.ArgumentParser(
        description="streamcircle — self-hosted watch party backend",
    )
    parser.add_argument("--host", help="Bind address")
    parser.add_argument("--port", type=int, help="Bind port")
    parser.add_argument("--database-url", help="SQLAlchemy async database URL")
    args = parser.parse_args()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logger = logging.getLogger(__name__)

    config = Config.from_args(
        host=args.host,
        port=args.port,
        database_url=args.database_url,
    )

    errors = config.validate()
    if errors:
        for err in errors:
            logger.error(err)
        sys.exit(1)

    logger.info("Database: %s", config.database_url)
    logger.info("HLS base URL: %s", config.hls_base_url)

    app = create_api(config)
    logger.info("Listening on %s:%d", config.host, config.port)
    run_server(app, config.host, config.port)


if __name__ == "__main__":
    main()
