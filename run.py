"""Entry point for the EpubSpoon application."""

import logging
import subprocess
import sys

from epubspoon.config import load_config, setup_logging
from epubspoon.storage.database import initialize_database

logger = logging.getLogger(__name__)


def main() -> None:
    """Initialize the application and launch the Streamlit UI."""
    config = load_config()
    setup_logging(config.logging.level)

    # Initialize SQLite database
    initialize_database(config.storage.sqlite_path)
    logger.info("Database ready at %s", config.storage.sqlite_path)

    # Launch Streamlit
    subprocess.run(
        [
            sys.executable,
            "-m",
            "streamlit",
            "run",
            "epubspoon/ui/app.py",
            "--server.port",
            "8501",
            "--server.headless",
            "true",
        ],
        check=False,
    )


if __name__ == "__main__":
    main()
