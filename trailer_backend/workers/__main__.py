"""Entry point: python -m trailer_backend.workers"""

import asyncio

from dotenv import load_dotenv

from trailer_backend.configs import get_settings
from trailer_backend.observability import configure_logging
from trailer_backend.workers.runner import run_worker


def main() -> None:
    load_dotenv()
    settings = get_settings()
    configure_logging(settings.log_level)
    asyncio.run(run_worker(settings))


if __name__ == "__main__":
    main()
