"""Run the relay API with uvicorn: `python -m leena_core.api`."""

import uvicorn

from leena_core.config.settings import settings


def main() -> None:
    uvicorn.run(
        "leena_core.api.service:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
