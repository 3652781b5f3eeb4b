"""Run the task list API with uvicorn."""

import uvicorn

from .deps import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "tasklist.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
