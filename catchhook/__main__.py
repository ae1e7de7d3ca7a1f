"""
Run the API server: python -m catchhook
"""
import uvicorn

from catchhook.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "catchhook.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
        # Keep the JSON handler installed by create_app()
        log_config=None,
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
