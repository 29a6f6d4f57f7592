import uvicorn

from .config import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run("impactsim.app:create_app", factory=True, host=settings.api_host,
                port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
