import uvicorn

from supply_desk.config import Settings


def main() -> None:
    settings = Settings()
    uvicorn.run(
        "supply_desk.asgi:app",
        host=settings.server_host,
        port=settings.server_port,
    )


if __name__ == "__main__":
    main()
