import uvicorn

from .config import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "mise.app:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.env.value == "local",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
