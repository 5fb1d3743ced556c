"""
Run the API with uvicorn using HOST/PORT from settings.

Run: python -m socialsphere
Set RELOAD=true to enable autoreload while developing.
"""
import uvicorn

from socialsphere.core.config import settings


def main() -> None:
    uvicorn.run(
        "socialsphere.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
