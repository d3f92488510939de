# pagespeed_api/__main__.py
import uvicorn

from pagespeed_api.core.config import settings


def main() -> None:
    uvicorn.run("pagespeed_api.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
