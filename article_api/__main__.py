import uvicorn

from article_api.config import settings
from article_api.main import configure_logging

if __name__ == "__main__":
    configure_logging(settings)
    uvicorn.run("article_api.main:app", host=settings.HOST, port=settings.PORT, log_config=None)
