import uvicorn

from rewriter.core.app_factory import create_app
from rewriter.core.config import settings

app = create_app()


def run() -> None:
    """Serve the API with uvicorn (``rewriter-api`` console script)."""
    uvicorn.run(
        "rewriter.main:app",
        host=settings.app.host,
        port=settings.app.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
