"""Statement Workbook - review and repair spreadsheets extracted from bank statements."""

from statement_workbook.api import app, create_app

__all__ = ["app", "create_app"]
__version__ = "0.1.0"


def main() -> None:
    """Run the FastAPI server using uvicorn."""
    import uvicorn

    from statement_workbook.config import settings

    uvicorn.run(
        "statement_workbook.api:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
