"""FastAPI application entry point for uvicorn."""

import os

import uvicorn

from popserver.app_factory import DEFAULT_API_PORT, create_app

# uvicorn looks for this global
app = create_app()


def main() -> None:
    """Run the application using uvicorn when executed directly."""
    port = int(os.getenv("POP_API_PORT", str(DEFAULT_API_PORT)))
    is_production = os.getenv("PRODUCTION", "false").lower() == "true"

    uvicorn.run(
        "popserver.main:app",
        host="0.0.0.0",
        port=port,
        reload=not is_production,
        log_level="info",
        loop="asyncio" if os.name == "nt" else "auto",
    )


if __name__ == "__main__":
    main()
