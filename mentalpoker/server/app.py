"""
FastAPI Application Entry Point for mentalpoker.

This module creates and configures the FastAPI application with:
- HTTP routes for table operations and lookup-table proofs
- WebSocket endpoint for table state push
- Error mapping for rejected operations
- CORS middleware for development
"""

import logging
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mentalpoker import __version__
from mentalpoker.core.rules import TableConfig
from mentalpoker.server.routes import router
from mentalpoker.server.schemas import ErrorSchema
from mentalpoker.server.websocket import TableManager, websocket_endpoint

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(config: Optional[TableConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Default table configuration for new tables

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="mentalpoker",
        description="Heads-up hold'em without a trusted dealer",
        version=__version__,
    )
    app.state.manager = TableManager(config)

    # CORS middleware for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValueError)
    async def rejected_operation(request: Request, exc: ValueError):
        # PokerError and malformed hex both land here
        return JSONResponse(
            status_code=400,
            content=ErrorSchema(error=type(exc).__name__, detail=str(exc)).model_dump(),
        )

    app.include_router(router)
    app.websocket("/ws")(websocket_endpoint)

    logger.info("mentalpoker app created")
    return app


# Create the application instance
app = create_app()


def main():
    """Run the server (for use as entry point)."""
    import uvicorn
    uvicorn.run(
        "mentalpoker.server.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
