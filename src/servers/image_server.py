# src/servers/image_server.py

import os

from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse
from fastapi.middleware.cors import CORSMiddleware

from src.storage import StorageConfig
from src.utils.logging import setup_global_logging
from src.utils.tracing import setup_tracing, setup_logger_with_tracing

# Setup tracing and logging
setup_tracing("image_server", enable_console_export=False)
LOGGER = setup_logger_with_tracing(__name__, service_name="image_server")

IMAGE_SERVER_PORT = int(os.getenv("IMAGE_SERVER_PORT", "8010"))


def create_app(config: StorageConfig) -> FastAPI:
    """Build the app serving charts kept by the local image store."""
    chart_dir = config.chart_dir
    chart_dir.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title="Chart Image Server", version="1.0.0")

    # Chart URLs are embedded by chat frontends on other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {
            "service": "Chart Image Server",
            "status": "running",
            "chart_directory": str(chart_dir.absolute()),
            "endpoints": {
                "get_chart": "/chart/{filename}",
                "list_charts": "/charts"
            }
        }

    @app.get("/chart/{filename}")
    def get_chart(filename: str):
        """
        Serve a chart image by filename.

        Example:
            GET http://localhost:8010/chart/2026101912304aB3dE5fG7h.png
        """
        # Only plain .png names inside the chart directory
        if not filename.endswith('.png') or '/' in filename or '\\' in filename or filename.startswith('.'):
            LOGGER.warning(f"Invalid filename requested: {filename}")
            raise HTTPException(status_code=400, detail="Invalid filename")

        filepath = chart_dir / filename
        if not filepath.is_file():
            LOGGER.warning(f"Chart not found: {filename}")
            raise HTTPException(status_code=404, detail=f"Chart {filename} not found")

        LOGGER.info(f"Serving chart: {filename}")
        return FileResponse(
            filepath,
            media_type="image/png",
            headers={
                "Cache-Control": "public, max-age=3600",
                "Content-Disposition": f"inline; filename={filename}"
            }
        )

    @app.get("/charts")
    def list_charts():
        """List stored charts, newest first."""
        charts = sorted(chart_dir.glob("*.png"), key=lambda chart: chart.stat().st_mtime, reverse=True)
        chart_list = [
            {
                "filename": chart.name,
                "size_bytes": chart.stat().st_size,
                "url": f"/chart/{chart.name}",
                "modified": chart.stat().st_mtime
            }
            for chart in charts
        ]

        return {
            "chart_count": len(chart_list),
            "charts": chart_list
        }

    return app


if __name__ == "__main__":
    import uvicorn

    setup_global_logging()
    config = StorageConfig.from_env()
    LOGGER.info(f"Starting Chart Image Server on http://localhost:{IMAGE_SERVER_PORT}")
    LOGGER.info(f"Serving images from: {config.chart_dir.absolute()}")

    uvicorn.run(
        create_app(config),
        host="0.0.0.0",
        port=IMAGE_SERVER_PORT,
        log_level="info"
    )
