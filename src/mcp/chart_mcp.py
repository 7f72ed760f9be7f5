# src/mcp/chart_mcp.py

import hashlib
import json
import os
from typing import Annotated, Any, Optional

import anyio
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from src.charts import (
    SERIES_TYPES,
    ChartDataError,
    ChartOption,
    assemble_chart_option,
    classify,
    validate_chart_data
)
from src.charts.errors import HIERARCHICAL_EXAMPLE, TABULAR_EXAMPLE
from src.charts.render import render_chart_base64
from src.storage import ImageUploadError, StorageConfig, create_image_store
from src.utils.cache import TTLCache
from src.utils.logging import setup_global_logging
from src.utils.tracing import setup_tracing, setup_logger_with_tracing

# Setup tracing and logging
setup_tracing("mcp-server-charts", enable_console_export=False)
LOGGER = setup_logger_with_tracing(__name__, service_name="mcp-server-charts")

SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("SERVER_PORT", "8081"))
MCP_TRANSPORT = os.getenv("MCP_TRANSPORT", "sse")
CACHE_TTL_SECONDS = int(os.getenv("CHART_CACHE_TTL_SECONDS", "1800"))

# Initialize FastMCP; unexpected tool exceptions reach clients without their details
mcp = FastMCP("Chart Generation Server", mask_error_details=True)

# Rendered chart URLs, keyed by option digest
charts_cache = TTLCache(default_ttl_seconds=CACHE_TTL_SECONDS, name="charts_cache")

STORAGE_CONFIG = StorageConfig.from_env()
IMAGE_STORE = create_image_store(STORAGE_CONFIG)


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def generate_chart_id(option: ChartOption) -> str:
    """Stable 12-character digest of a chart option."""
    option_str = json.dumps(option.to_echarts(), sort_keys=True, default=str)
    return hashlib.md5(option_str.encode()).hexdigest()[:12]


def chart_fault(error: ChartDataError) -> ToolError:
    """
    Translate a chart data fault into the tool error sent back to the client.

    Shape faults the caller can fix are passed on verbatim; the rest are
    reported as generation failures that still carry the cause. Must be
    called while `error` is being handled so the traceback is logged.
    """
    if error.caller_correctable:
        LOGGER.warning(f"Rejected chart request: {error}")
        return ToolError(str(error))

    LOGGER.error(f"Failed to generate chart: {error}", exc_info=True)
    return ToolError(f"Failed to generate chart: {error}")


# ============================================================================
# TOOLS
# ============================================================================

@mcp.tool(name="get-chart")
async def get_chart(
    type: Annotated[str, Field(description=f"Chart type ({', '.join(SERIES_TYPES)})")],
    data: Annotated[Any, Field(description=(
        f"Chart data array. For example: {TABULAR_EXAMPLE} for bar/line/pie/scatter charts, "
        f"or {HIERARCHICAL_EXAMPLE} for tree charts"
    ))],
    title: Annotated[str, Field(description="Chart title")],
    seriesName: Annotated[str, Field(description="Series name that will be displayed in the legend")],
    xAxisName: Annotated[Optional[str], Field(description=(
        "Name of the first dimension (data[0]) including unit, for bar/line/scatter/pie charts. "
        'For example, when data is [["Apple", 100], ["Banana", 200], ["Cherry", 300]], xAxisName should be "Fruit".'
    ))] = None,
    yAxisName: Annotated[Optional[str], Field(description=(
        "Name of the second dimension (data[1]) including unit, for bar/line/scatter/pie charts. "
        'For example, when data is [["Apple", 100], ["Banana", 200], ["Cherry", 300]], yAxisName should be "Sales (USD)".'
    ))] = None,
) -> str:
    """
    Generate a chart image and return its public URL.

    Supports bar, line, pie, scatter and funnel charts from rows such as
    [["A", 100], ["B", 200]], and tree, treemap and sunburst charts from
    nested {"name", "value", "children"} nodes.
    """
    LOGGER.info(f"Creating {type} chart: {title}")

    try:
        kind = classify(type)
        validate_chart_data(kind, data)
        option = assemble_chart_option(kind, data, title, seriesName, xAxisName, yAxisName)
    except ChartDataError as e:
        raise chart_fault(e) from e

    chart_id = generate_chart_id(option)
    cached_url = charts_cache.get(chart_id)
    if cached_url is not None:
        return cached_url

    # Rendering and uploading block, so they run on worker threads
    try:
        image = await anyio.to_thread.run_sync(render_chart_base64, option)
    except Exception as e:
        LOGGER.error(f"Failed to generate chart {chart_id}: {e}", exc_info=True)
        raise ToolError(f"Failed to generate chart: {e}") from e

    try:
        url = await anyio.to_thread.run_sync(IMAGE_STORE.save_image, image)
    except ImageUploadError as e:
        # Cause already logged by the store; callers only see a generic fault
        raise ToolError("Failed to save image") from e

    charts_cache.set(chart_id, url)
    return url


@mcp.custom_route("/", methods=["GET"])
async def health(request: Request) -> PlainTextResponse:
    return PlainTextResponse("Chart MCP Server is running")


# ============================================================================
# SERVER STARTUP
# ============================================================================

if __name__ == "__main__":
    setup_global_logging()

    # Logs go to stdout, so only network transports are supported
    LOGGER.info(f"Starting Chart Generation MCP Server on port {SERVER_PORT} ({MCP_TRANSPORT})")
    mcp.run(transport=MCP_TRANSPORT, host=SERVER_HOST, port=SERVER_PORT)
