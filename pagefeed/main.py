"""
Page-to-feed generator - FastAPI Application
HTTP entry point to trigger runs and serve the generated feed.
"""
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from lxml import etree
from pydantic import BaseModel, Field

from pagefeed import __version__
from pagefeed.config import config
from pagefeed.generators.feed_generator import ATOM_NS
from pagefeed.pipeline import FeedPipeline
from pagefeed.runner import build_source, run_once
from pagefeed.utils.logger import get_logger, set_trace_id


# Initialize FastAPI app
app = FastAPI(
    title="pagefeed",
    description="Renders a dynamic page and publishes its articles as a syndication feed",
    version=__version__,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = get_logger("main")

MEDIA_TYPES = {
    "rss": "application/rss+xml",
    f"{{{ATOM_NS}}}feed": "application/atom+xml",
}


def feed_media_type(content: bytes) -> str:
    """Media type of a written feed, taken from its root element."""
    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError:
        return "application/xml"
    return MEDIA_TYPES.get(root.tag, "application/xml")


# Request/Response models
class RunRequest(BaseModel):
    """Request model for a feed run."""
    url: Optional[str] = None
    render_mode: Optional[str] = None  # "browser" or "static"
    format: Optional[str] = None  # "rss2" or "atom"
    limit: Optional[int] = Field(default=None, ge=1)


class RunResponse(BaseModel):
    """Response model for a feed run."""
    ok: bool
    output_path: Optional[str] = None
    report: dict
    trace_id: str


# API Routes
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.post("/api/run")
async def run_feed(request: RunRequest):
    """
    Run the pipeline once and write the feed.

    Returns the run report. A failed run answers 502 with the same report
    and leaves the previously written feed untouched.
    """
    trace_id = set_trace_id()

    logger.info(
        "feed_run_request",
        url=request.url or config.TARGET_URL,
        render_mode=request.render_mode or config.RENDER_MODE,
        format=request.format or config.FEED_FORMAT,
        trace_id=trace_id
    )

    try:
        pipeline = FeedPipeline.from_config(feed_format=request.format, item_limit=request.limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    outcome = await run_once(pipeline=pipeline, source=build_source(request.render_mode, request.url))

    response = RunResponse(
        ok=outcome.ok,
        output_path=config.OUTPUT_PATH if outcome.ok else None,
        report=outcome.report.to_dict(),
        trace_id=trace_id,
    )

    if not outcome.ok:
        logger.error("feed_run_error", error_type=outcome.report.error_type, trace_id=trace_id)
        return JSONResponse(status_code=502, content=response.model_dump())

    return response


@app.get("/feed.xml")
async def serve_feed():
    """Serve the most recently written feed document."""
    path = Path(config.OUTPUT_PATH)
    if not path.exists():
        raise HTTPException(status_code=404, detail="No feed has been generated yet")

    content = path.read_bytes()
    return Response(content=content, media_type=feed_media_type(content))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
