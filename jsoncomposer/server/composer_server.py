"""
HTTP adapter for the composition pipeline.

Answers POST /composer with flat parameters following
``sources[<name>][jsonDefs][<index>][<input|output>]`` and returns the
composed graph as GEXF. Parameters may come from the query string, a
form-urlencoded body, or a JSON object body.

Usage:
    python -m jsoncomposer.server.composer_server
    # Or with explicit config:
    python -m jsoncomposer.server.composer_server --config compose --port 8080
"""

import argparse
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from loguru import logger
import uvicorn

from jsoncomposer import __version__
from jsoncomposer.discovery.exceptions import (
    DuplicateGroupError,
    EmptyGroupError,
    MalformedSampleError,
    NoGroupsError,
)
from jsoncomposer.pipeline import CompositionPipeline
from jsoncomposer.preprocessing import digest_sources
from jsoncomposer.utils.config import load_config

GEXF_MEDIA_TYPE = "application/gexf+xml"


# ============================================================================
# FastAPI App
# ============================================================================

def create_app(config: Optional[Dict[str, Any]] = None) -> FastAPI:
    """Build the FastAPI app around one pipeline."""
    pipeline = CompositionPipeline(config=config or load_config())

    app = FastAPI(
        title="jsoncomposer",
        description="Concept graph composition for JSON-based Web APIs",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "running", "service": "jsoncomposer", "version": __version__}

    @app.post("/composer")
    async def composer(request: Request) -> Response:
        """Compose the posted sources into a GEXF graph."""
        params = await _collect_params(request)

        try:
            groups = digest_sources(params)
            # Discovery is CPU-bound; keep it off the event loop
            result = await run_in_threadpool(pipeline.run, groups)
        except NoGroupsError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except (MalformedSampleError, EmptyGroupError, DuplicateGroupError) as e:
            logger.error(f"Composition rejected: {e}")
            raise HTTPException(status_code=422, detail=str(e))

        return Response(content=result.gexf, media_type=GEXF_MEDIA_TYPE)

    return app


async def _collect_params(request: Request) -> Dict[str, Any]:
    """Merge query parameters with the body (JSON object or urlencoded form)."""
    params: Dict[str, Any] = dict(request.query_params)
    body = await request.body()
    if not body:
        return params

    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            payload = await request.json()
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid JSON body: {e}")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="JSON body must be an object of parameters")
        params.update(payload)
    else:
        params.update(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
    return params


# ============================================================================
# Main
# ============================================================================

def main():
    parser = argparse.ArgumentParser(description="jsoncomposer HTTP server")
    parser.add_argument("--config", type=str, default=None,
                        help="Config name or path (default: built-in settings)")
    parser.add_argument("--host", type=str, default=None,
                        help="Server host (overrides config)")
    parser.add_argument("--port", type=int, default=None,
                        help="Server port (overrides config)")
    args = parser.parse_args()

    config = load_config(args.config)
    server_config = config.get("server") or {}
    host = args.host or server_config.get("host")
    port = args.port or server_config.get("port")

    logger.info(f"Starting jsoncomposer server on {host}:{port}")
    uvicorn.run(create_app(config), host=host, port=port)


if __name__ == "__main__":
    main()
