"""
ccdagen Web Server

FastAPI-based HTTP interface for the Blue Button to C-CDA converter.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

# Setup paths
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from ccdagen import CCDAGenerationError, convert_section, convert_whole_document, to_xml
from ccdagen.generator import NeedsOwnSlice, get_dispatcher, index_of, is_section, ordered_names

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="ccdagen",
    description="Blue Button JSON to C-CDA XML conversion API",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

XML_MEDIA_TYPE = "application/xml"


# Response models
class SectionInfo(BaseModel):
    """A registry entry."""
    index: int
    name: str
    handler: str


class HeaderOnlyResponse(BaseModel):
    """Returned when a record has nothing beyond demographics."""
    kind: str = "header_only"
    header: str
    issues: list[dict[str, Any]]


async def read_json_body(request: Request) -> Any:
    """Parse the request body as JSON, rejecting malformed input."""
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON body: {e}")


# Routes
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.get("/api/sections", response_model=list[SectionInfo])
async def list_sections():
    """List the known sections in document order."""
    dispatcher = get_dispatcher()
    return [
        SectionInfo(
            index=index_of(name.value),
            name=name.value,
            handler="template" if isinstance(dispatcher.handler_for(name.value), NeedsOwnSlice)
            else "generator",
        )
        for name in ordered_names()
    ]


@app.post("/api/ccda")
async def convert_document(request: Request):
    """
    Convert a whole record.

    Returns the C-CDA document as XML, or a JSON header-only response when
    the record has no body sections.
    """
    record = await read_json_body(request)

    try:
        result = convert_whole_document(record)
    except CCDAGenerationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    issues = [issue.to_dict() for issue in result.issues]
    if not result.is_document:
        return JSONResponse(
            content=HeaderOnlyResponse(header=to_xml(result.tree), issues=issues).model_dump()
        )

    return Response(
        content=result.body,
        media_type=XML_MEDIA_TYPE,
        headers={"X-CCDA-Issues": str(len(issues))},
    )


@app.post("/api/ccda/{section_name}")
async def convert_single_section(section_name: str, request: Request):
    """Convert one section's data to a C-CDA fragment."""
    if not is_section(section_name):
        raise HTTPException(status_code=404, detail=f"Unknown section '{section_name}'")

    section_data = await read_json_body(request)
    issues = []
    try:
        node = convert_section(section_name, section_data, issues=issues)
    except CCDAGenerationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if node is None:
        raise HTTPException(status_code=400, detail="Request body is empty")

    return Response(
        content=to_xml(node),
        media_type=XML_MEDIA_TYPE,
        headers={"X-CCDA-Issues": str(len(issues))},
    )


def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the server."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
