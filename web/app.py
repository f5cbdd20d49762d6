"""
CSP Bypass Checker - Web Interface
FastAPI backend for looking up known CSP bypasses
"""

import sys
from pathlib import Path
from typing import Optional

# Get project root directory
PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Add src directory to path for imports
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
import uvicorn

from cspbypass.badge import badge_for
from cspbypass.checker import CSPBypassChecker
from cspbypass.config import load_config

app = FastAPI(
    title="CSP Bypass Checker",
    description="Match Content-Security-Policy allow-lists against known bypasses",
    version="0.1.0"
)

# Templates
templates = Jinja2Templates(directory=PROJECT_ROOT / "web" / "templates")

# Matches listed per response
RESULT_LIMIT = 200

checker = CSPBypassChecker(load_config(PROJECT_ROOT / 'config.json'), show_progress=False)


class InspectRequest(BaseModel):
    url: str
    context_id: Optional[str] = None


def validate_url(url: str) -> bool:
    """Only absolute http(s) URLs are inspected"""
    return url.lower().startswith(('http://', 'https://'))


@app.get("/", response_class=HTMLResponse)
def home(request: Request, q: Optional[str] = None, url: Optional[str] = None):
    """Render the search page; ?url= inspects a page, ?q= searches"""
    lookup = None
    result = None
    query = q

    if url:
        if not validate_url(url):
            raise HTTPException(status_code=400, detail="URL must start with http:// or https://")
        lookup, result = checker.check_page(url, context_id="web")
        query = lookup.csp or ""
    else:
        if not query:
            # Nothing asked for: show the previous query instead of an empty page
            query = checker.session.last_query
        if query:
            result = checker.search(query, context_id="web")

    return templates.TemplateResponse(request, "index.html", {
        "query": query or "",
        "url": url or "",
        "lookup": lookup,
        "result": result,
        "matches": result.matches[:RESULT_LIMIT] if result else (),
        "badge": badge_for(result.count if result else 0),
        "dataset": checker.dataset().to_dict(),
    })


@app.get("/api/search", response_class=JSONResponse)
def search(q: str = "", context_id: Optional[str] = None):
    """Resolve a policy or free text query"""
    result = checker.search(q, context_id=context_id)
    return {
        "query": q,
        "result": result.to_dict(limit=RESULT_LIMIT),
        "badge": badge_for(result.count),
    }


@app.post("/api/inspect", response_class=JSONResponse)
def inspect_page(req: InspectRequest):
    """Fetch a page, extract its CSP and count bypasses"""
    url = req.url.strip()
    if not validate_url(url):
        raise HTTPException(status_code=400, detail="URL must start with http:// or https://")

    context_id = req.context_id or url
    lookup, result = checker.check_page(url, context_id=context_id)
    return {
        "context_id": context_id,
        "lookup": lookup.to_dict(),
        "result": result.to_dict(limit=RESULT_LIMIT),
        "badge": badge_for(result.count),
    }


@app.get("/api/csp/{context_id}")
def get_csp(context_id: str, url: Optional[str] = None):
    """Policy for a context (live page first when ?url= is given), null when none is known"""
    if url and not validate_url(url):
        raise HTTPException(status_code=400, detail="URL must start with http:// or https://")

    lookup = checker.session.request_csp(context_id, checker.inspector, url)
    if lookup is None:
        return {"context_id": context_id, "csp": None, "source": None}
    return {"context_id": context_id, "csp": lookup.csp, "source": lookup.source}


@app.get("/api/badge/{context_id}")
async def get_badge(context_id: str):
    return {"context_id": context_id, **checker.session.badge_for(context_id)}


@app.get("/api/session")
async def list_contexts():
    """Contexts with a recorded policy or count"""
    session = checker.session
    return {"contexts": [
        {
            "context_id": context_id,
            "csp": (session.csp_for(context_id) or (None,))[0],
            "count": session.count_for(context_id),
            "badge": session.badge_for(context_id),
        }
        for context_id in session.contexts()
    ]}


@app.delete("/api/session/{context_id}")
async def close_context(context_id: str):
    """Context closed: drop its policy and count"""
    checker.session.close(context_id)
    return {"context_id": context_id, "status": "closed"}


@app.get("/api/dataset")
def dataset_info():
    return checker.dataset().to_dict()


@app.post("/api/refresh")
def refresh_dataset():
    """Force a dataset download (falls back to the cache on failure)"""
    return checker.refresh_dataset().to_dict()


if __name__ == "__main__":
    print("\n" + "="*50)
    print("CSP Bypass Checker - Web Interface")
    print("="*50)
    print(f"\nProject root: {PROJECT_ROOT}")
    print("\nStarting server at http://localhost:8000")
    print("Open your browser and go to http://localhost:8000\n")

    uvicorn.run(app, host="0.0.0.0", port=8000)
