from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
import asyncio

from pageforge.config import DEFAULT_VIEWPORTS, get_settings
from pageforge.diffing import build_fingerprint_map, compute_diff, to_existing_map
from pageforge.importer import run_import
from pageforge.models import ImportSettings, MultiViewportResult, PayloadError, parse_payload


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    print(f"[startup] max depth {settings.max_node_depth}, "
          f"component threshold {settings.component_threshold}")
    yield


app = FastAPI(title="Pageforge API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class ExtractRequest(BaseModel):
    url: str
    viewports: list[str] = DEFAULT_VIEWPORTS


class ConvertRequest(BaseModel):
    payload: dict | str
    settings: ImportSettings | None = None


class DiffRequest(BaseModel):
    payload: dict | str
    existing: dict | str  # the previously imported bridge payload


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/extract")
async def extract_endpoint(request: ExtractRequest):
    """Capture a live page (one or more viewports) as a bridge payload."""
    from pageforge.scraper import capture_page

    url = request.url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url

    try:
        result = await asyncio.wait_for(capture_page(url, request.viewports), timeout=120)
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="Extraction timed out. Try a simpler page.")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        print(f"[extract] Extraction failed for {url}: {e}")
        raise HTTPException(status_code=500, detail=f"Extraction failed: {str(e)}")

    return result.to_wire()


@app.post("/convert")
async def convert_endpoint(request: ConvertRequest):
    """Convert a bridge payload into a canvas document."""
    try:
        outcome = await run_import(request.payload, request.settings or ImportSettings())
    except PayloadError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "rootId": outcome.root.id,
        "counts": outcome.counts,
        "document": outcome.host.to_dict(),
    }


@app.post("/diff")
async def diff_endpoint(request: DiffRequest):
    """Path-keyed diff between a previous bridge payload and a new one."""
    try:
        new_result = parse_payload(request.payload)
        old_result = parse_payload(request.existing)
    except PayloadError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if isinstance(new_result, MultiViewportResult) or isinstance(old_result, MultiViewportResult):
        raise HTTPException(status_code=422, detail="Diff needs single-viewport payloads")

    changes, summary = compute_diff(
        build_fingerprint_map(new_result.root_node),
        to_existing_map(build_fingerprint_map(old_result.root_node)),
    )
    return {
        "changes": [change.to_wire() for change in changes],
        "summary": summary.to_wire(),
    }
