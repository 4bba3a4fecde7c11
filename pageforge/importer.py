"""
Import entry point: bridge JSON in, canvas nodes out.

Single-viewport payloads become one page frame; multi-viewport payloads
become a component set with one variant per viewport. The payload is
fully parsed and validated before the first node is created.
Re-imports update the newest previous import of the same URL in place.
"""

from dataclasses import dataclass, field

from pageforge.canvas import CanvasDocument
from pageforge.config import get_settings
from pageforge.context import ConversionContext
from pageforge.converter import convert_to_canvas
from pageforge.models import ImportSettings, MultiViewportResult, PayloadError, parse_payload
from pageforge.reimporter import apply_diff_changes, compute_reimport_diff, find_existing_import
from pageforge.variants import create_viewport_variants


@dataclass
class ImportOutcome:
    host: object
    root: object
    counts: dict = field(default_factory=dict)

    @property
    def is_variant_set(self) -> bool:
        return "variantCount" in self.counts


async def run_import(
    payload,
    settings: ImportSettings = None,
    host=None,
    on_progress=None,
    fetch_bytes=None,
    config=None,
) -> ImportOutcome:
    """
    Convert a bridge payload (JSON text, bytes or decoded dict) onto host.
    Raises PayloadError for malformed input; nothing is created in that case.
    """
    data = parse_payload(payload)
    if isinstance(data, MultiViewportResult) and not data.extractions:
        raise PayloadError("Multi-viewport payload has no extractions")

    host = host if host is not None else CanvasDocument()
    ctx = ConversionContext(
        host=host,
        settings=settings or ImportSettings(),
        config=config or get_settings(),
        fetch_bytes=fetch_bytes,
    )

    if isinstance(data, MultiViewportResult):
        component_set, result = await create_viewport_variants(data, ctx, on_progress)
        return ImportOutcome(host=host, root=component_set, counts=result.to_dict())

    page_frame, result = await convert_to_canvas(data, ctx, on_progress)
    return ImportOutcome(host=host, root=page_frame, counts=result.to_dict())


@dataclass
class ReimportOutcome:
    host: object
    frame: object
    changes: list = field(default_factory=list)
    summary: object = None
    applied: object = None

    def to_dict(self) -> dict:
        return {
            "frameId": self.frame.id,
            "changes": [change.to_wire() for change in self.changes],
            "summary": self.summary.to_wire() if self.summary else None,
            "applied": self.applied.to_dict() if self.applied else None,
        }


async def run_reimport(
    payload,
    host,
    settings: ImportSettings = None,
    selected_ids=None,
    apply: bool = True,
    on_progress=None,
    fetch_bytes=None,
    config=None,
) -> ReimportOutcome:
    """
    Diff a new capture against the newest previous import of the same URL on
    host and, unless apply is off, apply the changes in place.
    selected_ids limits application to those change ids; None applies all.
    Raises PayloadError for malformed or multi-viewport payloads and
    LookupError when host holds no previous import.
    """
    data = parse_payload(payload)
    if isinstance(data, MultiViewportResult):
        raise PayloadError("Re-import needs a single-viewport payload")

    frame = find_existing_import(host, data.url)
    if frame is None:
        raise LookupError(f"No previous import found for {data.url}")

    settings = settings or ImportSettings()
    changes, summary = await compute_reimport_diff(data, frame, on_progress, settings)
    outcome = ReimportOutcome(host=host, frame=frame, changes=changes, summary=summary)
    if not apply:
        return outcome

    if selected_ids is not None:
        wanted = set(selected_ids)
        for change in changes:
            change.selected = change.id in wanted

    ctx = ConversionContext(
        host=host,
        settings=settings,
        config=config or get_settings(),
        fetch_bytes=fetch_bytes,
    )
    outcome.applied = await apply_diff_changes(changes, data, frame, ctx, on_progress)
    return outcome
