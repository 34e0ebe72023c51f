"""HTTP API for the file explorer.

Exposes listing, metadata, search and the tree operations over REST.
Relative request paths are resolved against ``EXPLORER_API_ROOT``.

Usage:
    python -m uvicorn file_explorer.api:app --host 127.0.0.1 --port 8000

Or via CLI:
    file-explorer serve
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .filesystem import (
    EntryMetadata,
    ErrorKind,
    FileExplorerError,
    SortKey,
    TreeOperationOutcome,
    WorkingDirectory,
    copy_tree,
    list_directory,
    move_tree,
    remove_tree,
    rename_entry,
    search_tree,
    set_ownership,
    set_permissions,
    stat_entry,
)
from .settings import settings

logger = logging.getLogger(__name__)

app = FastAPI(
    title="File Explorer API",
    description="Verzeichnisse auflisten, durchsuchen, kopieren, verschieben und löschen",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATUS_CODES = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.SOURCE_NOT_FOUND: 404,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.DIRECTORY_UNREADABLE: 403,
    ErrorKind.INVALID_MODE: 400,
    ErrorKind.UNKNOWN_PRINCIPAL: 400,
    ErrorKind.INVALID_NAME: 400,
    ErrorKind.DESTINATION_EXISTS: 409,
    ErrorKind.DESTINATION_IS_FILE: 409,
    ErrorKind.DESTINATION_INSIDE_SOURCE: 409,
    ErrorKind.CONFIRMATION_REQUIRED: 409,
    ErrorKind.COPY_FAILED: 500,
    ErrorKind.PARTIAL_DELETE_FAILURE: 500,
    ErrorKind.COPIED_BUT_SOURCE_RETAINED: 500,
}


def resolve_path(raw: str) -> Path:
    """Resolve a request path against the configured API root."""
    return WorkingDirectory(Path(settings.api.root)).resolve(raw)


def _raise_for(error: FileExplorerError):
    status = STATUS_CODES.get(error.kind, 400)
    logger.info(f"Anfrage abgelehnt ({status}): {error.message}")
    raise HTTPException(
        status_code=status,
        detail={"error": error.kind.value, "message": error.message},
    )


# ============================================================================
# Pydantic Models
# ============================================================================

class Metadata(BaseModel):
    """Attributes of a single entry."""
    path: str
    kind: str
    size: int
    mode: str = Field(description="Permission bits in octal")
    owner: str
    group: str
    uid: int
    gid: int
    modified_at: datetime

    @classmethod
    def from_entry(cls, metadata: EntryMetadata) -> "Metadata":
        return cls(
            path=str(metadata.path),
            kind=metadata.kind.value,
            size=metadata.size,
            mode=format(metadata.permission_bits, "04o"),
            owner=metadata.owner_name,
            group=metadata.group_name,
            uid=metadata.uid,
            gid=metadata.gid,
            modified_at=metadata.modified_at,
        )


class ListingItem(BaseModel):
    """One directory listing row."""
    name: str
    display_class: str
    metadata: Metadata


class ListingResponse(BaseModel):
    path: str
    entries: List[ListingItem]
    total: int


class SearchHit(BaseModel):
    path: str
    kind: str


class SearchResponse(BaseModel):
    root: str
    term: str
    matches: List[SearchHit]
    total: int


class FailureItem(BaseModel):
    path: str
    reason: str


class OutcomeResponse(BaseModel):
    """Aggregated result of a tree operation."""
    operation: str
    succeeded: bool
    items_affected: int
    failures: List[FailureItem] = []
    error: Optional[str] = None
    destination: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: TreeOperationOutcome) -> "OutcomeResponse":
        return cls(
            operation=outcome.operation,
            succeeded=outcome.succeeded,
            items_affected=outcome.items_affected,
            failures=[FailureItem(path=str(f.path), reason=f.reason) for f in outcome.failures],
            error=outcome.error.value if outcome.error else None,
            destination=str(outcome.destination) if outcome.destination else None,
        )


class TransferRequest(BaseModel):
    """Copy or move request."""
    source: str
    destination: str


class DeleteRequest(BaseModel):
    path: str
    recursive: bool = Field(default=False, description="Nicht-leere Verzeichnisse erlauben")
    confirmed: bool = Field(default=False, description="Rekursives Löschen bestätigen")


class RenameRequest(BaseModel):
    path: str
    new_name: str


class ChmodRequest(BaseModel):
    path: str
    mode: str = Field(description="Oktal als Zeichenkette, z.B. '755' oder '0o644'")


class ChownRequest(BaseModel):
    path: str
    owner: Optional[str] = None
    group: Optional[str] = None


def _outcome_response(outcome: TreeOperationOutcome):
    body = OutcomeResponse.from_outcome(outcome)
    if outcome.succeeded:
        return body
    status = STATUS_CODES.get(outcome.error, 500)
    return JSONResponse(status_code=status, content=body.model_dump(mode="json"))


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/")
async def root():
    """API Root - zeigt Basisinformationen."""
    return {
        "name": "File Explorer API",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "root": settings.api.root,
    }


@app.get("/health")
async def health():
    """Health-Check Endpoint."""
    root_path = Path(settings.api.root)
    health_status = {"status": "ok", "root": str(root_path)}
    if not root_path.is_dir():
        health_status["status"] = "degraded"
        health_status["error"] = "root directory missing"
    return health_status


@app.get("/v1/list", response_model=ListingResponse)
async def list_entries(
    path: str = ".",
    show_hidden: bool = False,
    sort_by: SortKey = SortKey.NAME,
    directories_first: bool = True,
):
    """Verzeichnisinhalt auflisten."""
    target = resolve_path(path)
    try:
        entries = list_directory(
            target,
            show_hidden=show_hidden,
            sort_by=sort_by,
            directories_first=directories_first,
        )
    except FileExplorerError as e:
        _raise_for(e)

    return ListingResponse(
        path=str(target),
        entries=[
            ListingItem(
                name=entry.name,
                display_class=entry.display_class.value,
                metadata=Metadata.from_entry(entry.metadata),
            )
            for entry in entries
        ],
        total=len(entries),
    )


@app.get("/v1/stat", response_model=Metadata)
async def stat(path: str):
    """Metadaten eines Eintrags."""
    try:
        return Metadata.from_entry(stat_entry(resolve_path(path)))
    except FileExplorerError as e:
        _raise_for(e)


@app.get("/v1/search", response_model=SearchResponse)
async def search(term: str = Query(default=""), path: str = "."):
    """Rekursive Namenssuche (Groß-/Kleinschreibung egal)."""
    root_path = resolve_path(path)
    try:
        matches = search_tree(root_path, term)
    except FileExplorerError as e:
        _raise_for(e)

    return SearchResponse(
        root=str(root_path),
        term=term,
        matches=[SearchHit(path=str(m.path), kind=m.kind.value) for m in matches],
        total=len(matches),
    )


@app.post("/v1/copy", response_model=OutcomeResponse)
async def copy(request: TransferRequest):
    """Datei oder Verzeichnisbaum kopieren."""
    return _outcome_response(copy_tree(resolve_path(request.source), resolve_path(request.destination)))


@app.post("/v1/move", response_model=OutcomeResponse)
async def move(request: TransferRequest):
    """Datei oder Verzeichnisbaum verschieben."""
    return _outcome_response(move_tree(resolve_path(request.source), resolve_path(request.destination)))


@app.post("/v1/delete", response_model=OutcomeResponse)
async def delete(request: DeleteRequest):
    """Datei oder Verzeichnis löschen."""
    outcome = remove_tree(
        resolve_path(request.path),
        allow_recursive=request.recursive,
        confirmed=request.confirmed,
    )
    return _outcome_response(outcome)


@app.post("/v1/rename", response_model=OutcomeResponse)
async def rename(request: RenameRequest):
    """Eintrag im selben Verzeichnis umbenennen."""
    return _outcome_response(rename_entry(resolve_path(request.path), request.new_name))


@app.post("/v1/chmod", response_model=Metadata)
async def chmod(request: ChmodRequest):
    """Berechtigungen ändern."""
    try:
        return Metadata.from_entry(set_permissions(resolve_path(request.path), request.mode))
    except FileExplorerError as e:
        _raise_for(e)


@app.post("/v1/chown", response_model=Metadata)
async def chown(request: ChownRequest):
    """Besitzer und/oder Gruppe ändern."""
    if not request.owner and not request.group:
        raise HTTPException(status_code=400, detail="owner or group required")
    try:
        metadata = set_ownership(resolve_path(request.path), request.owner, request.group)
    except FileExplorerError as e:
        _raise_for(e)
    return Metadata.from_entry(metadata)


# ============================================================================
# Server Entry Point
# ============================================================================

def run_server(host: str = "127.0.0.1", port: int = 8000, reload: bool = False):
    """Start the API server."""
    import uvicorn
    logger.info(f"Starting File Explorer API on {host}:{port} (root: {settings.api.root})")
    uvicorn.run("file_explorer.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    run_server()
