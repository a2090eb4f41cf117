import sys
from io import StringIO
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from revseeker import __version__
from revseeker.modules.auth import load_refresh_token
from revseeker.modules.formatters import is_digest, is_registry, is_repository
from revseeker.modules.keepers import resolve_commit

app = FastAPI(
    title="revseeker API",
    description="""
**revseeker API**
* Resolve a container image digest to the git commit in its revision label
* Registry failures return an empty commit, never an error status
    """,
    version=__version__,
)


def registry_session():
    """Session used for registry calls. None lets each lookup open its own."""
    return None


def refresh_token_loader():
    """Callable turning a registry name into a refresh token."""
    return load_refresh_token


def _validate(registry: str, repository: str, digest: str):
    if not is_registry(registry):
        raise HTTPException(status_code=400, detail=f"invalid registry name: {registry}")
    if not is_repository(repository):
        raise HTTPException(status_code=400, detail=f"invalid repository path: {repository}")
    if digest and not is_digest(digest):
        raise HTTPException(status_code=400, detail=f"malformed digest: {digest}")


def _lookup(registry, repository, digest, session, load_token):
    _validate(registry, repository, digest)
    diagnostics = StringIO()
    refresh_token = load_token(registry) if digest else ""
    result = resolve_commit(
        registry,
        repository,
        digest,
        refresh_token,
        session=session,
        out=diagnostics,
    )
    text = diagnostics.getvalue()
    if text:
        # Echo to the server log
        sys.stderr.write(text)
    return result, text


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/commit.data", response_class=PlainTextResponse)
def commit_data(
    registry: str = Query(..., description="Registry name, e.g. example"),
    repository: str = Query(..., description="Repository path, e.g. raptor/frontend"),
    digest: str = Query(..., description="Image digest, sha256:..."),
    session: Optional[object] = Depends(registry_session),
    load_token=Depends(refresh_token_loader),
):
    """
    ## /commit.data

    Resolve an image digest to its source commit.

    - Returns the commit as plain text, or an empty body if it cannot be resolved.

    - Example: `/commit.data?registry=example&repository=raptor/frontend&digest=sha256:...`
    """
    result, _ = _lookup(registry, repository, digest, session, load_token)
    return result.commit


@app.get("/commit")
def commit(
    registry: str = Query(..., description="Registry name, e.g. example"),
    repository: str = Query(..., description="Repository path, e.g. raptor/frontend"),
    digest: str = Query(..., description="Image digest, sha256:..."),
    session: Optional[object] = Depends(registry_session),
    load_token=Depends(refresh_token_loader),
):
    """
    ## /commit

    Same lookup as `/commit.data`, returned as JSON with the failing stage
    and the diagnostic text when nothing was found.
    """
    result, text = _lookup(registry, repository, digest, session, load_token)
    body = result.to_dict()
    body["diagnostics"] = text.splitlines()
    return JSONResponse(content=body, status_code=200)
