# ============================================================
# Facet Search FastAPI App
# ------------------------------------------------------------
# Exposes one in-memory search session per caller over HTTP:
#   - free text, embedder and semantic ratio
#   - multi-select facet filters
#   - reconciled results + facet counts
# Backend: Meilisearch when MEILISEARCH_URL is set, else the
# in-memory client over the YAML seed records, shared by all
# sessions. A caller is identified by the X-Session-Id header or
# the facet_session cookie; sessions are kept until shutdown, so
# this is a dev surface, not a multi-tenant server.
# ============================================================

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from pydantic import BaseModel, Field

# --- Local imports ---
from facetsearch.log import get_logger
from facetsearch.settings import Settings, settings
from facetsearch.search import (
    FacetDimension,
    InMemorySearchClient,
    MeiliSearchClient,
    SearchSession,
)

logger = get_logger("facetsearch.app")

SESSION_COOKIE = "facet_session"
SESSION_HEADER = "X-Session-Id"


# ------------------------------------------------------------
# 🔧 Backend client selection
# ------------------------------------------------------------
def build_client(cfg: Settings = settings) -> Any:
    if cfg.MEILISEARCH_URL:
        logger.info("Using Meilisearch at %s (index=%s)", cfg.MEILISEARCH_URL, cfg.MEILISEARCH_INDEX)
        return MeiliSearchClient(
            host=cfg.MEILISEARCH_URL,
            api_key=cfg.MEILISEARCH_API_KEY,
            index=cfg.MEILISEARCH_INDEX,
            timeout=cfg.SEARCH_TIMEOUT,
        )
    logger.info("MEILISEARCH_URL not set, using in-memory records from %s", cfg.SEED_DATA_PATH)
    return InMemorySearchClient.from_yaml(cfg.SEED_DATA_PATH)


def build_session(client: Any, cfg: Settings = settings, owns_client: bool = True) -> SearchSession:
    return SearchSession(
        client=client,
        embedder=cfg.DEFAULT_EMBEDDER,
        semantic_ratio=cfg.DEFAULT_SEMANTIC_RATIO,
        debounce_seconds=cfg.debounce_seconds,
        limit=cfg.RESULT_LIMIT,
        owns_client=owns_client,
    )


# ------------------------------------------------------------
# 📦 Pydantic models
# ------------------------------------------------------------
class QueryUpdate(BaseModel):
    query: str = ""


class HybridUpdate(BaseModel):
    embedder: Optional[str] = None
    semantic_ratio: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class FilterToggle(BaseModel):
    value: str
    selected: bool = True


class FacetOptionOut(BaseModel):
    value: str
    count: int
    selected: bool


class SearchState(BaseModel):
    query: str
    embedder: str
    semantic_ratio: float
    filters: Dict[str, List[str]]
    sequence: int
    hits: List[Dict[str, Any]]
    facets: Dict[str, List[FacetOptionOut]]
    facet_stats: Dict[str, Any]
    error: Optional[str] = None


# ------------------------------------------------------------
# 🧠 Helpers
# ------------------------------------------------------------
async def _session(request: Request, response: Response) -> SearchSession:
    """Look up the caller's session, creating and starting it on first use."""
    state = request.app.state
    sid = request.headers.get(SESSION_HEADER) or request.cookies.get(SESSION_COOKIE) or uuid.uuid4().hex
    session = state.sessions.get(sid)
    if session is None:
        session = build_session(state.client, state.cfg, owns_client=False)
        state.sessions[sid] = session
        logger.info("New search session %s (%d open)", sid, len(state.sessions))
        await session.start()
    response.set_cookie(SESSION_COOKIE, sid, httponly=True)
    return session


def _dimension(name: str) -> FacetDimension:
    try:
        return FacetDimension.coerce(name)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _facet_options(session: SearchSession, dim: FacetDimension) -> List[FacetOptionOut]:
    return [FacetOptionOut(**asdict(o)) for o in session.facet_options(dim)]


def _state(session: SearchSession) -> SearchState:
    projection = session.projection
    return SearchState(
        **session.state(),
        sequence=projection.sequence,
        hits=list(projection.hits),
        facets={d.value: _facet_options(session, d) for d in FacetDimension},
        facet_stats=projection.facet_stats,
        error=session.last_error.message if session.last_error else None,
    )


async def _respond(session: SearchSession, wait: bool) -> SearchState:
    if wait:
        await session.settle()
    return _state(session)


# ------------------------------------------------------------
# 🚀 FastAPI init
# ------------------------------------------------------------
def create_app(client_factory: Optional[Callable[[], Any]] = None, cfg: Settings = settings) -> FastAPI:
    factory = client_factory or (lambda: build_client(cfg))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = factory()
        app.state.cfg = cfg
        app.state.client = client
        app.state.sessions = {}
        try:
            yield
        finally:
            for session in list(app.state.sessions.values()):
                await session.shutdown()
            app.state.sessions.clear()
            close = getattr(client, "close", None)
            if callable(close):
                close()

    app = FastAPI(title=cfg.app_name, version="0.1", lifespan=lifespan)

    # --------------------------------------------------------
    # 🔎 Search state
    # --------------------------------------------------------
    @app.get("/search", response_model=SearchState)
    async def get_search(wait: bool = Query(False), session: SearchSession = Depends(_session)):
        return await _respond(session, wait)

    @app.put("/search/query", response_model=SearchState)
    async def put_query(body: QueryUpdate, wait: bool = Query(False), session: SearchSession = Depends(_session)):
        session.query = body.query
        return await _respond(session, wait)

    @app.put("/search/hybrid", response_model=SearchState)
    async def put_hybrid(body: HybridUpdate, wait: bool = Query(False), session: SearchSession = Depends(_session)):
        try:
            if body.embedder is not None:
                session.embedder = body.embedder
            if body.semantic_ratio is not None:
                session.semantic_ratio = body.semantic_ratio
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return await _respond(session, wait)

    # --------------------------------------------------------
    # 🧰 Filters
    # --------------------------------------------------------
    @app.post("/search/filters/{dimension}", response_model=SearchState)
    async def toggle_filter(
        dimension: str,
        body: FilterToggle,
        wait: bool = Query(False),
        session: SearchSession = Depends(_session),
    ):
        session.toggle(_dimension(dimension), body.value, body.selected)
        return await _respond(session, wait)

    @app.delete("/search/filters/{dimension}", response_model=SearchState)
    async def clear_filter(dimension: str, wait: bool = Query(False), session: SearchSession = Depends(_session)):
        session.clear(_dimension(dimension))
        return await _respond(session, wait)

    @app.delete("/search/filters", response_model=SearchState)
    async def clear_filters(wait: bool = Query(False), session: SearchSession = Depends(_session)):
        session.clear_all()
        return await _respond(session, wait)

    @app.get("/search/facets/{dimension}", response_model=List[FacetOptionOut])
    async def get_facet(dimension: str, session: SearchSession = Depends(_session)):
        return _facet_options(session, _dimension(dimension))

    # --------------------------------------------------------
    # 👤 Detail lookup
    # --------------------------------------------------------
    @app.get("/professionals/{record_id}")
    async def get_professional(record_id: str, session: SearchSession = Depends(_session)):
        hit = session.projection.get(record_id)
        if hit is None:
            raise HTTPException(status_code=404, detail=f"Professional {record_id} not in current results")
        return hit

    # --------------------------------------------------------
    # 🧭 Health checks
    # --------------------------------------------------------
    @app.get("/healthz")
    def healthz():
        return {
            "ok": True,
            "env": cfg.ENV,
            "debug": cfg.DEBUG,
            "app": cfg.app_name,
        }

    @app.get("/health")
    def health():
        return {"status": "ok", "env": cfg.ENV}

    @app.get("/")
    def hello():
        return {"message": f"{cfg.app_name} service running."}

    return app


app = create_app()
