"""FastAPI adapter that hands lens mesh buffers to a host."""
from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .backdrop import BackdropFilters
from .cache import MeshCache, get_mesh_cache, release_mesh_cache
from .config import Settings, get_settings
from .errors import InvalidParameters, Unavailable
from .lens import build_optimized_mesh, build_uniform_mesh_centered, debug_grid_path
from .log import get_logger, setup_logging
from .params import DEFAULT_GRID_SIZE
from .presets import GLASS_PRESETS, find_preset

logger = get_logger(__name__)


class GridRequest(BaseModel):
    """Body of the uniform mesh and debug grid endpoints."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    grid_size: int = DEFAULT_GRID_SIZE
    strength: float = 0.5
    width: float
    height: float
    center_x: float = 0.5
    center_y: float = 0.5
    corner_radius: float = 0.0


class SizeRequest(BaseModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


def _parse(model: type, payload: Any) -> Any:
    if not isinstance(payload, dict):
        raise InvalidParameters("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidParameters(str(exc)) from exc


def _ensure_static_root(path: Path) -> Path:
    """Validate that the static directory exists."""

    if not path.exists():
        raise RuntimeError(f"Static directory '{path}' does not exist")
    return path


def _require_mesh_transform(settings: Settings) -> None:
    if not settings.enable_mesh_transform:
        raise Unavailable("Mesh transforms are disabled for this host")


def _create_lifespan(settings: Settings):
    """Create an application lifespan manager bound to the provided settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        app.state.mesh_cache = get_mesh_cache()
        logger.info(
            "Mesh cache ready (max %d entries, key precision %d digits)",
            app.state.mesh_cache.max_entries,
            settings.cache_key_digits,
        )
        yield
        release_mesh_cache()

    return lifespan


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Instantiate the FastAPI application with the given settings."""

    settings = settings or get_settings()
    static_root = _ensure_static_root(Path(settings.static_dir))

    app = FastAPI(
        title="Liquid Glass Mesh Service",
        version="0.1.0",
        lifespan=_create_lifespan(settings),
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidParameters)
    async def invalid_parameters(request: Request, exc: InvalidParameters) -> Response:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(Unavailable)
    async def unavailable(request: Request, exc: Unavailable) -> Response:
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.get("/", response_class=HTMLResponse)
    async def index() -> Response:
        index_path = static_root / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=500, detail="Index not found")
        return FileResponse(index_path)

    @app.get("/api/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok"}

    @app.get("/api/presets")
    async def presets() -> Response:
        return JSONResponse(content=GLASS_PRESETS)

    @app.post("/api/presets/{preset_id}/mesh")
    async def preset_mesh(
        preset_id: str, request: Request, current_settings: Settings = Depends(get_settings)
    ) -> Dict[str, Any]:
        _require_mesh_transform(current_settings)
        configuration = find_preset(preset_id)
        if configuration is None:
            raise HTTPException(status_code=404, detail="Preset not found")
        size = _parse(SizeRequest, await request.json())
        params = configuration.distortion_params(size.width, size.height)
        mesh = build_optimized_mesh(params, cache=app.state.mesh_cache)
        return {
            "mesh": mesh.to_buffers(),
            "filters": configuration.backdrop_filters().filter_chain(),
        }

    @app.post("/api/mesh/optimized")
    async def optimized_mesh(request: Request, current_settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
        _require_mesh_transform(current_settings)
        payload = await request.json()
        if not isinstance(payload, dict):
            raise InvalidParameters("Request body must be a JSON object")
        mesh = build_optimized_mesh(payload, cache=app.state.mesh_cache)
        return mesh.to_buffers()

    @app.post("/api/mesh/uniform")
    async def uniform_mesh(request: Request, current_settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
        _require_mesh_transform(current_settings)
        grid = _parse(GridRequest, await request.json())
        mesh = build_uniform_mesh_centered(
            grid.grid_size,
            grid.strength,
            (grid.width, grid.height),
            (grid.center_x, grid.center_y),
            grid.corner_radius,
        )
        return mesh.to_buffers()

    @app.post("/api/debug-grid")
    async def debug_grid(request: Request) -> Dict[str, Any]:
        grid = _parse(GridRequest, await request.json())
        path = debug_grid_path(grid.grid_size, grid.strength, (grid.width, grid.height), grid.corner_radius)
        return {"polylines": [[list(point) for point in line] for line in path]}

    @app.post("/api/backdrop")
    async def backdrop(request: Request) -> Dict[str, Any]:
        filters = _parse(BackdropFilters, await request.json())
        return {"filters": filters.filter_chain(), "bleedAmount": filters.bleed_amount}

    @app.get("/api/cache")
    async def cache_stats() -> Dict[str, Any]:
        cache: MeshCache = app.state.mesh_cache
        stats = cache.stats()
        return {
            "size": stats.size,
            "maxEntries": stats.max_entries,
            "hits": stats.hits,
            "misses": stats.misses,
            "builds": stats.builds,
            "evictions": stats.evictions,
        }

    return app


app = create_app()
