"""FastAPI main application."""

import io
import logging
from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from PIL import Image
from pydantic import BaseModel, Field

from .. import __version__
from ..config import settings
from ..core.alea_prng import AleaPRNG
from ..core.tessellation import ConfigurationError, TessellationEngine, TieBreak
from ..utils.random import new_seed_string
from .canvas import Canvas, CanvasOptions

# Configure logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Voronoi Tessellation API",
    description="Grows approximate Voronoi diagrams over a pixel grid",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One diagram per process, replaced by POST /diagram
app.state.canvas = None
app.state.seed = None


# Request/Response models
class DiagramRequest(BaseModel):
    """Request to create a new diagram."""

    width: int = Field(settings.default_width, ge=1, le=settings.max_grid_width,
                       description="Grid width in pixels")
    height: int = Field(settings.default_height, ge=1, le=settings.max_grid_height,
                        description="Grid height in pixels")
    num_seeds: int = Field(settings.default_num_seeds, ge=0, le=settings.max_num_seeds,
                           description="Number of seeds")
    seed: Optional[str] = Field(None, description="Random seed for reproducible diagrams")
    tie_break: TieBreak = Field(settings.tie_break,
                                description="Winner of equal-distance claims")
    frame_delay_ms: int = Field(settings.frame_delay_ms, ge=0,
                                description="Pause between frames when run headless")
    hide_iterations: bool = Field(settings.hide_iterations,
                                  description="Run each update to completion")


class DiagramStatus(BaseModel):
    """Current state of the diagram."""

    width: int
    height: int
    seed: str
    num_seeds: int
    radius: int
    active_seeds: int
    assigned_cells: int
    complete: bool
    running: bool
    hide_iterations: bool


def get_canvas_or_404() -> Canvas:
    """Get the current canvas or raise 404."""
    canvas = app.state.canvas
    if canvas is None:
        raise HTTPException(status_code=404, detail="No diagram created")
    return canvas


def diagram_status(canvas: Canvas) -> DiagramStatus:
    engine = canvas.engine
    return DiagramStatus(
        width=engine.width,
        height=engine.height,
        seed=app.state.seed,
        num_seeds=len(engine.seeds),
        radius=engine.radius,
        active_seeds=len(engine.active_seeds),
        assigned_cells=engine.assigned_count,
        complete=engine.is_complete,
        running=canvas.running,
        hide_iterations=canvas.options.hide_iterations,
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Voronoi Tessellation API",
                host=settings.api_host, port=settings.api_port)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Voronoi Tessellation API")


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Voronoi Tessellation API",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "diagram": app.state.canvas is not None}


@app.post("/diagram", response_model=DiagramStatus)
async def create_diagram(request: DiagramRequest):
    """Create a new diagram, replacing the current one."""
    logger.info("Diagram requested", request=request.model_dump(mode="json"))

    seed = request.seed or settings.random_seed or new_seed_string()

    try:
        engine = TessellationEngine(
            request.width,
            request.height,
            request.num_seeds,
            tie_break=request.tie_break,
            prng=AleaPRNG(seed),
        )
    except ConfigurationError as e:
        logger.warning("Diagram rejected", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    options = CanvasOptions.from_settings(request)
    app.state.canvas = Canvas(engine, options)
    app.state.seed = seed

    return diagram_status(app.state.canvas)


@app.get("/diagram", response_model=DiagramStatus)
async def get_diagram():
    """Get the current diagram state."""
    return diagram_status(get_canvas_or_404())


@app.post("/diagram/update", response_model=DiagramStatus)
async def update_diagram():
    """Advance one frame, honouring the running flag and hide_iterations."""
    canvas = get_canvas_or_404()
    canvas.update()
    return diagram_status(canvas)


@app.post("/diagram/step", response_model=DiagramStatus)
async def step_diagram(run_to_completion: bool = False):
    """Step the engine directly, ignoring the running flag."""
    canvas = get_canvas_or_404()
    canvas.engine.step(run_to_completion)
    return diagram_status(canvas)


@app.post("/diagram/toggle", response_model=DiagramStatus)
async def toggle_diagram():
    """Pause or resume the animation."""
    canvas = get_canvas_or_404()
    canvas.toggle_running()
    return diagram_status(canvas)


@app.post("/diagram/reseed", response_model=DiagramStatus)
async def reseed_diagram():
    """Restart the diagram with new random seeds."""
    canvas = get_canvas_or_404()
    canvas.reseed()
    return diagram_status(canvas)


@app.get("/diagram/pixels")
async def get_pixels():
    """Raw RGBA8888 frame, row-major."""
    canvas = get_canvas_or_404()
    width, height = canvas.layout()
    return Response(
        content=canvas.engine.to_pixels(),
        media_type="application/octet-stream",
        headers={"X-Frame-Width": str(width), "X-Frame-Height": str(height)},
    )


@app.get("/diagram/image.png")
async def get_image():
    """Current frame as a PNG image."""
    canvas = get_canvas_or_404()
    image = Image.fromarray(canvas.engine.to_array())

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return Response(content=buffer.getvalue(), media_type="image/png")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
