import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from visioncrafter.aspect import resolve_dimensions
from visioncrafter.config import Settings
from visioncrafter.errors import GenerationError, InputError, ProviderError
from visioncrafter.generation import GenerationResponse, GenerationService, parse_request

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def get_generation_service(request: Request) -> GenerationService:
    return request.app.state.generation_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.generation_service is None:
        load_dotenv()
        settings = Settings.from_env()
        logging.getLogger().setLevel(settings.log_level)
        app.state.generation_service = GenerationService.from_settings(settings)

    service: GenerationService = app.state.generation_service
    if not service.configured:
        logger.warning(
            "No image provider credential configured; "
            "/api/generate will fail until FAL_KEY or OPENAI_API_KEY is set"
        )
    yield


def create_app(service: GenerationService | None = None) -> FastAPI:
    app = FastAPI(title="VisionCrafter", lifespan=lifespan)
    app.state.generation_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GenerationError)
    async def generation_error_handler(_: Request, exc: GenerationError) -> JSONResponse:
        if isinstance(exc, ProviderError):
            logger.error(f"[image-generate] {exc.provider} provider failed: {exc.message}")
        elif isinstance(exc, InputError):
            logger.info(f"[image-generate] rejected request: {exc.message}")
        else:
            logger.error(f"[image-generate] {exc.message}")
        return JSONResponse({"error": exc.public_message}, status_code=exc.status_code)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/providers")
    async def get_providers(
        service: GenerationService = Depends(get_generation_service),
    ) -> dict[str, Any]:
        providers = {}
        for provider in service.providers:
            providers[provider.name] = {
                "label": provider.label,
                "requiresKey": provider.credential_env,
                "hasKey": provider.configured,
            }
        return {"providers": providers}

    @app.get("/api/dimensions")
    async def get_dimensions(aspect_ratio: str | None = Query(default=None, alias="aspectRatio")) -> dict[str, Any]:
        return asdict(resolve_dimensions(aspect_ratio))

    @app.post("/api/generate", response_model=GenerationResponse)
    async def generate_image(
        request: Request,
        service: GenerationService = Depends(get_generation_service),
    ) -> GenerationResponse:
        payload = parse_request(await request.body())
        return await service.generate(payload)

    @app.get("/")
    async def root() -> FileResponse:
        return FileResponse(STATIC_DIR / "index.html")

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
