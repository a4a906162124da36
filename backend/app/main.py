from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import analysis, evaluations, exports, reviews, settings as settings_api, vehicles
from app.config import settings
from app.logging_config import configure_logging
from app.services.storage import storage_client

configure_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(vehicles.router, prefix="/v1/vehicles", tags=["vehicles"])
app.include_router(reviews.router, prefix="/v1/vehicles", tags=["reviews"])
app.include_router(analysis.router, prefix="/v1/vehicles", tags=["analysis"])
app.include_router(settings_api.router, prefix="/v1/settings", tags=["settings"])
app.include_router(evaluations.router, prefix="/v1/evaluations", tags=["evaluations"])
app.include_router(exports.router, prefix="/v1/exports", tags=["exports"])


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.on_event("startup")
def ensure_storage_bucket() -> None:
    storage_client.ensure_bucket()
