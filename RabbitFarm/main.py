from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from config.settings import settings
from api.router import api_router
from utils.errors import install_error_handlers
from utils.logging_config import setup_logging
from utils.responses import success_response

setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)
app.include_router(api_router)

@app.get("/health", tags=["health"])
def health():
    return success_response({"status": "ok"})
