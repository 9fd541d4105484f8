"""
Interior Manager - inventory and project tracking for an interior design studio
FastAPI backend over PostgreSQL, with a local JSON fallback store
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
from pathlib import Path
import logging

# Load environment variables
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from database import settings  # noqa: E402

# ==================== Logging Configuration ====================
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create the main app
app = FastAPI(
    title="Interior Manager",
    description="Inventory & Project Management",
    version="1.0.0"
)


# Health check endpoint at root level (for Kubernetes)
@app.get("/health")
async def root_health_check():
    """Health check endpoint for liveness/readiness probes"""
    from routes.dependencies import get_store_mode
    return {"status": "healthy", "record_store": get_store_mode()}

# ==================== Routes ====================
from routes.auth_routes import auth_router  # noqa: E402
from routes.dashboard_routes import dashboard_router  # noqa: E402
from routes.inventory_routes import inventory_router  # noqa: E402
from routes.parties_routes import parties_router  # noqa: E402
from routes.projects_routes import projects_router  # noqa: E402
from routes.payments_routes import payments_router  # noqa: E402

app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(inventory_router)
app.include_router(parties_router)
app.include_router(projects_router)
app.include_router(payments_router)

# ==================== CORS Configuration ====================
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=settings.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== Startup & Shutdown Events ====================
@app.on_event("startup")
async def startup_record_store():
    """Choose the record store and prepare it"""
    logger.info("Starting Interior Manager...")

    from routes.dependencies import configure_record_store
    mode = configure_record_store(settings)

    if mode == "remote":
        from database import init_postgres_db
        await init_postgres_db()
        logger.info("PostgreSQL database initialized successfully")


@app.on_event("shutdown")
async def shutdown_record_store():
    """Close database connections on shutdown"""
    logger.info("Shutting down...")

    from routes.dependencies import get_store_mode
    if get_store_mode() == "remote":
        from database import close_postgres_db
        await close_postgres_db()
        logger.info("Database connections closed")
