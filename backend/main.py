from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.openapi.utils import get_openapi
from contextlib import asynccontextmanager
from datetime import datetime
import logging
import os

from config import settings
from database import Base, engine, SessionLocal
import models  # noqa: F401  registers every table on Base.metadata
import routers.clients as clients
import routers.client_integrations as client_integrations
import routers.employees as employees
import routers.products as products
import routers.product_categories as product_categories
import routers.roles as roles
import routers.sales as sales
import routers.sale_installments as sale_installments
import routers.expenses as expenses
import routers.job_cards as job_cards
import routers.payment_reminders as payment_reminders
import routers.system_logs as system_logs
from crud.employees import ensure_default_roles
from crud.expense_categories import seed_default_categories
from utils.errors import AppError


os.makedirs(settings.LOG_DIR, exist_ok=True)  # Create the logs directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(settings.LOG_DIR, f"app_{current_time_str}.log")

log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

# Configure the root logger
logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE,  # Log to a file
    filemode='a'  # Append to the file if it exists
)

# Also log to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(log_level)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler)

logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup seeds the default roles and expense categories, then starts the
    reminder scheduler when enabled. Shutdown stops the scheduler.
    """
    db = SessionLocal()
    try:
        ensure_default_roles(db)
        seed_default_categories(db)
    finally:
        db.close()

    if settings.SCHEDULER_ENABLED:
        from scheduler import scheduler
        scheduler.start()
        logger.info("Payment reminder scheduler started")

    yield

    if settings.SCHEDULER_ENABLED:
        from scheduler import scheduler
        if scheduler.running:
            scheduler.shutdown(wait=False)
            logger.info("Payment reminder scheduler stopped")


app = FastAPI(lifespan=lifespan)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Ventura Sales & Expenses API",
        version="1.0.0",
        description="Sales installments, expenses, job cards and payment reminders",
        routes=app.routes,
    )
    openapi_schema["components"]["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

app.include_router(clients.router)
app.include_router(client_integrations.router)
app.include_router(employees.router)
app.include_router(roles.router)
app.include_router(products.router)
app.include_router(product_categories.router)
app.include_router(sales.router)
app.include_router(sale_installments.router)
app.include_router(expenses.router)
app.include_router(job_cards.router)
app.include_router(payment_reminders.router)
app.include_router(system_logs.router)


@app.get("/")
async def test_route():
    return {"message": "Welcome to the Ventura sales & expenses API!"}
