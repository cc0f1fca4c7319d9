from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from farmease.core.config import settings
from farmease.config.checkout_config import CHECKOUT_CONFIG
from farmease.core.database import connect_to_mongo, close_mongo_connection, get_database
from farmease.api.routes import cart, rentals, checkout
from farmease.services.invoice_service import InvoiceService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Cart, rental pricing and checkout API for the FarmEase storefront",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    logger.info("Starting up FarmEase backend...")
    await connect_to_mongo()
    logger.info("FarmEase backend started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up services on shutdown."""
    logger.info("Shutting down FarmEase backend...")
    await close_mongo_connection()
    logger.info("FarmEase backend shut down successfully")


# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint.

    Reports the checkout mode and whether invoice email is configured, since
    checkouts fail as "Payment failed" while it is not.
    """
    invoice_ready = InvoiceService().is_configured()
    if not invoice_ready:
        logger.warning("Invoice email is not configured; checkouts will fail")
    return {
        "status": "healthy" if invoice_ready else "degraded",
        "service": "farmease-backend",
        "checkout_mode": CHECKOUT_CONFIG["mode"],
        "invoice_email_configured": invoice_ready,
        "database_connected": get_database() is not None
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with the cart and checkout entry points."""
    prefix = settings.API_V1_PREFIX
    return {
        "name": settings.PROJECT_NAME,
        "description": "FarmEase Cart & Checkout API",
        "currency": CHECKOUT_CONFIG["currency"],
        "cart": f"{prefix}/cart",
        "rental_quote": f"{prefix}/rentals/quote",
        "checkout": f"{prefix}/checkout",
        "docs": "/docs",
        "health": "/health"
    }


# Include routers
app.include_router(cart.router, prefix=f"{settings.API_V1_PREFIX}/cart", tags=["Cart"])
app.include_router(rentals.router, prefix=f"{settings.API_V1_PREFIX}/rentals", tags=["Rentals"])
app.include_router(checkout.router, prefix=f"{settings.API_V1_PREFIX}/checkout", tags=["Checkout"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
