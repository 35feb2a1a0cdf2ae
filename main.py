import logging
import socket
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from core.config import settings
from core.exceptions import CatalogError
from database import create_db_and_tables, get_write_session_context
from api import products_router
from catalog import CatalogStore
from seed import SAMPLE_PRODUCTS, seed_catalog
from validation import describe_errors


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="E-commerce Catalog API")

# Setup CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Create tables on startup
@app.on_event("startup")
def on_startup():
    create_db_and_tables()
    logger.info("Database tables created.")
    if settings.SEED_ON_STARTUP:
        with get_write_session_context() as session:
            seed_catalog(CatalogStore(session))


# Error responses all share the {"error": message} shape
@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"Invalid request: {describe_errors(exc.errors())}"},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# Include routers
app.include_router(
    products_router,
    prefix="/products",
    tags=["Products"]
)


@app.get("/")
def read_root():
    return {
        "message": "E-commerce Catalog API with Nested Documents",
        "endpoints": {
            "GET /products": "Get all products (optional ?category= and ?color= filters)",
            "GET /products/category/{category}": "Get products by category",
            "GET /products/variants/color/{color}": "Get products having a variant of a color",
            "GET /products/variants/details": "Get product names with variant details only",
            "GET /products/{id}": "Get a product",
            "GET /products/{id}/variants": "Get variants of a product",
            "POST /products": "Create a new product",
            "PUT /products/{id}": "Update a product",
            "PATCH /products/variants/{sku}/stock": "Update the stock of one variant",
            "POST /products/{id}/variants": "Add a variant to a product",
            "DELETE /products/{id}": "Delete a product",
            "DELETE /products/variants/{sku}": "Remove one variant",
        },
        "errors": {
            "400": "Invalid body, field or product ID",
            "404": "Product or variant not found",
            "409": "Product changed concurrently too many times, retry the request",
            "500": "Store unavailable or unexpected error",
        },
        "samplePayload": {"createProduct": SAMPLE_PRODUCTS[0]},
    }


def port_is_free(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def main():
    port = settings.PORT
    if not port_is_free(settings.HOST, port):
        logger.warning("Port %d is busy, trying %d...", port, settings.FALLBACK_PORT)
        port = settings.FALLBACK_PORT
    logger.info("E-commerce Catalog Server starting on http://%s:%d", settings.HOST, port)
    uvicorn.run(app, host=settings.HOST, port=port, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
