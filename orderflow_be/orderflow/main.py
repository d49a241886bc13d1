from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from orderflow.config import get_settings
from orderflow.routers import orders
from orderflow.routers import vendor_orders
from orderflow.routers import vendor_returns
from orderflow.utils.errors import OrderflowError, ValidationError

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("orderflow")

app = FastAPI(title="Orderflow - order lifecycle and fulfillment")


@app.on_event("startup")
def on_startup():
    # Ensure all DB tables exist after all models are imported
    from orderflow.models.user import Base, engine  # Base/engine single source
    import orderflow.models.address  # register ShippingAddress model
    import orderflow.models.product  # register Product model
    import orderflow.models.order  # register Order/OrderItem models
    import orderflow.models.return_request  # register ReturnReplaceRequest model
    Base.metadata.create_all(bind=engine)


@app.exception_handler(OrderflowError)
async def handle_orderflow_error(request: Request, exc: OrderflowError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.warning("%s %s refused (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    error = ValidationError(
        "Request body or parameters are invalid",
        details=[{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()],
    )
    logger.warning("%s %s invalid input: %s", request.method, request.url.path, error.details)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(vendor_orders.router, prefix="/api/vendor/orders", tags=["vendor-orders"])
app.include_router(vendor_returns.router, prefix="/api/vendor/return-replace", tags=["vendor-return-replace"])


# --- Entry point for local runs ---
if __name__ == "__main__":
    import uvicorn, os
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("orderflow.main:app", host="0.0.0.0", port=port, reload=False)
