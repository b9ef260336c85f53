# backend/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from config import settings
from database import init_db
from utils.errors import ServiceError

load_dotenv()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Router imports
from routes.margin_ranges import router as margin_ranges_router
from routes.products import router as products_router
from routes.quotations import router as quotations_router
from routes.sales import router as sales_router
from routes.stock import router as stock_router


def create_app(create_tables: bool = True) -> FastAPI:
    if create_tables:
        init_db()

    app = FastAPI(title="POS Inventory API", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Every core error reaches the client as {kind, message, context}
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"kind": "validation", "message": "Invalid request", "context": {"errors": errors}},
        )

    # Router registration
    app.include_router(products_router)
    app.include_router(margin_ranges_router)
    app.include_router(quotations_router)
    app.include_router(sales_router)
    app.include_router(stock_router, prefix="/stock")

    @app.get("/")
    def read_root():
        return {"message": "POS Inventory API is running"}

    return app


app = create_app()
