import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from loyaltytree.config import get_settings
from loyaltytree.db import engine, Base
from loyaltytree.errors import LoyaltyError

from loyaltytree.models.customer import Customer
from loyaltytree.models.retailer import Retailer
from loyaltytree.models.tree_submission import TreeSubmission
from loyaltytree.models.voucher import Voucher
from loyaltytree.models.voucher_redemption import VoucherRedemption

from loyaltytree.routes.auth import router as auth_router
from loyaltytree.routes.trees import router as trees_router
from loyaltytree.routes.vouchers import router as vouchers_router
from loyaltytree.routes.admin import router as admin_router
from loyaltytree.services.upload_service import UPLOADS_URL_PREFIX


settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="LoyaltyTree")

# ─── CORS ─────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Errors ───────────────────────────────────────────────────────
_DEFAULT_CODES = {
    400: "validation_error",
    401: "not_authenticated",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


@app.exception_handler(LoyaltyError)
async def loyalty_error_handler(request: Request, exc: LoyaltyError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail, "code": exc.code})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = _DEFAULT_CODES.get(exc.status_code, "error")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "code": code},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "code": "validation_error", "fields": fields},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error", extra={"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=500, content={"error": "Internal server error", "code": "internal_error"})


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


app.include_router(auth_router)
app.include_router(trees_router)
app.include_router(vouchers_router)
app.include_router(admin_router)

app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


@app.get("/")
def read_root():
    return {"message": "LoyaltyTree is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=3000)
