"""FastAPI application factory for the Storefront.

The domain must be initialised (``storefront.init()``) before the app
serves requests. Each request runs inside the storefront domain context;
the payment gateway is built once from settings and kept on ``app.state``.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.errors import register_exception_handlers
from storefront.api.routes import cart_router, order_router, payment_router
from storefront.config import Settings, get_settings
from storefront.domain import storefront
from storefront.payment.gateway import PaymentGateway, build_gateway
from storefront.utils.logging import add_context, clear_context


def create_app(settings: Settings | None = None, gateway: PaymentGateway | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Cart, orders, inventory and Webpay payments",
    )
    app.state.settings = settings
    app.state.gateway = gateway or build_gateway(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the storefront domain context and bind request log context."""
        clear_context()
        add_context(method=request.method, path=request.url.path)
        try:
            with storefront.domain_context():
                return await call_next(request)
        finally:
            clear_context()

    register_exception_handlers(app)

    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(payment_router)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "success": True,
                "data": {"status": "ok", "domain": storefront.name, "gateway": type(app.state.gateway).__name__},
            }
        )

    return app
