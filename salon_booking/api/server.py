"""FastAPI server for the salon booking engine.

Features:
- REST endpoints per tenant (slots, book, find, update, cancel)
- JSON-RPC 2.0 /mcp endpoint (tools/list, tools/call) for assistants
- Global exception handling mapped from booking error kinds
- Request IDs on every response and log line
- Health check endpoint

Run with: python -m salon_booking.api.server
"""
import json
from contextlib import asynccontextmanager
from datetime import datetime, UTC
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from salon_booking.api.dependencies import build_booking_service, get_booking_service, get_tool_dispatcher
from salon_booking.api.models import (
    BookAppointmentRequest,
    CancelAppointmentRequest,
    JsonRpcRequest,
    UpdateAppointmentRequest,
)
from salon_booking.booking_service import BookingService
from salon_booking.errors import (
    BookingError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    TenantNotFoundError,
)
from salon_booking.formatting import (
    format_available_slots,
    format_booking_success,
    format_cancellation_response,
    format_error,
    format_find_response,
    format_update_response,
)
from salon_booking.logging_config import bind_request_id, generate_request_id, get_logger, setup_structured_logging
from salon_booking.settings import SERVICE_NAME, VERSION, Settings, load_settings
from salon_booking.tools import ToolDispatcher, UnknownToolError

logger = get_logger(__name__)

JSONRPC_INVALID_REQUEST = -32600
JSONRPC_METHOD_NOT_FOUND = -32601
JSONRPC_PARSE_ERROR = -32700


def status_for(exc: BookingError) -> int:
    """HTTP status for a booking error kind."""
    if isinstance(exc, TenantNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConfigurationError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT
    # validation, business rule, capacity and cancellation policy
    return status.HTTP_400_BAD_REQUEST


def _rpc_error(rpc_id, code: int, message: str, http_status: int = status.HTTP_400_BAD_REQUEST):
    return JSONResponse(
        status_code=http_status,
        content={"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}
    )


def create_app(
    settings: Optional[Settings] = None,
    booking_service: Optional[BookingService] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Runtime settings (loaded from the environment if omitted)
        booking_service: Pre-built service (tests inject one with a fixed clock)
    """
    settings = settings or load_settings()
    service = booking_service or build_booking_service(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("server_starting", service=SERVICE_NAME, version=VERSION)
        yield
        service.store.close()
        logger.info("server_stopped")

    app = FastAPI(
        title="Salon Booking API",
        description="Multi-tenant salon appointment booking",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.booking_service = service
    app.state.tool_dispatcher = ToolDispatcher(service)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type"],
        expose_headers=["X-Request-ID"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = generate_request_id()
        bind_request_id(request_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors consistently."""
        logger.warning("request_validation_error", errors=str(exc.errors()))
        reasons = [
            f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=format_error(reasons, "VALIDATION_ERROR")
        )

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        """Map booking error kinds to HTTP responses."""
        if isinstance(exc, ConfigurationError) and not isinstance(exc, TenantNotFoundError):
            logger.error("configuration_error", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=status_for(exc),
            content=format_error(exc.errors, exc.code)
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all handler for unexpected exceptions."""
        logger.error("unexpected_error", path=request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=format_error(
                "An unexpected error occurred. Please try again later.",
                "INTERNAL_ERROR"
            )
        )

    @app.get("/health", tags=["Health"])
    def health_check(service: BookingService = Depends(get_booking_service)):
        """Health check endpoint for load balancers."""
        connected = service.store.is_connected()
        return {
            "status": "healthy" if connected else "degraded",
            "service": SERVICE_NAME,
            "version": VERSION,
            "timestamp": datetime.now(UTC).isoformat(),
            "database": "connected" if connected else "disconnected",
        }

    @app.get("/api/v1/tenants/{tenant_id}/slots", tags=["Slots"])
    def get_slots(
        tenant_id: str,
        date: str,
        service_id: str,
        service: BookingService = Depends(get_booking_service)
    ):
        result = service.get_available_slots(tenant_id, date, service_id)
        return format_available_slots(result["slots"], result["date"], result["service"])

    @app.post(
        "/api/v1/tenants/{tenant_id}/appointments",
        tags=["Appointments"],
        status_code=status.HTTP_201_CREATED
    )
    def book(
        tenant_id: str,
        body: BookAppointmentRequest,
        service: BookingService = Depends(get_booking_service)
    ):
        appointment = service.book_appointment(
            tenant_id=tenant_id,
            customer_name=body.customer_name,
            phone_number=body.phone_number,
            service_id=body.service_id,
            date=body.date,
            time=body.time,
            notes=body.notes,
        )
        return format_booking_success(appointment, service.config_provider.get_policy(tenant_id))

    @app.get("/api/v1/tenants/{tenant_id}/appointments/{booking_id}", tags=["Appointments"])
    def get_appointment(
        tenant_id: str,
        booking_id: str,
        service: BookingService = Depends(get_booking_service)
    ):
        appointments = service.find_appointment(tenant_id, booking_id=booking_id)
        return format_find_response(appointments, service.config_provider.get_policy(tenant_id))

    @app.get("/api/v1/tenants/{tenant_id}/appointments", tags=["Appointments"])
    def find_by_phone(
        tenant_id: str,
        phone_number: Optional[str] = None,
        service: BookingService = Depends(get_booking_service)
    ):
        appointments = service.find_appointment(tenant_id, phone_number=phone_number)
        return format_find_response(appointments, service.config_provider.get_policy(tenant_id))

    @app.patch("/api/v1/tenants/{tenant_id}/appointments/{booking_id}", tags=["Appointments"])
    def update(
        tenant_id: str,
        booking_id: str,
        body: UpdateAppointmentRequest,
        service: BookingService = Depends(get_booking_service)
    ):
        appointment = service.update_appointment(
            tenant_id,
            booking_id,
            new_date=body.new_date,
            new_time=body.new_time,
            new_service_id=body.new_service_id,
            new_notes=body.new_notes,
        )
        return format_update_response(appointment, service.config_provider.get_policy(tenant_id))

    @app.post("/api/v1/tenants/{tenant_id}/appointments/{booking_id}/cancel", tags=["Appointments"])
    def cancel(
        tenant_id: str,
        booking_id: str,
        body: Optional[CancelAppointmentRequest] = None,
        service: BookingService = Depends(get_booking_service)
    ):
        reason = body.cancellation_reason if body else ""
        appointment = service.cancel_appointment(tenant_id, booking_id, cancellation_reason=reason)
        return format_cancellation_response(appointment, service.config_provider.get_policy(tenant_id))

    @app.post("/mcp", tags=["MCP"])
    async def mcp(request: Request, dispatcher: ToolDispatcher = Depends(get_tool_dispatcher)):
        """
        JSON-RPC 2.0 endpoint.

        Methods:
            tools/list: tool names, descriptions and input schemas
            tools/call: {"name": ..., "arguments": {...}}; the tool's response
                is returned as JSON text content
        """
        try:
            payload = await request.json()
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        except ValueError:
            return _rpc_error(None, JSONRPC_PARSE_ERROR, "Parse error")

        try:
            rpc = JsonRpcRequest.model_validate(payload)
        except ValueError:
            rpc_id = payload.get("id") if isinstance(payload, dict) else None
            return _rpc_error(rpc_id, JSONRPC_INVALID_REQUEST, "Invalid Request")

        if rpc.method == "tools/list":
            return {"jsonrpc": "2.0", "id": rpc.id, "result": {"tools": dispatcher.list_tools()}}

        if rpc.method == "tools/call":
            name = rpc.params.get("name")
            arguments = rpc.params.get("arguments") or {}
            try:
                result = await run_in_threadpool(dispatcher.call, name, arguments)
            except UnknownToolError as e:
                return _rpc_error(rpc.id, JSONRPC_METHOD_NOT_FOUND, str(e))

            return {
                "jsonrpc": "2.0",
                "id": rpc.id,
                "result": {
                    "content": [{"type": "text", "text": json.dumps(result, ensure_ascii=False)}],
                    "isError": not result.get("success", False),
                },
            }

        return _rpc_error(rpc.id, JSONRPC_METHOD_NOT_FOUND, f"Unknown method: {rpc.method}")

    return app


def main():
    import uvicorn

    settings = load_settings()
    setup_structured_logging(settings.log_level, settings.log_format)
    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
