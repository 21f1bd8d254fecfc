"""Request context middleware for logging."""
import json
import time
import uuid
from contextvars import ContextVar
from typing import Any
from typing import Callable
from typing import Optional

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from lucky_drop.monitoring.logger import log_request_info

# Context variables to store request-specific data
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
client_ip_ctx: ContextVar[str] = ContextVar("client_ip", default="")
user_identity_ctx: ContextVar[str] = ContextVar("user_identity", default="")
user_agent_ctx: ContextVar[str] = ContextVar("user_agent", default="")
request_path_ctx: ContextVar[str] = ContextVar("request_path", default="")

# Maximum size for request body logging (to avoid memory issues)
MAX_BODY_LOG_SIZE = 10000  # 10KB limit

# Request bodies under these keys are never logged
SENSITIVE_BODY_KEYS = {"address", "token", "id_token", "password"}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to capture and log request context information."""

    async def dispatch(self, request: Request, call_next: Callable) -> Any:
        """
        Capture request context and add to logging.

        Captures:
        - Request ID (from header or generated)
        - Client IP (first X-Forwarded-For hop or direct)
        - User identity (bearer token presence; the uid is resolved later by the auth dependency)
        - User agent
        - Request path and method
        - JSON request body (for POST/PUT/PATCH), with recipient addresses redacted
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_ctx.set(request_id)

        client_ip = self._get_client_ip(request)
        client_ip_ctx.set(client_ip)

        user_identity = self._get_user_identity(request)
        user_identity_ctx.set(user_identity)

        user_agent = request.headers.get("User-Agent", "unknown")
        user_agent_ctx.set(user_agent)

        request_path = f"{request.method} {request.url.path}"
        request_path_ctx.set(request_path)

        # Store in request state early so error handlers can access it
        request.state.request_body = None
        if request.method in ("POST", "PUT", "PATCH"):
            request.state.request_body = await self._get_request_body(request)

        with logger.contextualize(
            request_id=request_id,
            client_ip=client_ip,
            user_identity=user_identity,
            request_path=request_path,
        ):
            log_request_info(request)

            start_time = time.time()
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000

            logger.info(
                f"{request.method} {request.url.path} - {response.status_code}",
                event_type="http_request",
                http_method=request.method,
                url_path=str(request.url.path),
                url_query=str(request.query_params) if request.query_params else None,
                user_agent=user_agent,
                content_type=request.headers.get("Content-Type"),
                request_body=request.state.request_body,
                status_code=response.status_code,
                response_time_ms=round(duration_ms, 2),
                response_content_type=response.headers.get("content-type"),
            )

            response.headers["X-Request-ID"] = request_id
            return response

    async def _get_request_body(self, request: Request) -> Optional[dict]:
        """
        Read the JSON request body for logging.

        Multipart uploads and other non-JSON payloads are summarised by size only.

        Returns:
            Parsed JSON body, a summary dict, or None if empty
        """
        content_type = request.headers.get("Content-Type", "")
        if "application/json" not in content_type.lower():
            content_length = request.headers.get("Content-Length")
            if content_length:
                return {"_content_type": content_type, "_size": content_length}
            return None

        try:
            body = await request.body()
        except RuntimeError:
            return None

        if not body:
            return None

        if len(body) > MAX_BODY_LOG_SIZE:
            return {"_truncated": True, "_size": len(body)}

        try:
            parsed = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return {"_error": "Failed to parse request body", "_error_detail": str(e)}

        return self._redact(parsed)

    def _redact(self, body: Any) -> Any:
        """Replace values under sensitive keys with a placeholder."""
        if isinstance(body, dict):
            return {
                key: "***" if key.lower() in SENSITIVE_BODY_KEYS else self._redact(value)
                for key, value in body.items()
            }
        if isinstance(body, list):
            return [self._redact(item) for item in body]
        return body

    def _get_client_ip(self, request: Request) -> str:
        """Get real client IP address (first X-Forwarded-For hop behind a proxy)."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # X-Forwarded-For can contain multiple IPs, take the first one
            return forwarded_for.split(",")[0].strip()

        if request.client:
            return request.client.host

        return "unknown"

    def _get_user_identity(self, request: Request) -> str:
        """Describe the caller without decoding credentials."""
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token_preview = auth_header[7:17] + "..."
            return f"bearer_token:{token_preview}"

        return "anonymous"


def get_request_context() -> dict:
    """
    Get current request context for logging.

    Returns:
        Dictionary with request context variables
    """
    return {
        "request_id": request_id_ctx.get(),
        "client_ip": client_ip_ctx.get(),
        "user_identity": user_identity_ctx.get(),
        "user_agent": user_agent_ctx.get(),
        "request_path": request_path_ctx.get(),
    }
