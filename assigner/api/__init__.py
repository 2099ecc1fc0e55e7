"""HTTP API: routes, request/response schemas and server."""

from assigner.api.handlers import ERROR_STATUS, ApiHandlers, error_response
from assigner.api.server import create_server, run_server

__all__ = ["ERROR_STATUS", "ApiHandlers", "create_server", "error_response", "run_server"]
