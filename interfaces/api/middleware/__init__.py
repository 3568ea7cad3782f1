"""API middleware for error handling and cross-cutting concerns."""

from interfaces.api.middleware.error_handler import domain_error_handler, handle_use_case_errors

__all__ = ["domain_error_handler", "handle_use_case_errors"]
