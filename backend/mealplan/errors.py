"""
Error taxonomy for the planning pipeline.

Every failure that aborts an operation is a MealPlanError subclass with a
stable ``kind``, the HTTP status the API answers with, and a user-facing
message. Quantity corrections are not errors (see ValidationCorrection in
mealplan.schemas.recipe).
"""

from __future__ import annotations


class MealPlanError(Exception):
    kind = "error"
    status_code = 500
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, *, detail: object | None = None) -> None:
        super().__init__(message or self.user_message)
        self.message = message or self.user_message
        self.detail = detail

    def to_payload(self) -> dict:
        payload: dict = {"error": self.kind, "detail": self.message}
        if self.detail is not None:
            payload["context"] = self.detail
        return payload


class AuthError(MealPlanError):
    kind = "unauthorized"
    status_code = 401
    user_message = "Missing or invalid credentials."


class UpstreamError(MealPlanError):
    """Base for failures of the external generation service."""

    kind = "upstream_error"
    status_code = 502
    user_message = "The meal generation service failed. Please try again later."


class UpstreamRateLimited(UpstreamError):
    kind = "rate_limited"
    status_code = 429
    user_message = "Too many requests right now. Try again shortly."


class UpstreamQuotaExhausted(UpstreamError):
    kind = "quota_exhausted"
    status_code = 402
    user_message = "The generation service has no credits left. Retrying will not help until credits are added."


class UpstreamOtherError(UpstreamError):
    kind = "upstream_error"


class ParseError(MealPlanError):
    kind = "parse_error"
    status_code = 502
    user_message = "The generation service replied, but the reply could not be read."


class PersistenceError(MealPlanError):
    kind = "persistence_error"
    status_code = 500
    user_message = "Could not save your data. Please try again."


def upstream_error_for_status(status_code: int, body: str = "") -> UpstreamError:
    """Map a non-success gateway status to the matching error kind."""
    snippet = body[:200] if body else None
    if status_code == 429:
        return UpstreamRateLimited(detail=snippet)
    if status_code == 402:
        return UpstreamQuotaExhausted(detail=snippet)
    return UpstreamOtherError(f"Generation service returned HTTP {status_code}", detail=snippet)
