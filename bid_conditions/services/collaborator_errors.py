from __future__ import annotations

from dataclasses import dataclass


class CollaboratorError(RuntimeError):
    """Failure reported by an external collaborator (catalog endpoint, risk scorer)."""


class CatalogFetchError(CollaboratorError):
    pass


class RiskServiceError(CollaboratorError):
    pass


@dataclass(frozen=True)
class ErrorContract:
    code: str
    user_message: str
    retryable: bool


def classify_collaborator_exception(exc: Exception) -> ErrorContract:
    text = str(exc).lower()
    name = type(exc).__name__.lower()

    if "timeout" in text or "timed out" in text or "timeout" in name:
        return ErrorContract(
            code="transient_network_error",
            user_message="The service did not answer in time; retry is safe.",
            retryable=True,
        )

    if "connection" in name or "connection" in text:
        return ErrorContract(
            code="transient_network_error",
            user_message="Could not reach the service; check connectivity and retry.",
            retryable=True,
        )

    if isinstance(exc, CatalogFetchError):
        return ErrorContract(
            code="catalog_unavailable",
            user_message=f"Clause catalog could not be loaded: {exc}",
            retryable=True,
        )

    if isinstance(exc, RiskServiceError):
        return ErrorContract(
            code="risk_service_error",
            user_message=f"Risk analysis failed: {exc}",
            retryable=True,
        )

    if isinstance(exc, ValueError) and ("json" in text or "decode" in name):
        return ErrorContract(
            code="malformed_response",
            user_message="The service returned an unreadable response.",
            retryable=True,
        )

    return ErrorContract(
        code="unexpected_error",
        user_message=f"Unexpected collaborator error: {exc}",
        retryable=False,
    )
