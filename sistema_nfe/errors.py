from __future__ import annotations

from typing import Any, Dict

from sistema_nfe.ui_strings import error_message


class AppError(Exception):
    default_code = "store_error"
    default_message_key = "unexpected_error"
    default_http_status = 500
    default_critical = True

    def __init__(
        self,
        code: str | None = None,
        message_key: str | None = None,
        http_status: int | None = None,
        critical: bool | None = None,
        details: str | None = None,
        payload: Dict[str, Any] | None = None,
        message: str | None = None,
    ) -> None:
        self.code = (code or self.default_code).strip()
        self.message_key = (message_key or self.default_message_key).strip()
        self.http_status = int(http_status or self.default_http_status)
        self.critical = bool(self.default_critical if critical is None else critical)
        self.details = (details or "").strip() or None
        self.payload = dict(payload or {})
        self._message = (message or "").strip() or None
        super().__init__(self.details or self.code)

    def user_message(self) -> str:
        if self._message:
            return self._message
        fallback = error_message("unexpected_error", "Não foi possível concluir a operação.")
        return error_message(self.message_key, fallback)

    def to_response_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.user_message()}
        if self.payload:
            payload.update(self.payload)
        return payload


class ValidationError(AppError):
    default_code = "validation_error"
    default_message_key = "invalid_request"
    default_http_status = 400
    default_critical = False


class NotFoundError(AppError):
    default_code = "not_found"
    default_message_key = "record_not_found"
    default_http_status = 404
    default_critical = False


class StoreError(AppError):
    default_code = "store_error"
    default_message_key = "unexpected_error"
    default_http_status = 500
    default_critical = True
