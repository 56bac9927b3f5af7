"""
Единые ошибки и коды ошибок.

Назначение:
- предсказуемые коды для HTTP-конверта {success: false, error, details}
- различать "не достучались до шлюза" (можно повторить) и
  "шлюз ответил, но криво" (повторять бессмысленно)
"""

from __future__ import annotations

from dataclasses import dataclass


class ErrCode:
    # Общие
    UNKNOWN = "unknown"
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"

    # Провайдеры
    STT_PROVIDER_ERROR = "stt_provider_error"
    LLM_PROVIDER_ERROR = "llm_provider_error"
    TRANSPORT_ERROR = "transport_error"

    # Разбор ответа классификатора
    PARSE_ERROR = "parse_error"


_RETRYABLE_STATUSES = {408, 425, 429}


@dataclass
class AppError(Exception):
    """
    Базовая ошибка приложения.
    - code: стабильный код ошибки
    - message: безопасное сообщение
    - details: доп. данные (без секретов/аудио)
    """

    code: str
    message: str
    details: dict | None = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"

    @property
    def retryable(self) -> bool:
        return False


class ValidationError(AppError):
    """InvalidInput: отсутствуют/некорректны поля запроса. Не ретраится."""

    def __init__(self, message: str = "Invalid input", details: dict | None = None) -> None:
        super().__init__(ErrCode.VALIDATION, message, details)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized", details: dict | None = None) -> None:
        super().__init__(ErrCode.UNAUTHORIZED, message, details)


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found", details: dict | None = None) -> None:
        super().__init__(ErrCode.NOT_FOUND, message, details)


class ProviderError(AppError):
    def __init__(self, code: str, message: str, details: dict | None = None) -> None:
        super().__init__(code, message, details)


class UpstreamError(ProviderError):
    """
    Шлюз (STT или chat-completion) ответил не-2xx статусом
    либо вернул тело, которое не соответствует его же контракту.
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        status: int | None = None,
        body: str | None = None,
        details: dict | None = None,
    ) -> None:
        payload = dict(details or {})
        if status is not None:
            payload["status"] = status
        if body is not None:
            payload["body"] = body[:500]
        super().__init__(code, message, payload)
        self.status = status
        self.body = body

    @property
    def retryable(self) -> bool:
        if self.status is None:
            return False
        return self.status >= 500 or self.status in _RETRYABLE_STATUSES


class TransportError(ProviderError):
    """Сетевая ошибка до получения ответа от шлюза. Всегда можно повторить."""

    def __init__(self, code: str, message: str, details: dict | None = None) -> None:
        super().__init__(code, message, details)

    @property
    def retryable(self) -> bool:
        return True


class ParseError(AppError):
    """
    Ответ классификатора не в ожидаемой форме.
    Наружу не выходит: резолвер деградирует до intent=unknown.
    """

    def __init__(self, message: str = "Unparseable classifier reply", details: dict | None = None) -> None:
        super().__init__(ErrCode.PARSE_ERROR, message, details)


class CancelledError(AppError):
    def __init__(self, message: str = "Superseded by a newer recording", details: dict | None = None) -> None:
        super().__init__(ErrCode.CANCELLED, message, details)
