from __future__ import annotations


class TaskValidationError(ValueError):
    """Raised before submission when an edit state cannot be persisted."""

    code = "ValidationError"
    message = "Некоректні дані задачі."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class EmptyDescription(TaskValidationError):
    code = "EmptyDescription"
    message = "Вкажи опис задачі."


class MissingRecurrencePattern(TaskValidationError):
    code = "MissingRecurrencePattern"
    message = "Обери шаблон повторення для повторюваної задачі."


class InvalidRecurrenceInterval(TaskValidationError):
    code = "InvalidRecurrenceInterval"
    message = "Інтервал повторення має бути від 1 до 52."


class ServiceReportError(ValueError):
    """Raised when a service report cannot be recorded."""

    code = "ReportError"
    message = "Некоректні дані звіту."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class EmptyWorkDescription(ServiceReportError):
    code = "EmptyWorkDescription"
    message = "Опиши виконану роботу."


class InvalidDuration(ServiceReportError):
    code = "InvalidDuration"
    message = "Тривалість роботи має бути цілим числом хвилин, не меншим за 0."


class InvalidPartQuantity(ServiceReportError):
    code = "InvalidPartQuantity"
    message = "Кількість запчастини має бути не меншою за 1."


class UnknownSparePart(ServiceReportError):
    code = "UnknownSparePart"
    message = "Запчастину не знайдено на складі."


class InsufficientStock(ServiceReportError):
    code = "InsufficientStock"
    message = "Недостатньо запчастин на складі."

    def __init__(self, part_name: str | None = None, available: int | None = None) -> None:
        self.part_name = part_name
        self.available = available
        if part_name is None:
            super().__init__()
        else:
            super().__init__(f"Недостатньо «{part_name}» на складі (є {available}).")
