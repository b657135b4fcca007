from __future__ import annotations

from PySide6.QtCore import QSize, Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from fieldops.domain.entities import TaskEntity
from fieldops.domain.enums import RecurrencePattern, TaskType

STATUS_LABELS = {
    "pending": "Очікує",
    "in_progress": "У роботі",
    "completed": "Виконано",
}

PRIORITY_OPTIONS = [
    ("Низький", "low"),
    ("Звичайний", "normal"),
    ("Високий", "high"),
    ("Терміновий", "urgent"),
]

PRIORITY_COLORS = {
    "low": "#7CC4A1",
    "normal": "#E0B25B",
    "high": "#E57B63",
    "urgent": "#E24A4A",
}

TASK_TYPE_OPTIONS = [
    ("Одноразова", TaskType.ONE_TIME.value),
    ("Повторювана", TaskType.RECURRING.value),
]

RECURRENCE_OPTIONS = [
    ("Щотижня", RecurrencePattern.WEEKLY.value),
    ("Щомісяця", RecurrencePattern.MONTHLY.value),
    ("Щокварталу", RecurrencePattern.QUARTERLY.value),
    ("Раз на пів року", RecurrencePattern.SEMI_ANNUAL.value),
    ("Щороку", RecurrencePattern.YEARLY.value),
]


def recurrence_label(task: TaskEntity) -> str | None:
    if task.task_type != TaskType.RECURRING or not task.recurrence_pattern:
        return None
    label = next(
        (label for label, value in RECURRENCE_OPTIONS if value == task.recurrence_pattern),
        task.recurrence_pattern,
    )
    interval = task.recurrence_interval or 1
    return label if interval == 1 else f"{label} ×{interval}"


class TaskItemWidget(QWidget):
    def __init__(self, task: TaskEntity, client_name: str | None = None):
        super().__init__()
        self.task = task

        self.setObjectName("TaskCard")
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self.setMinimumHeight(64)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 8, 12, 8)
        layout.setSpacing(4)

        title = QLabel(task.description.strip() or "Без опису")
        title.setProperty("class", "task-title")
        title.setWordWrap(True)
        title.setMinimumWidth(0)
        title.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)

        meta_parts = []
        if client_name:
            meta_parts.append(client_name)
        if task.due_date:
            meta_parts.append(f"Термін: {task.due_date.strftime('%d.%m.%Y')}")
        repeat = recurrence_label(task)
        if repeat:
            meta_parts.append(f"Повтор: {repeat}")
        meta_parts.append(f"Статус: {STATUS_LABELS.get(task.status.value, task.status.value)}")

        meta = QLabel(" | ".join(meta_parts))
        meta.setProperty("class", "task-meta")
        meta.setWordWrap(True)
        meta.setMinimumWidth(0)
        meta.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)

        priority_label = next(
            (label for label, value in PRIORITY_OPTIONS if value == task.priority),
            "Невідомо",
        )
        priority = QLabel(priority_label)
        priority.setProperty("class", "task-priority")
        priority.setStyleSheet(
            f"background-color: {PRIORITY_COLORS.get(task.priority.value, '#9CA3AF')};"
        )
        priority.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)

        header = QHBoxLayout()
        header.setSpacing(8)
        header.addWidget(title, 1)
        header.addWidget(priority, 0, Qt.AlignTop)

        layout.addLayout(header)
        layout.addWidget(meta)

    def set_selected(self, selected: bool) -> None:
        self.setProperty("selected", selected)
        self.style().unpolish(self)
        self.style().polish(self)


class TaskItemContainer(QWidget):
    def __init__(self, task_widget: TaskItemWidget, h_margin: int = 12, parent=None):
        super().__init__(parent)
        self.task_widget = task_widget
        layout = QHBoxLayout(self)
        layout.setContentsMargins(h_margin, 0, h_margin, 0)
        layout.setSpacing(0)
        layout.addWidget(task_widget)

    @property
    def task(self) -> TaskEntity:
        return self.task_widget.task

    def set_selected(self, selected: bool) -> None:
        self.task_widget.set_selected(selected)


class TaskListWidget(QListWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self._h_margin = 12
        self._v_margin = 8
        self.setSelectionMode(QAbstractItemView.SingleSelection)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self._update_viewport_margins()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self.sync_item_sizes()

    def _update_viewport_margins(self) -> None:
        scrollbar_width = self.verticalScrollBar().width() or self.verticalScrollBar().sizeHint().width()
        right_margin = self._h_margin + (scrollbar_width if self.verticalScrollBar().isVisible() else 0)
        self.setViewportMargins(self._h_margin, self._v_margin, right_margin, self._v_margin)

    def sync_item_sizes(self) -> None:
        self._update_viewport_margins()
        viewport_width = self.viewport().width()
        for index in range(self.count()):
            item = self.item(index)
            widget = self.itemWidget(item)
            if widget:
                widget.setMinimumWidth(viewport_width)
                widget.setMaximumWidth(viewport_width)
                widget.adjustSize()
                hint = widget.sizeHint()
                item.setSizeHint(QSize(viewport_width, hint.height()))
                widget.resize(viewport_width, hint.height())
