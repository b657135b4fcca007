from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QComboBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QSizePolicy,
    QSplitter,
    QVBoxLayout,
    QWidget,
)
from sqlalchemy.exc import SQLAlchemyError

from fieldops.domain.entities import TaskEntity
from fieldops.domain.enums import TaskStatus
from fieldops.domain.filters import TaskFilters
from fieldops.infra.repository import ClientRepository, InventoryRepository, ReportRepository, TaskRepository
from fieldops.services.client_service import ClientService
from fieldops.services.inventory_service import InventoryService
from fieldops.services.report_service import ReportService
from fieldops.services.task_service import TaskService

from .dialogs import ApplianceDialog, ClientDialog, EditTaskDialog
from .feedback import report_store_error
from .inventory import ApplianceHistoryDialog, InventoryDialog, ReportDialog
from .widgets import (
    PRIORITY_OPTIONS,
    STATUS_LABELS,
    TaskItemContainer,
    TaskItemWidget,
    TaskListWidget,
    recurrence_label,
)

FILTERS = [
    ("Усі", "all"),
    ("Очікують", "pending"),
    ("У роботі", "in_progress"),
    ("Прострочені", "overdue"),
    ("Найближчі дні", "upcoming"),
    ("Повторювані", "recurring"),
    ("Виконано", "completed"),
]


class MainWindow(QWidget):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Field Service Desk")
        self.resize(1280, 760)

        self.service = TaskService(TaskRepository())
        self.client_service = ClientService(ClientRepository())
        self.inventory = InventoryService(InventoryRepository())
        self.reports = ReportService(ReportRepository(), self.service)

        self.current_task_id: int | None = None
        self.current_filter = "all"
        self.client_names: dict[int, str] = {}

        main_layout = QHBoxLayout(self)
        main_layout.setContentsMargins(12, 12, 12, 12)

        splitter = QSplitter(Qt.Horizontal)
        main_layout.addWidget(splitter)

        splitter.addWidget(self._build_sidebar())
        splitter.addWidget(self._build_center())
        splitter.addWidget(self._build_detail_panel())
        splitter.setStretchFactor(0, 0)
        splitter.setStretchFactor(1, 2)
        splitter.setStretchFactor(2, 2)
        splitter.setSizes([240, 620, 420])

        self.refresh_clients()
        self.refresh_tasks()

        QShortcut(QKeySequence("Ctrl+N"), self, self.new_task)
        QShortcut(QKeySequence("Ctrl+E"), self, self.edit_task)

    def _build_sidebar(self) -> QWidget:
        frame = QFrame()
        frame.setObjectName("Sidebar")
        layout = QVBoxLayout(frame)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)

        title = QLabel("Фільтри")
        title.setProperty("class", "sidebar-title")
        layout.addWidget(title)

        self.filter_list = QListWidget()
        self.filter_list.setObjectName("FilterList")
        self.filter_list.setSpacing(6)
        for label, key in FILTERS:
            item = QListWidgetItem(label)
            item.setData(Qt.UserRole, key)
            self.filter_list.addItem(item)
        self.filter_list.setCurrentRow(0)
        self.filter_list.currentItemChanged.connect(self.on_filter_change)
        layout.addWidget(self.filter_list)

        clients_title = QLabel("Клієнти")
        clients_title.setProperty("class", "sidebar-title")
        layout.addWidget(clients_title)

        self.client_search = QLineEdit()
        self.client_search.setPlaceholderText("Пошук клієнта")
        self.client_search.textChanged.connect(self.refresh_clients)
        layout.addWidget(self.client_search)

        self.client_filter = QComboBox()
        self.client_filter.currentIndexChanged.connect(self.refresh_tasks)
        layout.addWidget(self.client_filter)

        new_client_button = QPushButton("Новий клієнт")
        new_client_button.setProperty("variant", "secondary")
        new_client_button.clicked.connect(self.new_client)
        layout.addWidget(new_client_button)

        self.new_appliance_button = QPushButton("Новий пристрій")
        self.new_appliance_button.setProperty("variant", "ghost")
        self.new_appliance_button.clicked.connect(self.new_appliance)
        layout.addWidget(self.new_appliance_button)

        layout.addStretch()

        inventory_button = QPushButton("Склад")
        inventory_button.setProperty("variant", "secondary")
        inventory_button.clicked.connect(self.open_inventory)
        layout.addWidget(inventory_button)
        return frame

    def _build_center(self) -> QWidget:
        frame = QFrame()
        frame.setObjectName("CenterPanel")
        layout = QVBoxLayout(frame)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(12)

        header = QHBoxLayout()
        header_title = QLabel("Сервісні задачі")
        header_title.setProperty("class", "panel-title")
        self.stats_label = QLabel("")
        self.stats_label.setProperty("class", "stats-badge")
        header.addWidget(header_title)
        header.addStretch()
        header.addWidget(self.stats_label)

        action_row = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Пошук за описом або клієнтом")
        self.search_input.setMinimumWidth(220)
        self.search_input.textChanged.connect(self.refresh_tasks)

        add_button = QPushButton("Нова задача")
        add_button.clicked.connect(self.new_task)

        action_row.addWidget(self.search_input, 1)
        action_row.addWidget(add_button)

        self.task_list = TaskListWidget()
        self.task_list.setObjectName("TaskList")
        self.task_list.setSpacing(10)
        self.task_list.currentItemChanged.connect(self.on_task_selected)
        self.task_list.itemDoubleClicked.connect(lambda _item: self.edit_task())

        layout.addLayout(header)
        layout.addLayout(action_row)
        layout.addWidget(self.task_list)
        return frame

    def _build_detail_panel(self) -> QWidget:
        frame = QFrame()
        frame.setObjectName("DetailPanel")
        frame_layout = QVBoxLayout(frame)
        frame_layout.setContentsMargins(0, 0, 0, 0)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.NoFrame)
        scroll.setObjectName("DetailScroll")
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)

        content = QWidget()
        content_layout = QVBoxLayout(content)
        content_layout.setContentsMargins(12, 12, 12, 12)
        content_layout.setSpacing(8)

        title = QLabel("Деталі")
        title.setProperty("class", "panel-title")

        self.description_label = QLabel("")
        self.description_label.setProperty("class", "task-title")
        self.description_label.setWordWrap(True)

        self.task_meta_label = QLabel("")
        self.task_meta_label.setWordWrap(True)

        client_title = QLabel("Клієнт")
        client_title.setProperty("class", "section-title")
        self.client_label = QLabel("")
        self.client_label.setWordWrap(True)
        self.client_label.setTextInteractionFlags(Qt.TextSelectableByMouse)

        appliance_title = QLabel("Пристрій")
        appliance_title.setProperty("class", "section-title")
        self.appliance_label = QLabel("")
        self.appliance_label.setWordWrap(True)
        self.appliance_label.setTextInteractionFlags(Qt.TextSelectableByMouse)

        self.edit_button = QPushButton("Редагувати")
        self.edit_button.clicked.connect(self.edit_task)

        self.done_button = QPushButton("Позначити виконаною")
        self.done_button.setProperty("variant", "secondary")
        self.done_button.clicked.connect(self.toggle_done)

        self.delete_button = QPushButton("Видалити")
        self.delete_button.setProperty("variant", "danger")
        self.delete_button.clicked.connect(self.delete_task)

        self.report_button = QPushButton("Звіт про роботу")
        self.report_button.clicked.connect(self.make_report)

        self.history_button = QPushButton("Історія пристрою")
        self.history_button.setProperty("variant", "ghost")
        self.history_button.clicked.connect(self.show_appliance_history)

        actions = QHBoxLayout()
        actions.setSpacing(8)
        for button in (self.edit_button, self.done_button):
            button.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
            actions.addWidget(button, 1)

        content_layout.addWidget(title)
        content_layout.addWidget(self.description_label)
        content_layout.addWidget(self.task_meta_label)
        content_layout.addSpacing(6)
        content_layout.addWidget(client_title)
        content_layout.addWidget(self.client_label)
        content_layout.addWidget(appliance_title)
        content_layout.addWidget(self.appliance_label)
        content_layout.addSpacing(6)
        content_layout.addLayout(actions)
        content_layout.addWidget(self.report_button)
        content_layout.addWidget(self.history_button)
        content_layout.addWidget(self.delete_button)
        content_layout.addStretch()

        scroll.setWidget(content)
        frame_layout.addWidget(scroll)
        return frame

    def refresh_clients(self) -> None:
        try:
            clients = self.client_service.list_clients(self.client_search.text())
        except SQLAlchemyError as exc:
            report_store_error(self, "Loading clients", exc)
            return
        self.client_names.update({client.id: client.name for client in clients})
        selected = self.client_filter.currentData()
        self.client_filter.blockSignals(True)
        self.client_filter.clear()
        self.client_filter.addItem("Усі клієнти", None)
        for client in clients:
            self.client_filter.addItem(client.name, client.id)
        index = self.client_filter.findData(selected)
        self.client_filter.setCurrentIndex(index if index >= 0 else 0)
        self.client_filter.blockSignals(False)
        if self.client_filter.currentData() != selected:
            self.refresh_tasks()
        self.new_appliance_button.setEnabled(self.client_filter.currentData() is not None)

    def refresh_tasks(self) -> None:
        search = self.search_input.text().strip()
        client_id = self.client_filter.currentData()
        self.new_appliance_button.setEnabled(client_id is not None)
        filters = TaskFilters(
            filter_key=self.current_filter,
            search=search or None,
            client_id=client_id,
        )
        try:
            tasks = self.service.list_tasks(filters)
            stats = self.service.get_stats()
        except SQLAlchemyError as exc:
            report_store_error(self, "Loading tasks", exc)
            return
        self.task_list.clear()

        for task in tasks:
            item = QListWidgetItem()
            item.setData(Qt.UserRole, task.id)
            task_widget = TaskItemWidget(task, self.client_names.get(task.client_id))
            widget = TaskItemContainer(task_widget)
            self.task_list.addItem(item)
            self.task_list.setItemWidget(item, widget)
            item.setSizeHint(widget.sizeHint())

        self.stats_label.setText(
            f"Всього: {stats['total']} • Очікують: {stats['pending']} • "
            f"У роботі: {stats['in_progress']} • Виконано: {stats['completed']} • "
            f"Прострочено: {stats['overdue']}"
        )

        if tasks:
            self.task_list.setCurrentRow(0)
        else:
            self.current_task_id = None
            self.show_details(None)
        self.task_list.sync_item_sizes()

    def on_filter_change(self, current: QListWidgetItem) -> None:
        if not current:
            return
        self.current_filter = current.data(Qt.UserRole)
        self.refresh_tasks()

    def on_task_selected(
        self,
        current: QListWidgetItem,
        previous: QListWidgetItem | None = None,
    ) -> None:
        if previous:
            self._set_task_item_selected(previous, False)
        if not current:
            return
        self._set_task_item_selected(current, True)
        task = self._get_task_from_list(current.data(Qt.UserRole))
        if task:
            self.current_task_id = task.id
            self.show_details(task)

    def _set_task_item_selected(self, item: QListWidgetItem, selected: bool) -> None:
        widget = self.task_list.itemWidget(item)
        if hasattr(widget, "set_selected"):
            widget.set_selected(selected)

    def _get_task_from_list(self, task_id: int) -> TaskEntity | None:
        for index in range(self.task_list.count()):
            item = self.task_list.item(index)
            if item.data(Qt.UserRole) == task_id:
                widget = self.task_list.itemWidget(item)
                if hasattr(widget, "task"):
                    return widget.task
        return None

    def show_details(self, task: TaskEntity | None) -> None:
        enabled = task is not None
        for button in (self.edit_button, self.done_button, self.delete_button, self.report_button):
            button.setEnabled(enabled)
        self.history_button.setEnabled(enabled and task.appliance_id is not None)
        if task is None:
            self.description_label.setText("Задачу не обрано")
            self.task_meta_label.clear()
            self.client_label.clear()
            self.appliance_label.clear()
            return

        self.description_label.setText(task.description)
        priority = next((label for label, value in PRIORITY_OPTIONS if value == task.priority), "")
        lines = [
            f"Статус: {STATUS_LABELS.get(task.status.value, task.status.value)}",
            f"Пріоритет: {priority}",
            f"Термін: {task.due_date.strftime('%d.%m.%Y') if task.due_date else 'не вказано'}",
            f"Повтор: {recurrence_label(task) or 'одноразова'}",
            f"Створено: {task.created_at.strftime('%d.%m.%Y')}",
        ]
        self.task_meta_label.setText("\n".join(lines))

        try:
            client = self.client_service.get_client(task.client_id) if task.client_id else None
            appliance = self.client_service.get_appliance(task.appliance_id) if task.appliance_id else None
        except SQLAlchemyError as exc:
            report_store_error(self, f"Loading details of task {task.id}", exc)
            client = appliance = None

        if client:
            contact = [client.name, client.email, client.phone, client.address]
            self.client_label.setText("\n".join(part for part in contact if part))
        else:
            self.client_label.setText("Не прив'язано")

        if appliance:
            details = [
                appliance.name,
                f"Виробник: {appliance.maker}" if appliance.maker else "",
                f"Серійний №: {appliance.serial_number}" if appliance.serial_number else "",
                f"Вік: {appliance.age_years} р." if appliance.age_years is not None else "",
            ]
            self.appliance_label.setText("\n".join(part for part in details if part))
        else:
            self.appliance_label.setText("Не прив'язано")

        completed = task.status == TaskStatus.COMPLETED
        self.report_button.setEnabled(not completed)
        self.done_button.setText("Повернути в роботу" if completed else "Позначити виконаною")
        self.done_button.setProperty("variant", "warning" if completed else "secondary")
        self.done_button.style().unpolish(self.done_button)
        self.done_button.style().polish(self.done_button)

    def new_task(self) -> None:
        dialog = EditTaskDialog(self.service, None, self.client_service, self)
        if dialog.exec():
            QMessageBox.information(self, "Готово", "Задачу створено.")
            self.refresh_tasks()

    def edit_task(self) -> None:
        if self.current_task_id is None:
            return
        try:
            task = self.service.get_task(self.current_task_id)
        except SQLAlchemyError as exc:
            report_store_error(self, f"Loading task {self.current_task_id}", exc)
            return
        if task is None:
            self.refresh_tasks()
            return
        dialog = EditTaskDialog(self.service, task, parent=self)
        if dialog.exec():
            QMessageBox.information(self, "Готово", "Задачу оновлено.")
            self.refresh_tasks()

    def toggle_done(self) -> None:
        if self.current_task_id is None:
            return
        task = self._get_task_from_list(self.current_task_id)
        try:
            if task and task.status == TaskStatus.COMPLETED:
                self.service.set_status(self.current_task_id, TaskStatus.IN_PROGRESS)
            else:
                self.service.complete_task(self.current_task_id)
        except SQLAlchemyError as exc:
            report_store_error(self, f"Changing status of task {self.current_task_id}", exc)
            return
        self.refresh_tasks()

    def delete_task(self) -> None:
        if self.current_task_id is None:
            return
        confirm = QMessageBox.question(
            self,
            "Підтвердження",
            "Точно видалити задачу?",
        )
        if confirm != QMessageBox.Yes:
            return
        try:
            self.service.delete_task(self.current_task_id)
        except SQLAlchemyError as exc:
            report_store_error(self, f"Deleting task {self.current_task_id}", exc)
            return
        self.refresh_tasks()

    def make_report(self) -> None:
        task = self._get_task_from_list(self.current_task_id) if self.current_task_id else None
        if task is None:
            return
        dialog = ReportDialog(self.reports, self.inventory, task, self)
        if dialog.exec():
            QMessageBox.information(self, "Готово", "Звіт збережено, задачу виконано.")
            self.refresh_tasks()

    def show_appliance_history(self) -> None:
        task = self._get_task_from_list(self.current_task_id) if self.current_task_id else None
        if task is None or task.appliance_id is None:
            return
        try:
            appliance = self.client_service.get_appliance(task.appliance_id)
            history = self.reports.appliance_history(task.appliance_id) if appliance else None
        except SQLAlchemyError as exc:
            report_store_error(self, f"Loading history of appliance {task.appliance_id}", exc)
            return
        if appliance is None:
            QMessageBox.warning(self, "Пристрій", "Пристрій не знайдено.")
            return
        ApplianceHistoryDialog(appliance, history, self).exec()

    def open_inventory(self) -> None:
        InventoryDialog(self.inventory, self.reports, self).exec()

    def new_client(self) -> None:
        dialog = ClientDialog(self.client_service, self)
        if dialog.exec():
            self.client_search.clear()
            self.refresh_clients()
            index = self.client_filter.findData(dialog.saved_client.id)
            if index >= 0:
                self.client_filter.setCurrentIndex(index)

    def new_appliance(self) -> None:
        client_id = self.client_filter.currentData()
        if client_id is None:
            QMessageBox.warning(self, "Потрібен клієнт", "Спочатку обери клієнта.")
            return
        dialog = ApplianceDialog(self.client_service, client_id, self)
        if dialog.exec():
            self.refresh_tasks()
