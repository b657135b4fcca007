from __future__ import annotations

from dataclasses import replace

from PySide6.QtCore import QDate
from PySide6.QtWidgets import (
    QAbstractSpinBox,
    QComboBox,
    QDateEdit,
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QTextEdit,
    QVBoxLayout,
)
from sqlalchemy.exc import SQLAlchemyError

from fieldops.domain.entities import TaskEntity
from fieldops.domain.enums import TaskPriority, TaskStatus, TaskType
from fieldops.domain.errors import TaskValidationError
from fieldops.domain.recurrence import MAX_INTERVAL, MIN_INTERVAL, EditState
from fieldops.services.client_service import ClientService
from fieldops.services.task_service import TaskService

from .feedback import SAVE_FAILED_MESSAGE, report_store_error
from .widgets import PRIORITY_OPTIONS, RECURRENCE_OPTIONS, STATUS_LABELS, TASK_TYPE_OPTIONS


class EditTaskDialog(QDialog):
    """Create or edit a task.

    The form mirrors an ``EditState``; every control change goes through the
    recurrence manager so the recurrence controls always show a legal state.
    """

    def __init__(
        self,
        service: TaskService,
        task: TaskEntity | None = None,
        client_service: ClientService | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self.service = service
        self.client_service = client_service
        self.task = task
        self.saved_task: TaskEntity | None = None
        self.manager = service.recurrence
        self.state: EditState = self.manager.initialize_from_task(task)

        self.setWindowTitle("Редагувати задачу" if task else "Нова задача")
        self.setMinimumWidth(440)

        self.description_input = QLineEdit(self.state.description)
        self.description_input.setPlaceholderText("Що потрібно зробити")
        self.description_input.textChanged.connect(self.on_description_changed)

        self.priority_combo = QComboBox()
        for label, value in PRIORITY_OPTIONS:
            self.priority_combo.addItem(label, value)
        self.priority_combo.setCurrentIndex(self.priority_combo.findData(self.state.priority.value))
        self.priority_combo.currentIndexChanged.connect(self.on_priority_changed)

        self.status_combo = QComboBox()
        for value, label in STATUS_LABELS.items():
            self.status_combo.addItem(label, value)
        self.status_combo.setCurrentIndex(self.status_combo.findData(self.state.status.value))
        self.status_combo.currentIndexChanged.connect(self.on_status_changed)

        self.due_toggle = QPushButton()
        self.due_toggle.setCheckable(True)
        self.due_toggle.setProperty("variant", "secondary")
        self.due_toggle.setObjectName("DueToggle")

        self.due_input = QDateEdit()
        self.due_input.setCalendarPopup(True)
        due = self.state.due_date
        self.due_input.setDate(QDate(due.year, due.month, due.day) if due else QDate.currentDate())
        self.due_input.dateChanged.connect(self.on_due_date_changed)
        self.due_toggle.toggled.connect(self.on_due_toggled)
        self.due_toggle.setChecked(due is not None)
        self._sync_due_controls()

        self.type_combo = QComboBox()
        for label, value in TASK_TYPE_OPTIONS:
            self.type_combo.addItem(label, value)
        self.type_combo.currentIndexChanged.connect(self.on_task_type_changed)

        self.pattern_combo = QComboBox()
        for label, value in RECURRENCE_OPTIONS:
            self.pattern_combo.addItem(label, value)
        self.pattern_combo.currentIndexChanged.connect(self.on_pattern_changed)

        self.interval_input = QSpinBox()
        self.interval_input.setRange(MIN_INTERVAL, MAX_INTERVAL)
        self.interval_input.setSuffix("x")
        self.interval_input.setButtonSymbols(QAbstractSpinBox.UpDownArrows)
        self.interval_input.valueChanged.connect(self.on_interval_changed)

        self.pattern_label = QLabel("Шаблон")
        self.interval_label = QLabel("Інтервал")

        form = QFormLayout()
        form.addRow("Опис *", self.description_input)
        form.addRow("Пріоритет", self.priority_combo)
        form.addRow("Статус", self.status_combo)
        form.addRow(self.due_toggle, self.due_input)

        self.client_combo: QComboBox | None = None
        self.appliance_combo: QComboBox | None = None
        if task is None and client_service is not None:
            self._build_client_selectors(form)

        recurrence_title = QLabel("Повторення")
        recurrence_title.setProperty("class", "section-title")
        form.addRow(recurrence_title)
        form.addRow("Тип", self.type_combo)
        form.addRow(self.pattern_label, self.pattern_combo)
        form.addRow(self.interval_label, self.interval_input)

        self._sync_recurrence_controls()

        cancel_button = QPushButton("Скасувати")
        cancel_button.setProperty("variant", "ghost")
        cancel_button.clicked.connect(self.reject)

        self.save_button = QPushButton("Зберегти")
        self.save_button.clicked.connect(self.submit)

        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(cancel_button)
        buttons.addWidget(self.save_button)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addLayout(buttons)

    def _build_client_selectors(self, form: QFormLayout) -> None:
        self.client_combo = QComboBox()
        self.client_combo.addItem("Без клієнта", None)
        for client in self.client_service.list_clients():
            self.client_combo.addItem(client.name, client.id)
        self.client_combo.currentIndexChanged.connect(self._reload_appliances)

        self.appliance_combo = QComboBox()
        self._reload_appliances()

        form.addRow("Клієнт", self.client_combo)
        form.addRow("Пристрій", self.appliance_combo)

    def _reload_appliances(self) -> None:
        self.appliance_combo.clear()
        self.appliance_combo.addItem("Без пристрою", None)
        client_id = self.client_combo.currentData()
        if client_id is None:
            self.appliance_combo.setEnabled(False)
            return
        for appliance in self.client_service.list_appliances(client_id):
            self.appliance_combo.addItem(f"{appliance.name} ({appliance.maker})", appliance.id)
        self.appliance_combo.setEnabled(self.appliance_combo.count() > 1)

    def on_description_changed(self, text: str) -> None:
        self.state = replace(self.state, description=text)

    def on_priority_changed(self) -> None:
        self.state = replace(self.state, priority=TaskPriority(self.priority_combo.currentData()))

    def on_status_changed(self) -> None:
        self.state = replace(self.state, status=TaskStatus(self.status_combo.currentData()))

    def on_due_toggled(self, checked: bool) -> None:
        due_date = self.due_input.date().toPython() if checked else None
        self.state = replace(self.state, due_date=due_date)
        self._sync_due_controls()

    def on_due_date_changed(self) -> None:
        if self.due_toggle.isChecked():
            self.state = replace(self.state, due_date=self.due_input.date().toPython())

    def on_task_type_changed(self) -> None:
        self.state = self.manager.on_task_type_change(self.state, self.type_combo.currentData())
        self._sync_recurrence_controls()

    def on_pattern_changed(self) -> None:
        pattern = self.pattern_combo.currentData()
        if pattern:
            self.state = self.manager.on_pattern_change(self.state, pattern)

    def on_interval_changed(self, value: int) -> None:
        self.state = self.manager.on_interval_change(self.state, value)

    def _sync_due_controls(self) -> None:
        checked = self.due_toggle.isChecked()
        self.due_input.setEnabled(checked)
        self.due_toggle.setText("Термін" if checked else "Без терміну")

    def _sync_recurrence_controls(self) -> None:
        recurring = self.state.task_type == TaskType.RECURRING
        for widget in (self.type_combo, self.pattern_combo, self.interval_input):
            widget.blockSignals(True)
        try:
            self.type_combo.setCurrentIndex(self.type_combo.findData(self.state.task_type.value))
            pattern_index = self.pattern_combo.findData(self.state.recurrence_pattern.value)
            self.pattern_combo.setCurrentIndex(pattern_index if pattern_index >= 0 else 0)
            self.interval_input.setValue(self.state.recurrence_interval or MIN_INTERVAL)
        finally:
            for widget in (self.type_combo, self.pattern_combo, self.interval_input):
                widget.blockSignals(False)
        for widget in (self.pattern_label, self.pattern_combo, self.interval_label, self.interval_input):
            widget.setVisible(recurring)

    def submit(self) -> None:
        self.save_button.setEnabled(False)
        try:
            if self.task is None:
                client_id = self.client_combo.currentData() if self.client_combo else None
                appliance_id = self.appliance_combo.currentData() if self.appliance_combo else None
                saved = self.service.create_task(self.state, client_id=client_id, appliance_id=appliance_id)
            else:
                saved = self.service.update_task(self.task.id, self.state)
        except TaskValidationError as exc:
            QMessageBox.warning(self, "Перевір дані", str(exc))
            return
        except SQLAlchemyError as exc:
            label = self.task.id if self.task else "<new>"
            report_store_error(self, f"Saving task {label}", exc, SAVE_FAILED_MESSAGE)
            return
        finally:
            self.save_button.setEnabled(True)

        if saved is None:
            QMessageBox.warning(self, "Помилка", "Задачу не знайдено. Можливо, її вже видалено.")
            return
        self.saved_task = saved
        self.accept()


class ClientDialog(QDialog):
    def __init__(self, client_service: ClientService, parent=None):
        super().__init__(parent)
        self.client_service = client_service
        self.saved_client = None
        self.setWindowTitle("Новий клієнт")
        self.setMinimumWidth(380)

        self.name_input = QLineEdit()
        self.email_input = QLineEdit()
        self.phone_input = QLineEdit()
        self.address_input = QTextEdit()
        self.address_input.setMaximumHeight(80)

        form = QFormLayout()
        form.addRow("Назва *", self.name_input)
        form.addRow("Email", self.email_input)
        form.addRow("Телефон", self.phone_input)
        form.addRow("Адреса", self.address_input)

        save_button = QPushButton("Зберегти")
        save_button.clicked.connect(self.submit)
        cancel_button = QPushButton("Скасувати")
        cancel_button.setProperty("variant", "ghost")
        cancel_button.clicked.connect(self.reject)

        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(cancel_button)
        buttons.addWidget(save_button)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addLayout(buttons)

    def submit(self) -> None:
        data = {
            "name": self.name_input.text(),
            "email": self.email_input.text(),
            "phone": self.phone_input.text(),
            "address": self.address_input.toPlainText(),
        }
        try:
            self.saved_client = self.client_service.create_client(data)
        except ValueError:
            QMessageBox.warning(self, "Потрібна назва", "Вкажи назву клієнта.")
            return
        except SQLAlchemyError as exc:
            report_store_error(self, "Saving client", exc, SAVE_FAILED_MESSAGE)
            return
        self.accept()


class ApplianceDialog(QDialog):
    def __init__(self, client_service: ClientService, client_id: int, parent=None):
        super().__init__(parent)
        self.client_service = client_service
        self.client_id = client_id
        self.saved_appliance = None
        self.setWindowTitle("Новий пристрій")
        self.setMinimumWidth(380)

        self.name_input = QLineEdit()
        self.maker_input = QLineEdit()
        self.serial_input = QLineEdit()
        self.age_input = QSpinBox()
        self.age_input.setRange(0, 100)
        self.age_input.setSuffix(" р.")

        form = QFormLayout()
        form.addRow("Назва *", self.name_input)
        form.addRow("Виробник", self.maker_input)
        form.addRow("Серійний номер", self.serial_input)
        form.addRow("Вік", self.age_input)

        save_button = QPushButton("Зберегти")
        save_button.clicked.connect(self.submit)
        cancel_button = QPushButton("Скасувати")
        cancel_button.setProperty("variant", "ghost")
        cancel_button.clicked.connect(self.reject)

        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(cancel_button)
        buttons.addWidget(save_button)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addLayout(buttons)

    def submit(self) -> None:
        data = {
            "client_id": self.client_id,
            "name": self.name_input.text(),
            "maker": self.maker_input.text(),
            "serial_number": self.serial_input.text(),
            "age_years": self.age_input.value(),
        }
        try:
            self.saved_appliance = self.client_service.create_appliance(data)
        except ValueError:
            QMessageBox.warning(self, "Потрібна назва", "Вкажи назву пристрою.")
            return
        except SQLAlchemyError as exc:
            report_store_error(self, "Saving appliance", exc, SAVE_FAILED_MESSAGE)
            return
        self.accept()
