from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QHeaderView,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QTableWidget,
    QTableWidgetItem,
    QTabWidget,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)
from sqlalchemy.exc import SQLAlchemyError

from fieldops.domain.entities import ApplianceEntity, ApplianceHistory, ServiceReportEntity, TaskEntity
from fieldops.domain.errors import ServiceReportError
from fieldops.services.inventory_service import InventoryService
from fieldops.services.report_service import ReportService

from .feedback import report_store_error

LOW_STOCK_COLOR = "#f87171"
REPORT_FAILED_MESSAGE = "Не вдалося зберегти звіт."


def _format_date(value) -> str:
    return value.strftime("%d.%m.%Y") if value else "—"


def _parts_summary(report: ServiceReportEntity) -> str:
    return ", ".join(f"{part.name} × {part.quantity}" for part in report.parts)


def _make_table(headers: list[str], stretch_column: int) -> QTableWidget:
    table = QTableWidget(0, len(headers))
    table.setObjectName("StatsTable")
    for col, label in enumerate(headers):
        item = QTableWidgetItem(label)
        align = Qt.AlignLeft | Qt.AlignVCenter if col == stretch_column else Qt.AlignCenter
        item.setTextAlignment(align)
        table.setHorizontalHeaderItem(col, item)
    table.verticalHeader().setVisible(False)
    table.setEditTriggers(QTableWidget.NoEditTriggers)
    table.setSelectionBehavior(QTableWidget.SelectRows)
    table.setSelectionMode(QTableWidget.SingleSelection)
    table.setAlternatingRowColors(True)
    header = table.horizontalHeader()
    for col in range(len(headers)):
        mode = QHeaderView.Stretch if col == stretch_column else QHeaderView.ResizeToContents
        header.setSectionResizeMode(col, mode)
    table.verticalHeader().setDefaultSectionSize(34)
    return table


def _fill_reports(table: QTableWidget, reports: list[ServiceReportEntity]) -> None:
    table.setRowCount(len(reports))
    for row, report in enumerate(reports):
        cells = [
            _format_date(report.created_at),
            report.technician or "—",
            f"{report.duration_minutes} хв",
            report.description,
            _parts_summary(report),
        ]
        for col, text in enumerate(cells):
            table.setItem(row, col, QTableWidgetItem(text))


class PartDialog(QDialog):
    def __init__(self, inventory: InventoryService, parent=None):
        super().__init__(parent)
        self.inventory = inventory
        self.saved_part = None
        self.setWindowTitle("Нова запчастина")
        self.setMinimumWidth(380)

        self.name_input = QLineEdit()
        self.maker_input = QLineEdit()
        self.detail_input = QTextEdit()
        self.detail_input.setMaximumHeight(80)
        self.quantity_input = QSpinBox()
        self.quantity_input.setRange(0, 100000)

        form = QFormLayout()
        form.addRow("Назва *", self.name_input)
        form.addRow("Виробник", self.maker_input)
        form.addRow("Опис", self.detail_input)
        form.addRow("Кількість", self.quantity_input)

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
            "maker": self.maker_input.text(),
            "detail": self.detail_input.toPlainText(),
            "quantity": self.quantity_input.value(),
        }
        try:
            self.saved_part = self.inventory.create_part(data)
        except ValueError:
            QMessageBox.warning(self, "Потрібна назва", "Вкажи назву запчастини.")
            return
        except SQLAlchemyError as exc:
            report_store_error(self, "Saving spare part", exc)
            return
        self.accept()


class InventoryDialog(QDialog):
    """Spare parts on hand and the service history of every appliance."""

    def __init__(self, inventory: InventoryService, reports: ReportService, parent=None):
        super().__init__(parent)
        self.inventory = inventory
        self.reports = reports
        self.setWindowTitle("Склад")
        self.resize(760, 480)

        tabs = QTabWidget()
        tabs.addTab(self._build_parts_tab(), "Запчастини")
        tabs.addTab(self._build_history_tab(), "Історія обслуговування")

        close_button = QPushButton("Закрити")
        close_button.clicked.connect(self.accept)
        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(close_button)

        layout = QVBoxLayout(self)
        layout.addWidget(tabs)
        layout.addLayout(buttons)

        self.refresh()

    def _build_parts_tab(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)

        top = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Пошук за назвою або виробником")
        self.search_input.textChanged.connect(self.refresh_parts)
        add_button = QPushButton("Додати")
        add_button.clicked.connect(self.add_part)
        self.restock_button = QPushButton("Змінити кількість")
        self.restock_button.setProperty("variant", "secondary")
        self.restock_button.clicked.connect(self.restock_part)
        top.addWidget(self.search_input, 1)
        top.addWidget(add_button)
        top.addWidget(self.restock_button)

        self.parts_table = _make_table(["Назва", "Виробник", "Опис", "Кількість"], stretch_column=2)

        layout.addLayout(top)
        layout.addWidget(self.parts_table)
        return page

    def _build_history_tab(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        self.history_table = _make_table(["Дата", "Технік", "Тривалість", "Робота", "Запчастини"], stretch_column=3)
        layout.addWidget(self.history_table)
        return page

    def refresh(self) -> None:
        self.refresh_parts()
        try:
            _fill_reports(self.history_table, self.reports.list_reports())
        except SQLAlchemyError as exc:
            report_store_error(self, "Loading service history", exc)

    def refresh_parts(self) -> None:
        try:
            parts = self.inventory.list_parts(self.search_input.text())
        except SQLAlchemyError as exc:
            report_store_error(self, "Loading spare parts", exc)
            return
        self.parts_table.setRowCount(len(parts))
        for row, part in enumerate(parts):
            name_item = QTableWidgetItem(part.name)
            name_item.setData(Qt.UserRole, part.id)
            quantity_item = QTableWidgetItem(str(part.quantity))
            quantity_item.setTextAlignment(Qt.AlignCenter)
            if self.inventory.is_low_stock(part):
                quantity_item.setForeground(QColor(LOW_STOCK_COLOR))
            self.parts_table.setItem(row, 0, name_item)
            self.parts_table.setItem(row, 1, QTableWidgetItem(part.maker))
            self.parts_table.setItem(row, 2, QTableWidgetItem(part.detail))
            self.parts_table.setItem(row, 3, quantity_item)
        self.restock_button.setEnabled(bool(parts))

    def add_part(self) -> None:
        dialog = PartDialog(self.inventory, self)
        if dialog.exec():
            self.refresh_parts()

    def restock_part(self) -> None:
        row = self.parts_table.currentRow()
        if row < 0:
            QMessageBox.information(self, "Склад", "Обери запчастину в таблиці.")
            return
        part_id = self.parts_table.item(row, 0).data(Qt.UserRole)
        delta, ok = QInputDialog.getInt(
            self,
            "Змінити кількість",
            "Додати (або списати з мінусом):",
            1,
            -100000,
            100000,
        )
        if not ok or delta == 0:
            return
        try:
            self.inventory.restock(part_id, delta)
        except ServiceReportError as exc:
            QMessageBox.warning(self, "Склад", str(exc))
            return
        except SQLAlchemyError as exc:
            report_store_error(self, f"Restocking spare part {part_id}", exc)
            return
        self.refresh_parts()


class ReportDialog(QDialog):
    """Record the work done on a task; saving completes the task."""

    def __init__(
        self,
        reports: ReportService,
        inventory: InventoryService,
        task: TaskEntity,
        parent=None,
    ):
        super().__init__(parent)
        self.reports = reports
        self.task = task
        self.saved_report = None
        self.part_rows: list[tuple[QWidget, QComboBox, QSpinBox]] = []
        self.setWindowTitle("Звіт про роботу")
        self.setMinimumWidth(520)

        try:
            self.parts = inventory.list_parts()
        except SQLAlchemyError as exc:
            report_store_error(self, "Loading spare parts", exc)
            self.parts = []

        task_label = QLabel(task.description)
        task_label.setProperty("class", "task-title")
        task_label.setWordWrap(True)

        self.description_input = QTextEdit()
        self.description_input.setPlaceholderText("Що було зроблено")
        self.duration_input = QSpinBox()
        self.duration_input.setRange(0, 24 * 60)
        self.duration_input.setSingleStep(15)
        self.duration_input.setSuffix(" хв")
        self.technician_input = QLineEdit(reports.technician)

        form = QFormLayout()
        form.addRow("Робота *", self.description_input)
        form.addRow("Тривалість", self.duration_input)
        form.addRow("Технік", self.technician_input)

        parts_header = QHBoxLayout()
        parts_title = QLabel("Використані запчастини")
        parts_title.setProperty("class", "section-title")
        add_part_button = QPushButton("Додати запчастину")
        add_part_button.setProperty("variant", "ghost")
        add_part_button.setEnabled(bool(self.parts))
        add_part_button.clicked.connect(self.add_part_row)
        parts_header.addWidget(parts_title)
        parts_header.addStretch()
        parts_header.addWidget(add_part_button)

        self.parts_layout = QVBoxLayout()
        self.parts_layout.setSpacing(6)

        save_button = QPushButton("Зберегти звіт")
        save_button.clicked.connect(self.submit)
        cancel_button = QPushButton("Скасувати")
        cancel_button.setProperty("variant", "ghost")
        cancel_button.clicked.connect(self.reject)

        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(cancel_button)
        buttons.addWidget(save_button)

        layout = QVBoxLayout(self)
        layout.addWidget(task_label)
        layout.addLayout(form)
        layout.addLayout(parts_header)
        layout.addLayout(self.parts_layout)
        layout.addLayout(buttons)

    def add_part_row(self) -> None:
        row = QWidget()
        row_layout = QHBoxLayout(row)
        row_layout.setContentsMargins(0, 0, 0, 0)
        combo = QComboBox()
        for part in self.parts:
            label = f"{part.name} - {part.maker}" if part.maker else part.name
            combo.addItem(f"{label} (є {part.quantity})", part.id)
        quantity = QSpinBox()
        quantity.setRange(1, 1000)
        remove_button = QPushButton("✕")
        remove_button.setProperty("variant", "ghost")
        remove_button.setFixedWidth(32)
        remove_button.clicked.connect(lambda: self.remove_part_row(row))
        row_layout.addWidget(combo, 1)
        row_layout.addWidget(quantity)
        row_layout.addWidget(remove_button)
        self.parts_layout.addWidget(row)
        self.part_rows.append((row, combo, quantity))

    def remove_part_row(self, row: QWidget) -> None:
        self.part_rows = [entry for entry in self.part_rows if entry[0] is not row]
        self.parts_layout.removeWidget(row)
        row.deleteLater()

    def submit(self) -> None:
        parts = [(combo.currentData(), quantity.value()) for _row, combo, quantity in self.part_rows]
        try:
            saved = self.reports.create_report(
                self.task.id,
                self.description_input.toPlainText(),
                self.duration_input.value(),
                parts,
                technician=self.technician_input.text(),
            )
        except ServiceReportError as exc:
            QMessageBox.warning(self, "Перевір дані", str(exc))
            return
        except SQLAlchemyError as exc:
            report_store_error(self, f"Saving report for task {self.task.id}", exc, REPORT_FAILED_MESSAGE)
            return
        if saved is None:
            QMessageBox.warning(self, "Помилка", "Задачу не знайдено. Можливо, її вже видалено.")
            return
        self.saved_report = saved
        self.accept()


class ApplianceHistoryDialog(QDialog):
    def __init__(self, appliance: ApplianceEntity, history: ApplianceHistory, parent=None):
        super().__init__(parent)
        self.setWindowTitle(f"Історія: {appliance.name}")
        self.resize(680, 400)

        title = QLabel(appliance.name)
        title.setProperty("class", "panel-title")
        dates = QLabel(
            f"Останнє обслуговування: {_format_date(history.last_service)}\n"
            f"Наступне обслуговування: {_format_date(history.next_service)}"
        )

        table = _make_table(["Дата", "Технік", "Тривалість", "Робота", "Запчастини"], stretch_column=3)
        _fill_reports(table, history.reports)
        empty = QLabel("Звітів ще немає")
        empty.setVisible(not history.reports)

        close_button = QPushButton("Закрити")
        close_button.clicked.connect(self.accept)
        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(close_button)

        layout = QVBoxLayout(self)
        layout.addWidget(title)
        layout.addWidget(dates)
        layout.addWidget(table)
        layout.addWidget(empty)
        layout.addLayout(buttons)
