"""
XLSX order tickets for the kitchen and the operator.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from restobot.config import settings
from restobot.core.orders.texts import PAYMENT_LABELS_BY_VALUE
from restobot.db.models import Order

logger = logging.getLogger(__name__)

# Whole so'm, grouped by thousands
PRICE_FORMAT = '#,##0" so\'m"'

TABLE_COLUMNS = (
    # (header, width)
    ("№", 6),
    ("Taom", 36),
    ("Soni", 8),
    ("Narxi", 16),
    ("Summa", 16),
)


class OrderExporter:
    """Writes one order per workbook: title, items table, customer block."""

    title_font = Font(bold=True, size=14)
    bold = Font(bold=True)
    head_font = Font(bold=True, color="FFFFFF")
    head_fill = PatternFill("solid", start_color="8B3A2B", end_color="8B3A2B")
    stripe_fill = PatternFill("solid", start_color="FBEAE5", end_color="FBEAE5")
    edge = Side(style="thin", color="999999")
    box = Border(left=edge, right=edge, top=edge, bottom=edge)

    def export(self, order: Order, output_dir: Optional[Path] = None) -> Path:
        """
        Save the order ticket and return its path.

        The order must have its items loaded.
        """
        output_dir = output_dir or settings.orders_export_dir
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / f"order_{order.id:06d}_{order.created_at:%Y%m%d_%H%M%S}.xlsx"

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = f"Buyurtma {order.id}"
        for index, (_, width) in enumerate(TABLE_COLUMNS, 1):
            sheet.column_dimensions[get_column_letter(index)].width = width

        row = self._title(sheet, order)
        row = self._items_table(sheet, order, row + 1)
        self._customer_block(sheet, order, row + 1)

        workbook.save(path)
        logger.info(f"Order {order.id} exported to {path}")
        return path

    def _title(self, sheet: Worksheet, order: Order) -> int:
        sheet.merge_cells("A1:E1")
        sheet["A1"] = f"BUYURTMA {order.order_number}"
        sheet["A1"].font = self.title_font
        sheet["A1"].alignment = Alignment(horizontal="center")

        sheet.merge_cells("A2:E2")
        sheet["A2"] = f"{order.created_at:%d.%m.%Y %H:%M}"
        sheet["A2"].alignment = Alignment(horizontal="center")
        return 3

    def _items_table(self, sheet: Worksheet, order: Order, row: int) -> int:
        for col, (header, _) in enumerate(TABLE_COLUMNS, 1):
            cell = sheet.cell(row=row, column=col, value=header)
            cell.font = self.head_font
            cell.fill = self.head_fill
            cell.border = self.box
            cell.alignment = Alignment(horizontal="center")

        for number, item in enumerate(order.items, 1):
            row += 1
            values = (number, item.product_name, item.quantity, item.unit_price, item.line_total)
            self._fill_row(sheet, row, values, striped=number % 2 == 0)

        row += 1
        sheet.merge_cells(start_row=row, start_column=1, end_row=row, end_column=4)
        label = sheet.cell(row=row, column=1, value="JAMI:")
        label.font = self.bold
        label.alignment = Alignment(horizontal="right")
        total = sheet.cell(row=row, column=5, value=order.total_price)
        total.font = self.bold
        total.border = self.box
        total.number_format = PRICE_FORMAT
        return row + 1

    def _fill_row(self, sheet: Worksheet, row: int, values: Iterable, striped: bool) -> None:
        for col, value in enumerate(values, 1):
            cell = sheet.cell(row=row, column=col, value=value)
            cell.border = self.box
            if col >= 4:
                cell.number_format = PRICE_FORMAT
            if striped:
                cell.fill = self.stripe_fill

    def _customer_block(self, sheet: Worksheet, order: Order, row: int) -> None:
        sheet.cell(row=row, column=1, value="MIJOZ").font = self.bold
        details = [
            ("Ism", order.customer_name),
            ("Telefon", order.phone),
            ("Manzil", order.address),
            ("To'lov", PAYMENT_LABELS_BY_VALUE.get(order.payment_method, order.payment_method)),
            ("Manba", order.source),
        ]
        if order.notes:
            details.append(("Izoh", order.notes))
        for label, value in details:
            row += 1
            sheet.cell(row=row, column=1, value=label)
            sheet.merge_cells(start_row=row, start_column=2, end_row=row, end_column=5)
            cell = sheet.cell(row=row, column=2, value=value)
            cell.alignment = Alignment(wrap_text=True, vertical="top")


order_exporter = OrderExporter()
