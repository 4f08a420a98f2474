import io

from flask import send_file
from markupsafe import Markup
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def cell_value(value):
    """Spreadsheet-safe value: markup is reduced to its text, containers to strings."""
    if value is None:
        return ""
    if isinstance(value, Markup):
        return value.striptags()
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return ", ".join(str(cell_value(item)) for item in value)
    return str(value)


class ListExportMixin:
    """Excel export of the processed list; needs ``get_data()`` and ``table_id``."""

    def export_columns(self, info) -> list:
        return [(key, column) for key, column in info if not column.hidden and column.type not in ("checkbox", "action")]

    def build_workbook(self) -> Workbook:
        data = self.get_data()
        columns = self.export_columns(data["info"])

        wb = Workbook()
        ws = wb.active
        ws.title = (self.table_id or "list")[:31]

        if hasattr(self, "get_export_header"):
            header_text = self.get_export_header()
            if header_text:
                ws.append([header_text])
                if len(columns) > 1:
                    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(columns))
                cell = ws.cell(row=1, column=1)
                cell.font = Font(size=14, bold=True)
                cell.alignment = Alignment(horizontal="center", vertical="center")
                ws.append([])

        ws.append([column.label for _, column in columns])
        header_row_index = ws.max_row
        for col in range(1, len(columns) + 1):
            c = ws.cell(row=header_row_index, column=col)
            c.font = Font(bold=True)
            c.alignment = Alignment(horizontal="center")

        for row in data["rows"]:
            ws.append([cell_value(row.get(key)) for key, _ in columns])

        for col_idx, col in enumerate(ws.columns, start=1):
            max_len = max(len(str(c.value)) if c.value else 0 for c in col)
            ws.column_dimensions[get_column_letter(col_idx)].width = max_len + 2

        return wb

    def export_excel(self, filename: str = None):
        output = io.BytesIO()
        self.build_workbook().save(output)
        output.seek(0)

        return send_file(
            output,
            as_attachment=True,
            download_name=filename or f"{self.table_id or 'list'}.xlsx",
            mimetype=XLSX_MIMETYPE,
        )
