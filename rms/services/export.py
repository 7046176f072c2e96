"""Spreadsheet export of reports."""

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from rms.schemas.report import ClassReport, StudentReport

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Styles
TITLE_FONT = Font(bold=True, size=14)
HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
TITLE_FILL = PatternFill(start_color="B4C6E7", end_color="B4C6E7", fill_type="solid")
FAIL_FONT = Font(color="C00000")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)
CENTER = Alignment(horizontal="center", vertical="center")


def _title(ws: Worksheet, text: str, width: int) -> None:
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=width)
    cell = ws.cell(row=1, column=1, value=text)
    cell.font = TITLE_FONT
    cell.alignment = CENTER
    cell.fill = TITLE_FILL


def _header(ws: Worksheet, row: int, headers: list[str]) -> None:
    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=row, column=col_idx, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = THIN_BORDER
        cell.alignment = CENTER


def _row(ws: Worksheet, row: int, values: list, failed: bool = False) -> None:
    for col_idx, value in enumerate(values, start=1):
        cell = ws.cell(row=row, column=col_idx, value=value)
        cell.border = THIN_BORDER
        if failed:
            cell.font = FAIL_FONT


def _autosize(ws: Worksheet, widths: list[int]) -> None:
    for col_idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width


def _save(wb: Workbook) -> bytes:
    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output.getvalue()


def student_report_workbook(report: StudentReport) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Student Report"

    headers = ["Subject Code", "Subject", "Semester", "Exam", "Marks", "Max Marks",
               "Percentage", "Grade", "Grade Point", "Status"]
    title = f"{report.name} ({report.roll_no}) - {report.department}, batch {report.batch}"
    if report.semester is not None:
        title += f" - Semester {report.semester}"
    _title(ws, title, len(headers))
    _header(ws, 2, headers)

    row = 3
    for r in report.results:
        _row(ws, row, [
            r.subject_code,
            r.subject_name,
            r.semester,
            r.exam_type.value,
            float(r.marks_obtained),
            float(r.max_marks),
            float(r.percentage),
            r.grade,
            float(r.grade_point),
            "PASS" if r.is_passed else "FAIL",
        ], failed=not r.is_passed)
        row += 1

    row += 1
    for label, value in [
        ("Total Marks", f"{report.total_marks} / {report.max_possible_marks}"),
        ("Percentage", float(report.percentage)),
        ("CGPA", float(report.cgpa)),
        ("Result", "PASS" if report.passed else "FAIL"),
    ]:
        ws.cell(row=row, column=1, value=label).font = Font(bold=True)
        ws.cell(row=row, column=2, value=value)
        row += 1

    _autosize(ws, [14, 30, 10, 12, 10, 10, 12, 8, 12, 10])
    return _save(wb)


def class_report_workbook(report: ClassReport) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Class Report"

    headers = ["Roll No", "Student", "Average Marks", "Average Grade Point", "Subjects", "Status"]
    title = f"{report.class_name} ({report.class_code})"
    if report.semester is not None:
        title += f" - Semester {report.semester}"
    _title(ws, title, len(headers))
    _header(ws, 2, headers)

    row = 3
    for s in report.students:
        _row(ws, row, [
            s.roll_no,
            s.name,
            float(s.average_marks),
            float(s.average_grade_point),
            s.total_subjects,
            "PASS" if s.passed else "FAIL",
        ], failed=not s.passed)
        row += 1

    stats = report.statistics
    row += 1
    for label, value in [
        ("Total Students", stats.total_students),
        ("Passed", stats.passed_students),
        ("Failed", stats.failed_students),
        ("Pass Percentage", float(stats.pass_percentage)),
        ("Class Average", float(stats.class_average)),
    ]:
        ws.cell(row=row, column=1, value=label).font = Font(bold=True)
        ws.cell(row=row, column=2, value=value)
        row += 1

    _autosize(ws, [14, 30, 15, 20, 10, 10])
    return _save(wb)
