"""Report endpoints, including spreadsheet exports."""

from io import BytesIO

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from rms.core.database import DbSession
from rms.core.dependencies import CurrentUser, StaffUser, ensure_student_access
from rms.schemas.common import ApiResponse
from rms.schemas.report import ClassReport, StudentReport
from rms.services.export import XLSX_MEDIA_TYPE, class_report_workbook, student_report_workbook
from rms.services.report import ReportService

router = APIRouter()


def _xlsx_response(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/students/{student_id}", response_model=ApiResponse[StudentReport])
def get_student_report(
    student_id: int,
    current_user: CurrentUser,
    db: DbSession,
    semester: int | None = None,
):
    """
    Result report for one student. Students may only view their own.
    """
    ensure_student_access(db, current_user, student_id)
    return ApiResponse(data=ReportService(db).student_report(student_id, semester))


@router.get("/students/{student_id}/export")
def export_student_report(
    student_id: int,
    current_user: CurrentUser,
    db: DbSession,
    semester: int | None = None,
):
    ensure_student_access(db, current_user, student_id)
    report = ReportService(db).student_report(student_id, semester)
    suffix = f"_sem{semester}" if semester is not None else ""
    return _xlsx_response(student_report_workbook(report), f"student_report_{report.roll_no}{suffix}.xlsx")


@router.get("/classes/{class_id}", response_model=ApiResponse[ClassReport])
def get_class_report(
    class_id: int,
    staff: StaffUser,
    db: DbSession,
    semester: int | None = None,
):
    return ApiResponse(data=ReportService(db).class_report(class_id, semester))


@router.get("/classes/{class_id}/export")
def export_class_report(
    class_id: int,
    staff: StaffUser,
    db: DbSession,
    semester: int | None = None,
):
    report = ReportService(db).class_report(class_id, semester)
    suffix = f"_sem{semester}" if semester is not None else ""
    return _xlsx_response(class_report_workbook(report), f"class_report_{report.class_code}{suffix}.xlsx")
