"""Analytics endpoints."""

from datetime import date

from fastapi import APIRouter, Query

from rms.core.database import DbSession
from rms.core.dependencies import AdminUser, StaffUser
from rms.schemas.common import ApiResponse
from rms.schemas.report import OverviewStats, SubjectDistribution, TopPerformer, TrendPoint
from rms.services.analytics import AnalyticsService

router = APIRouter()


@router.get("/overview", response_model=ApiResponse[OverviewStats])
def get_overview(admin: AdminUser, db: DbSession):
    return ApiResponse(data=AnalyticsService(db).overview())


@router.get("/top-performers", response_model=ApiResponse[list[TopPerformer]])
def get_top_performers(
    staff: StaffUser,
    db: DbSession,
    class_id: int = Query(...),
    semester: int | None = None,
    limit: int = Query(10, ge=1, le=100),
):
    """
    Students of a class ranked by mean marks.
    """
    return ApiResponse(data=AnalyticsService(db).top_performers(class_id, semester, limit))


@router.get("/subjects/{subject_id}/distribution", response_model=ApiResponse[SubjectDistribution])
def get_subject_distribution(
    subject_id: int,
    staff: StaffUser,
    db: DbSession,
    semester: int | None = None,
):
    return ApiResponse(data=AnalyticsService(db).subject_distribution(subject_id, semester))


@router.get("/trends", response_model=ApiResponse[list[TrendPoint]])
def get_performance_trends(
    staff: StaffUser,
    db: DbSession,
    date_from: date | None = None,
    date_to: date | None = None,
    class_id: int | None = None,
    subject_id: int | None = None,
):
    """
    Monthly performance per semester, oldest first.
    """
    return ApiResponse(data=AnalyticsService(db).performance_trends(date_from, date_to, class_id, subject_id))
