"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from rms.api.v1.endpoints import (
    analytics,
    attendance,
    audit,
    auth,
    classes,
    config,
    notifications,
    reports,
    results,
    students,
    subjects,
    teachers,
    users,
)

api_router = APIRouter()

# Authentication
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

# User administration
api_router.include_router(
    users.router,
    prefix="/users",
    tags=["Users"],
)

# Academic records
api_router.include_router(
    students.router,
    prefix="/students",
    tags=["Students"],
)

api_router.include_router(
    teachers.router,
    prefix="/teachers",
    tags=["Teachers"],
)

api_router.include_router(
    subjects.router,
    prefix="/subjects",
    tags=["Subjects"],
)

api_router.include_router(
    classes.router,
    prefix="/classes",
    tags=["Classes"],
)

# Results and reporting
api_router.include_router(
    results.router,
    prefix="/results",
    tags=["Results"],
)

api_router.include_router(
    reports.router,
    prefix="/reports",
    tags=["Reports"],
)

api_router.include_router(
    analytics.router,
    prefix="/analytics",
    tags=["Analytics"],
)

# Attendance
api_router.include_router(
    attendance.router,
    prefix="/attendance",
    tags=["Attendance"],
)

# Notifications
api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["Notifications"],
)

# Audit Logs
api_router.include_router(
    audit.router,
    prefix="/audit-logs",
    tags=["Audit Logs"],
)

# Runtime configuration
api_router.include_router(
    config.router,
    prefix="/config",
    tags=["Configuration"],
)
