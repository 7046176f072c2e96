"""Report and analytics schemas."""

from rms.models.result import ExamType
from rms.schemas.common import BaseSchema, DecimalNumber


class TopPerformer(BaseSchema):
    student_id: int
    roll_no: str
    name: str
    average_marks: DecimalNumber
    average_grade_point: DecimalNumber
    total_subjects: int


class GradeBucket(BaseSchema):
    grade: str
    count: int
    average_marks: DecimalNumber


class DistributionStats(BaseSchema):
    total_results: int
    average_marks: DecimalNumber
    highest_marks: DecimalNumber
    lowest_marks: DecimalNumber
    passed_count: int
    failed_count: int
    pass_rate: DecimalNumber


class SubjectDistribution(BaseSchema):
    subject_id: int
    subject_code: str
    subject_name: str
    semester: int | None
    distribution: list[GradeBucket]
    stats: DistributionStats


class TrendPoint(BaseSchema):
    period: str
    year: int
    month: int
    semester: int
    average_marks: DecimalNumber
    average_grade_point: DecimalNumber
    total_results: int
    pass_rate: DecimalNumber


class ReportResult(BaseSchema):
    result_id: int
    subject_id: int
    subject_code: str
    subject_name: str
    semester: int
    exam_type: ExamType
    marks_obtained: DecimalNumber
    max_marks: DecimalNumber
    percentage: DecimalNumber
    grade: str
    grade_point: DecimalNumber
    is_passed: bool
    is_approved: bool


class StudentReport(BaseSchema):
    student_id: int
    roll_no: str
    name: str
    department: str
    batch: str
    semester: int | None
    results: list[ReportResult]
    total_subjects: int
    total_marks: DecimalNumber
    max_possible_marks: DecimalNumber
    percentage: DecimalNumber
    cgpa: DecimalNumber
    passed: bool


class ClassStudentSummary(BaseSchema):
    student_id: int
    roll_no: str
    name: str
    average_marks: DecimalNumber
    average_grade_point: DecimalNumber
    total_subjects: int
    passed: bool


class ClassStatistics(BaseSchema):
    total_students: int
    passed_students: int
    failed_students: int
    pass_percentage: DecimalNumber
    class_average: DecimalNumber


class ClassReport(BaseSchema):
    """Per-class aggregate.

    A student counts as passed only when every one of their results passed.
    """

    class_id: int
    class_code: str
    class_name: str
    semester: int | None
    students: list[ClassStudentSummary]
    statistics: ClassStatistics


class OverviewStats(BaseSchema):
    total_students: int
    total_teachers: int
    total_subjects: int
    total_classes: int
    total_results: int
    pending_approvals: int
    overall_pass_rate: DecimalNumber
    average_percentage: DecimalNumber
