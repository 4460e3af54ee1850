"""Exam and exam result API endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query

from educrm.api.deps import get_container, get_request_context
from educrm.container import Container
from educrm.models.user import Role
from educrm.schemas.common import APIResponse
from educrm.schemas.schedule import ExamCreate, ExamResponse, ExamResultCreate, ExamResultResponse
from educrm.utils.permissions import require_role
from educrm.utils.request_context import RequestContext

router = APIRouter()


@router.get("", response_model=APIResponse[list[ExamResponse]])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def list_exams(
    group_id: uuid.UUID | None = Query(None, description="Filter by group"),
    container: Container = Depends(get_container),
):
    exams = await container.schedule.list_exams(group_id)
    return APIResponse(data=[ExamResponse.model_validate(e) for e in exams])


@router.post("", response_model=APIResponse[ExamResponse], status_code=201)
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def create_exam(
    data: ExamCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Schedule an exam. Overlaps within the group or course fail with SCHEDULE_CONFLICT."""
    exam = await container.schedule.create_exam(ctx, data)
    return APIResponse(data=ExamResponse.model_validate(exam), message="Exam scheduled")


@router.post("/{exam_id}/results", response_model=APIResponse[ExamResultResponse])
@require_role(Role.ADMIN, Role.STAFF, Role.TEACHER)
async def record_exam_result(
    exam_id: uuid.UUID,
    data: ExamResultCreate,
    ctx: RequestContext = Depends(get_request_context),
    container: Container = Depends(get_container),
):
    """Grade a student. Re-grading replaces the previous result."""
    result = await container.schedule.record_result(ctx, exam_id, data)
    return APIResponse(data=ExamResultResponse.model_validate(result), message="Result recorded")
