from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile

from evrental.api.v1.schemas import (
    ActionResponseSchema,
    ActionResultSchema,
    RefundSummarySchema,
    SubmissionStateSchema,
    WorkflowStepSchema,
    WorkflowViewSchema,
)
from evrental.application.exceptions import ServiceError, WorkflowValidationError
from evrental.application.use_cases.booking_workflow import BookingWorkflow
from evrental.application.use_cases.workflow_sessions import WorkflowSessionManager
from evrental.application.utils.settlement import compute_settlement
from evrental.application.utils.workflow_steps import evaluate_steps
from evrental.domain.entities.action_result import ActionResult
from evrental.domain.entities.upload import UploadedFile
from evrental.wiring.dependencies import get_session_manager

router = APIRouter()
logger = logging.getLogger(__name__)

_STATUS_BY_REASON = {
    "busy": 409,
    "precondition": 409,
    "validation": 422,
    "service": 502,
}


async def _open(booking_id: str, sessions: WorkflowSessionManager) -> BookingWorkflow:
    try:
        return await sessions.open(booking_id)
    except ServiceError as e:
        logger.warning("Booking could not be loaded", extra={"booking_id": booking_id, "reason": e.message})
        status_code = 404 if e.status_code == 404 else 502
        raise HTTPException(status_code=status_code, detail=e.message or "Booking could not be loaded")


async def _to_upload(file: UploadFile | None) -> UploadedFile | None:
    if file is None or not file.filename:
        return None
    content = await file.read()
    return UploadedFile(
        filename=file.filename,
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )


async def _to_uploads(files: list[UploadFile] | None) -> list[UploadedFile]:
    uploads = [await _to_upload(f) for f in files or []]
    return [u for u in uploads if u is not None]


def _respond(response: Response, workflow: BookingWorkflow, result: ActionResult) -> ActionResponseSchema:
    if not result.ok:
        response.status_code = _STATUS_BY_REASON.get(result.reason or "service", 502)
    return ActionResponseSchema(
        result=ActionResultSchema.from_result(result),
        state=SubmissionStateSchema.from_state(workflow.state),
    )


@router.get("/settlement/preview", response_model=RefundSummarySchema)
def preview_settlement(
    total_deposit: float = Query(..., ge=0),
    late_fee: float = Query(..., ge=0),
):
    try:
        summary = compute_settlement(total_deposit, late_fee)
    except WorkflowValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return RefundSummarySchema.from_summary(summary)


@router.get("/bookings/{booking_id}/workflow", response_model=WorkflowViewSchema)
async def get_workflow(
    booking_id: str,
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    workflow = await _open(booking_id, sessions)
    booking = workflow.booking
    return WorkflowViewSchema(
        booking_id=booking.id,
        status=booking.status,
        contract_url=booking.contract.url if booking.contract else None,
        has_contract=booking.has_contract,
        deposit_amount=booking.deposit.amount,
        currency=booking.deposit.currency,
        steps=[
            WorkflowStepSchema(
                number=item.step.number,
                label=item.step.label,
                status=item.step.status,
                description=item.step.description,
                action=item.step.action,
                step_status=item.step_status,
            )
            for item in evaluate_steps(booking, workflow.state)
        ],
        state=SubmissionStateSchema.from_state(workflow.state),
    )


@router.delete("/bookings/{booking_id}/workflow/session", status_code=204)
def close_workflow_session(
    booking_id: str,
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    sessions.close(booking_id)
    return Response(status_code=204)


@router.post("/bookings/{booking_id}/workflow/contract", response_model=ActionResponseSchema)
async def upload_contract(
    booking_id: str,
    response: Response,
    file: UploadFile = File(...),
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    workflow = await _open(booking_id, sessions)
    upload = await _to_upload(file)
    if upload is None:
        raise HTTPException(status_code=422, detail="Contract file is required")
    result = await workflow.upload_contract(upload)
    return _respond(response, workflow, result)


@router.delete("/bookings/{booking_id}/workflow/contract", response_model=ActionResponseSchema)
async def delete_contract(
    booking_id: str,
    response: Response,
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    workflow = await _open(booking_id, sessions)
    result = await workflow.delete_contract()
    return _respond(response, workflow, result)


@router.post("/bookings/{booking_id}/workflow/pre-rental", response_model=ActionResponseSchema)
async def record_pre_rental(
    booking_id: str,
    response: Response,
    battery_level: float = Form(..., ge=0, le=100),
    mileage: float = Form(..., ge=0),
    damage_photos: list[UploadFile] | None = File(None),
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    workflow = await _open(booking_id, sessions)
    result = await workflow.upload_pre_rental_condition(
        battery_level=battery_level,
        mileage=mileage,
        damage_photos=await _to_uploads(damage_photos),
    )
    return _respond(response, workflow, result)


@router.post("/bookings/{booking_id}/workflow/start", response_model=ActionResponseSchema)
async def start_booking(
    booking_id: str,
    response: Response,
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    workflow = await _open(booking_id, sessions)
    result = await workflow.start_booking()
    return _respond(response, workflow, result)


@router.post("/bookings/{booking_id}/workflow/return", response_model=ActionResponseSchema)
async def record_return(
    booking_id: str,
    response: Response,
    battery_level: float = Form(..., ge=0, le=100),
    mileage: float = Form(..., ge=0),
    dashboard_photos: list[UploadFile] | None = File(None),
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    workflow = await _open(booking_id, sessions)
    result = await workflow.mark_returned(
        battery_level=battery_level,
        mileage=mileage,
        dashboard_photos=await _to_uploads(dashboard_photos),
    )
    return _respond(response, workflow, result)


@router.post("/bookings/{booking_id}/workflow/damage-report", response_model=ActionResponseSchema)
async def report_damage(
    booking_id: str,
    response: Response,
    description: str = Form(..., min_length=1),
    estimated_cost: float | None = Form(None, ge=0),
    photos: list[UploadFile] | None = File(None),
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    workflow = await _open(booking_id, sessions)
    result = await workflow.damage_report(
        description=description,
        estimated_cost=estimated_cost,
        photos=await _to_uploads(photos),
    )
    return _respond(response, workflow, result)


@router.post("/bookings/{booking_id}/workflow/refund-summary", response_model=ActionResponseSchema)
async def check_refund_summary(
    booking_id: str,
    response: Response,
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    workflow = await _open(booking_id, sessions)
    result = await workflow.get_refund_summary()
    return _respond(response, workflow, result)


@router.post("/bookings/{booking_id}/workflow/refund", response_model=ActionResponseSchema)
async def refund_deposit(
    booking_id: str,
    response: Response,
    proof_image: UploadFile | None = File(None),
    notes: str | None = Form(None),
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    workflow = await _open(booking_id, sessions)
    result = await workflow.refund_deposit(proof_image=await _to_upload(proof_image), notes=notes)
    return _respond(response, workflow, result)


@router.post("/bookings/{booking_id}/workflow/pay-additional", response_model=ActionResponseSchema)
async def pay_additional(
    booking_id: str,
    response: Response,
    amount: float | None = Form(None),
    proof_image: UploadFile | None = File(None),
    sessions: WorkflowSessionManager = Depends(get_session_manager),
):
    workflow = await _open(booking_id, sessions)
    result = await workflow.pay_additional(amount=amount, proof_image=await _to_upload(proof_image))
    return _respond(response, workflow, result)
