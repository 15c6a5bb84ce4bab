#!/usr/bin/env python3
"""
Local workflow harness (no HTTP, no rental back end).

Usage:
  python3 scripts/run_workflow_local.py [--deposit 500000] [--late-fee 150000] [--damage-cost 0]

Walks one booking through every staff step against the in-memory back end and
prints the step ladder and submission state after each action.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from evrental.application.use_cases.booking_workflow import BookingWorkflow
from evrental.application.utils.workflow_steps import evaluate_steps
from evrental.domain.entities.action_result import ActionResult
from evrental.domain.entities.booking import BookingStatus
from evrental.domain.entities.refund_summary import SettlementAction
from evrental.domain.entities.upload import UploadedFile
from evrental.infrastructure.mock.memory_backend import MemoryRentalBackend

MARKERS = {"completed": "[x]", "current": "[>]", "upcoming": "[ ]"}


def _print_ladder(workflow: BookingWorkflow) -> None:
    print(f"\nbooking={workflow.booking.id} status={workflow.booking.status.value}")
    for item in evaluate_steps(workflow.booking, workflow.state):
        action = " <- action" if item.step.action else ""
        print(f"  {MARKERS[item.step_status.value]} {item.step.number}. {item.step.label}{action}")


def _print_result(result: ActionResult, workflow: BookingWorkflow) -> None:
    print(f"-> {result.operation}: {result.status} {result.message or ''}".rstrip())
    state = workflow.state
    if state.error:
        print(f"   error: {state.error}")
    if state.refund_summary and state.show_refund_summary:
        s = state.refund_summary
        print(f"   deposit={s.total_deposit:,.0f} late_fee={s.late_fee:,.0f} refund_amount={s.refund_amount:,.0f}")


async def run(deposit: float, late_fee: float, damage_cost: float) -> None:
    backend = MemoryRentalBackend(deposit_amount=deposit)
    backend.add_booking("local_booking", status=BookingStatus.reserved, late_fee=late_fee)
    booking = await backend.get_booking("local_booking")
    workflow = BookingWorkflow(
        booking=booking,
        contracts=backend,
        inspections=backend,
        damage_reports=backend,
        refunds=backend,
        bookings=backend,
        success_delay=0,
        chain_delay=0,
        enforce_preconditions=True,
    )

    photo = UploadedFile(filename="photo.jpg", content=b"\xff\xd8", content_type="image/jpeg")
    steps = [
        lambda: workflow.upload_contract(UploadedFile(filename="contract.pdf", content=b"%PDF")),
        lambda: workflow.upload_pre_rental_condition(battery_level=95, mileage=12000, damage_photos=[photo]),
        lambda: workflow.mark_returned(battery_level=30, mileage=12450, dashboard_photos=[photo]),
    ]
    if damage_cost:
        steps.append(lambda: workflow.damage_report("Reported at return desk", estimated_cost=damage_cost))
    else:
        steps.append(workflow.get_refund_summary)

    _print_ladder(workflow)
    for step in steps:
        result = await step()
        await workflow.drain()
        _print_result(result, workflow)
        _print_ladder(workflow)

    summary = workflow.state.refund_summary
    if summary is None:
        print("No refund summary available")
        return
    if summary.action == SettlementAction.pay_additional:
        result = await workflow.pay_additional(amount=summary.amount_due, proof_image=photo)
    else:
        result = await workflow.refund_deposit(notes="Settled at desk")
    await workflow.drain()
    _print_result(result, workflow)
    _print_ladder(workflow)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run one booking through the staff workflow locally.")
    parser.add_argument("--deposit", type=float, default=500000)
    parser.add_argument("--late-fee", type=float, default=150000)
    parser.add_argument("--damage-cost", type=float, default=0)
    args = parser.parse_args()
    asyncio.run(run(args.deposit, args.late_fee, args.damage_cost))


if __name__ == "__main__":
    main()
