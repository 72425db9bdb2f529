from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from workforce.application import get_roster_service
from workforce.core.errors import WorkforceError
from workforce.core.schema import EmployeeOut
from workforce.domain import Role, SessionContext

from .deps import require_privileged, to_http_error

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("")
async def list_employees(session: SessionContext = Depends(require_privileged)) -> dict:
    service = get_roster_service()
    employees = service.list_employees(session.company_id)
    return {"items": [EmployeeOut.model_validate(item).model_dump(mode="json") for item in employees]}


@router.post("")
async def create_employee(payload: dict, session: SessionContext = Depends(require_privileged)) -> dict:
    full_name = payload.get("full_name")
    email = payload.get("email")
    if not full_name or not email:
        raise HTTPException(status_code=400, detail="full_name and email are required")
    role = Role.parse(payload.get("role") or Role.EMPLOYEE.value)
    if role is None:
        raise HTTPException(status_code=400, detail="role must be admin, manager or employee")
    service = get_roster_service()
    employee = service.add_employee(session.company_id, full_name, email, role)
    return EmployeeOut.model_validate(employee).model_dump(mode="json")


@router.put("/{user_id}/role")
async def change_role(user_id: int, payload: dict, session: SessionContext = Depends(require_privileged)) -> dict:
    role = Role.parse(payload.get("role"))
    if role is None:
        raise HTTPException(status_code=400, detail="role must be admin, manager or employee")
    service = get_roster_service()
    try:
        employee = service.change_role(session, user_id, role)
    except WorkforceError as exc:
        raise to_http_error(exc) from exc
    return EmployeeOut.model_validate(employee).model_dump(mode="json")
