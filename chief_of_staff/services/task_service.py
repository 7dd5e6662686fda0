import logging
from typing import Optional, List
from chief_of_staff import crud
from chief_of_staff.config import get_settings
from chief_of_staff.services.common import parse_dt

logger = logging.getLogger("services.task")


class InvalidDeadline(ValueError):
    pass


async def create_commitment(
    description: str,
    deadline: Optional[str] = None,
    assignee: Optional[str] = None,
    task_type: Optional[str] = None,
    transcript_id: Optional[int] = None,
):
    due = None
    if deadline:
        due = parse_dt(deadline, get_settings().scheduler_timezone)
        if due is None:
            raise InvalidDeadline(f"Could not understand deadline '{deadline}'")
    return await crud.create_commitment(
        description.strip(),
        deadline=due,
        assignee=assignee,
        task_type=task_type,
        transcript_id=transcript_id,
    )


async def list_commitments(status: Optional[str] = None) -> List:
    return await crud.get_commitments(status)


async def complete_commitment(commitment_id: int, completion_note: Optional[str] = None):
    return await crud.complete_commitment(commitment_id, completion_note)


async def delete_commitment(commitment_id: int) -> bool:
    return await crud.delete_commitment(commitment_id)
