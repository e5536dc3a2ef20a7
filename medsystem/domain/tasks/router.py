"""Task router - reminders per patient and the tasks board"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_approved_profile
from ...database import get_db
from ...models import Profile
from .schemas import TaskBoard, TaskCreate, TaskResponse, TaskUpdate
from .service import TaskService, to_response

router = APIRouter(tags=["Tasks"])


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.get("/tasks", response_model=list[TaskResponse])
async def list_tasks(
    _: Profile = Depends(get_approved_profile),
    service: TaskService = Depends(get_task_service),
):
    return [to_response(t) for t in service.list_tasks()]


@router.get("/tasks/board", response_model=TaskBoard)
async def task_board(
    _: Profile = Depends(get_approved_profile),
    service: TaskService = Depends(get_task_service),
):
    return service.board()


@router.get("/patients/{patient_id}/tasks", response_model=list[TaskResponse])
async def list_patient_tasks(
    patient_id: str,
    _: Profile = Depends(get_approved_profile),
    service: TaskService = Depends(get_task_service),
):
    return [to_response(t) for t in service.list_for_patient(patient_id)]


@router.post("/patients/{patient_id}/tasks", response_model=TaskResponse, status_code=201)
async def create_task(
    patient_id: str,
    data: TaskCreate,
    current_profile: Profile = Depends(get_approved_profile),
    service: TaskService = Depends(get_task_service),
):
    return to_response(service.create_task(patient_id, data, current_profile))


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    data: TaskUpdate,
    _: Profile = Depends(get_approved_profile),
    service: TaskService = Depends(get_task_service),
):
    return to_response(service.update_task(task_id, data))


@router.post("/tasks/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(
    task_id: str,
    current_profile: Profile = Depends(get_approved_profile),
    service: TaskService = Depends(get_task_service),
):
    return to_response(service.toggle_completion(task_id, current_profile))


@router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: str,
    _: Profile = Depends(get_approved_profile),
    service: TaskService = Depends(get_task_service),
):
    return service.delete_task(task_id)
