from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from backend.deps import get_task_model

router = APIRouter()


class TaskCreate(BaseModel):
    name: str
    done: bool = False


class TaskUpdate(BaseModel):
    name: str | None = None
    done: bool | None = None


def _task_out(task):
    return {"id": task.id, "name": task.name, "done": task.done}


def _get_task_or_404(Task, task_id):
    task = Task.find_by_pk(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.post("/api/tasks", status_code=201)
def create_task(body: TaskCreate, Task=Depends(get_task_model)):
    task = Task.create(name=body.name, done=body.done)
    return {**_task_out(task), "message": "Task created successfully"}


@router.get("/api/tasks")
def get_tasks(Task=Depends(get_task_model), done: bool = Query(None)):
    where = {"done": done} if done is not None else None
    return [_task_out(t) for t in Task.find_all(where=where, order="id")]


@router.put("/api/tasks/{task_id}")
def update_task(task_id: int, body: TaskUpdate, Task=Depends(get_task_model)):
    task = _get_task_or_404(Task, task_id)
    if body.name is not None:
        task.name = body.name
    if body.done is not None:
        task.done = body.done
    task.save()
    return {**_task_out(task), "message": "Task updated"}


@router.get("/api/tasks/{task_id}/users")
def get_task_users(task_id: int, Task=Depends(get_task_model)):
    task = _get_task_or_404(Task, task_id)
    return [{"id": u.id, "name": u.name, "email": u.email} for u in task.get_users(order="id")]
