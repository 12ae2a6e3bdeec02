from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from linkorm import col

from backend.deps import get_user_model, get_task_model

router = APIRouter()


class UserCreate(BaseModel):
    name: str
    email: str | None = None


class TaskIds(BaseModel):
    task_ids: List[int]


def _user_out(user):
    return {"id": user.id, "name": user.name, "email": user.email}


def _task_out(task):
    return {"id": task.id, "name": task.name, "done": task.done}


def _get_user_or_404(User, user_id):
    user = User.find_by_pk(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _get_tasks_or_404(Task, task_ids):
    tasks = Task.find_all(where={"id": list(task_ids)})
    missing = set(task_ids) - {t.id for t in tasks}
    if missing:
        raise HTTPException(status_code=404, detail=f"Task(s) not found: {sorted(missing)}")
    return tasks


@router.post("/api/users", status_code=201)
def create_user(body: UserCreate, User=Depends(get_user_model)):
    user = User.create(name=body.name, email=body.email)
    return {**_user_out(user), "message": "User created successfully"}


@router.get("/api/users")
def get_users(
    User=Depends(get_user_model),
    name: str = Query(None),
    order_by: str = Query(None),
    order_dir: str = Query("ASC"),
):
    query = User.query()
    if name:
        query.filter(col("name").ilike(f"%{name}%"))
    if order_by and order_by in ("id", "name", "email"):
        query.order_by(order_by, "DESC" if (order_dir or "").upper() == "DESC" else "ASC")
    return [_user_out(u) for u in query.all()]


@router.get("/api/users/{user_id}/tasks")
def get_user_tasks(user_id: int, User=Depends(get_user_model)):
    user = _get_user_or_404(User, user_id)
    return [_task_out(t) for t in user.get_tasks(order="id")]


@router.post("/api/users/{user_id}/tasks/{task_id}")
def add_task_to_user(user_id: int, task_id: int, User=Depends(get_user_model), Task=Depends(get_task_model)):
    user = _get_user_or_404(User, user_id)
    task = Task.find_by_pk(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    if user.has_task(task):
        message = "Task already assigned"
    else:
        user.add_task(task)
        message = "Task assigned"
    return {"message": message, "task_ids": [t.id for t in user.get_tasks(order="id")]}


@router.put("/api/users/{user_id}/tasks")
def set_user_tasks(user_id: int, body: TaskIds, User=Depends(get_user_model), Task=Depends(get_task_model)):
    user = _get_user_or_404(User, user_id)
    tasks = _get_tasks_or_404(Task, body.task_ids)
    user.set_tasks(tasks)
    return {"message": "Tasks replaced", "task_ids": [t.id for t in user.get_tasks(order="id")]}


@router.delete("/api/users/{user_id}/tasks/{task_id}")
def remove_task_from_user(user_id: int, task_id: int, User=Depends(get_user_model)):
    user = _get_user_or_404(User, user_id)
    user.remove_task(task_id)
    return {"message": "Task removed", "task_ids": [t.id for t in user.get_tasks(order="id")]}


@router.delete("/api/users/{user_id}/tasks")
def remove_tasks_from_user(user_id: int, task_ids: List[int] = Query(...), User=Depends(get_user_model)):
    user = _get_user_or_404(User, user_id)
    user.remove_tasks(task_ids)
    return {"message": "Tasks removed", "task_ids": [t.id for t in user.get_tasks(order="id")]}


@router.delete("/api/users/{user_id}")
def delete_user(user_id: int, User=Depends(get_user_model)):
    user = _get_user_or_404(User, user_id)
    user.destroy()
    return {"message": "User deleted"}
