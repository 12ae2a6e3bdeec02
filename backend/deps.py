from fastapi import Request

from linkorm import LinkORM


def get_orm(request: Request) -> LinkORM:
    return request.app.state.orm


def get_user_model(request: Request):
    return get_orm(request).model("User")


def get_task_model(request: Request):
    return get_orm(request).model("Task")
