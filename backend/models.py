from linkorm import LinkORM, Text, Boolean


def define_models(orm: LinkORM):
    User = orm.define("User", {
        "name": Text(nullable=False),
        "email": Text(unique=True),
    })
    Task = orm.define("Task", {
        "name": Text(nullable=False),
        "done": Boolean(default=False),
    })

    User.belongs_to_many(Task, alias="Tasks", through="user_tasks")
    Task.belongs_to_many(User, alias="Users", through="user_tasks")
    return User, Task
