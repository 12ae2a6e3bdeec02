import logging
from collections import deque

from linkorm.errors import ModelError

logger = logging.getLogger("LinkORM.models")


class ModelManager:
    """Registry of the models defined on one LinkORM instance, keyed by model name."""

    def __init__(self, orm):
        self.orm = orm
        self.models = {}

    def __iter__(self):
        return iter(list(self.models.values()))

    def __len__(self):
        return len(self.models)

    def __contains__(self, name):
        return name in self.models

    def add_model(self, model):
        name = model._mapper.model_name
        if name in self.models and self.models[name] is not model:
            logger.warning(f"Model {name} redefined, replacing the previous definition")
        self.models[name] = model
        return model

    def remove_model(self, model):
        name = model if isinstance(model, str) else model._mapper.model_name
        self.models.pop(name, None)

    def get_model(self, name):
        return self.models.get(name)

    def has_model(self, name):
        return name in self.models

    def get_model_by_table(self, table_name):
        for model in self.models.values():
            if model._mapper.table_name == table_name:
                return model
        return None

    def sorted_models(self, reverse=False):
        """
        Models ordered so that every model comes after the models its foreign
        keys reference (Kahn's algorithm). ``reverse=True`` gives drop order.
        """
        nodes = list(self.models.values())
        adj = {model: [] for model in nodes}
        in_degree = {model: 0 for model in nodes}

        for model in nodes:
            for fk in model._mapper.foreign_keys().values():
                parent = self.get_model_by_table(fk.target_table)
                # self references do not constrain the order
                if parent is None or parent is model:
                    continue
                adj[parent].append(model)
                in_degree[model] += 1

        queue = deque([model for model in nodes if in_degree[model] == 0])
        sorted_list = []

        while queue:
            u = queue.popleft()
            sorted_list.append(u)
            for v in adj[u]:
                in_degree[v] -= 1
                if in_degree[v] == 0:
                    queue.append(v)

        if len(sorted_list) != len(nodes):
            cyclic = [m._mapper.model_name for m in nodes if in_degree[m] > 0]
            raise ModelError(f"Cyclic foreign key dependency between models: {cyclic}",
                             details={"models": cyclic})

        if reverse:
            sorted_list.reverse()
        return sorted_list
