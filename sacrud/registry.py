"""
Name -> ResourceActions lookup, shared by the relation populator and the transports
"""
from typing import Iterator, List
import sacrud


class ResourceRegistry:
    def __init__(self) -> None:
        self._resources = {}

    def register(self, actions) -> None:
        if actions.name in self._resources:
            sacrud.log.warning(f'Replacing the registered "{actions.name}" resource')
        self._resources[actions.name] = actions

    def get(self, name: str, default=None):
        return self._resources.get(name, default)

    def __getitem__(self, name: str):
        return self._resources[name]

    def __iter__(self) -> Iterator:
        return iter(list(self._resources.values()))

    def dependents(self, name: str) -> List:
        """
        :return: the resources whose serialized records embed records of `name`
        """
        return [actions for actions in self._resources.values() if name in actions.relations.values() and actions.name != name]
