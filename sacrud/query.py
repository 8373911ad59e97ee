"""
Typed query surface: named operations bound to the resource actions

For a resource "users" with singular "user" the operations are:
    users       -> list
    user        -> get
    userCreate  -> create
    userUpdate  -> update
    userRemove  -> remove

The declared types are the JSON schemas of the resource schemas, i.e. the serializer's allow-list.
"""
from typing import Any, Dict, Mapping, Optional, Tuple
import sacrud
from .errors import ValidationError
from .schemas import type_schema

MUTATIONS = {"Create": "create", "Update": "update", "Remove": "remove"}


def type_name(actions) -> str:
    return actions.singular[:1].upper() + actions.singular[1:]


class QuerySurface:
    """
    :param registry: ResourceRegistry
    """

    def __init__(self, registry) -> None:
        self.registry = registry

    def operations(self) -> Dict[str, Tuple[Any, str]]:
        """
        :return: operation name -> (resource actions, action name)
        """
        result = {}
        for actions in self.registry:
            result[actions.name] = (actions, "list")
            result[actions.singular] = (actions, "get")
            for suffix, action in MUTATIONS.items():
                result[actions.singular + suffix] = (actions, action)
        return result

    def types(self) -> Dict[str, Dict[str, Any]]:
        return {type_name(actions): type_schema(actions.schema, type_name(actions)) for actions in self.registry}

    def execute(self, operation: str, variables: Optional[Mapping[str, Any]] = None, actor: Optional[str] = None) -> Any:
        """
        :param operation: operation name, e.g. "userCreate"
        :param variables: the operation arguments, "code" selects the record for get, update and remove
        :param actor: acting identity
        :return: the action result
        """
        operations = self.operations()
        if operation not in operations:
            raise ValidationError(f'Unknown operation "{operation}"')
        if variables is None:
            variables = {}
        if not isinstance(variables, Mapping):
            raise ValidationError(f'Invalid variables for "{operation}"')
        actions, action = operations[operation]
        variables = dict(variables)
        sacrud.log.debug(f"Query {operation} -> {actions.name}.{action}")

        if action == "list":
            return actions.list(variables, actor)
        if action == "create":
            return actions.create(variables, actor)

        code = variables.pop("code", None)
        if not code:
            raise ValidationError(f'"{operation}" requires a "code" variable')
        if action == "get":
            return actions.get(code, actor)
        if action == "update":
            return actions.update(code, variables, actor)
        return actions.remove(code, actor)
