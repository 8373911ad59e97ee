"""
Serialization of records to their external representation and expansion of reference fields
"""

from typing import Any, Dict, List, Mapping, Optional, Type, Union
import sacrud
from .schemas import ResourceSchema

Serialized = Union[Dict[str, Any], List[Dict[str, Any]]]


class Serializer:
    """
    :param schema: ResourceSchema subclass, only the fields it declares are serialized
    """

    def __init__(self, schema: Type[ResourceSchema]) -> None:
        self.schema = schema

    def serialize_one(self, record: Any) -> Optional[Dict[str, Any]]:
        if record is None:
            return None
        # read only the declared fields: internal attributes never reach the schema
        data = {name: getattr(record, name, None) for name in self.schema.model_fields}
        return self.schema.model_validate(data).model_dump(mode="json", by_alias=True)

    def serialize(self, records: Any) -> Optional[Serialized]:
        """
        :param records: a record or a list of records
        :return: dict or list of dicts
        """
        if isinstance(records, (list, tuple)):
            return [self.serialize_one(record) for record in records]
        return self.serialize_one(records)


class RelationPopulator:
    """
    Replaces reference fields (holding the code of a record of another resource)
    with the serialized referenced record

    :param registry: ResourceRegistry used to look up the referenced resources
    """

    def __init__(self, registry) -> None:
        self.registry = registry

    def populate(self, actor: Optional[str], serialized: Optional[Serialized], relations: Mapping[str, str]) -> Optional[Serialized]:
        """
        :param actor: acting identity
        :param serialized: serialized record(s)
        :param relations: external field name -> referenced resource name
        :return: `serialized`, with the reference fields expanded in place
        """
        if not serialized or not relations:
            return serialized
        items = serialized if isinstance(serialized, list) else [serialized]
        for field_name, resource_name in relations.items():
            target = self.registry.get(resource_name) if self.registry is not None else None
            if target is None:
                sacrud.log.warning(f'Can\'t populate "{field_name}": unknown resource "{resource_name}"')
                continue
            resolved = {}
            for item in items:
                ref = item.get(field_name)
                if ref is None or isinstance(ref, dict):
                    continue
                if ref not in resolved:
                    resolved[ref] = target.serializer.serialize(target.model(ref, actor=actor))
                    if resolved[ref] is None:
                        sacrud.log.info(f'{field_name} "{ref}" references a missing {resource_name} record')
                item[field_name] = resolved[ref]
        return serialized
