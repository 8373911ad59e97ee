# -*- coding: utf-8 -*-
"""
pydantic base models for the resource schemas

ResourceSchema subclasses declare the externally visible fields of a resource (the serialization allow-list).
ResourceFields subclasses declare the fields accepted by create and update.
Python attribute names are snake_case, the external names are the camelCase aliases.
"""

from typing import Any, Dict, Type

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ResourceSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @classmethod
    def aliases(cls) -> Dict[str, str]:
        """
        :return: external field name -> attribute name
        """
        return {field.alias or name: name for name, field in cls.model_fields.items()}


class ResourceFields(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def type_schema(schema: Type[ResourceSchema], type_name: str) -> Dict[str, Any]:
    """
    :return: JSON schema of the serialized representation
    """
    result = schema.model_json_schema(by_alias=True, mode="serialization")
    result["title"] = type_name
    return result
