# actions.py: the resource action pipeline
#
# pylint: disable=protected-access,line-too-long,too-many-instance-attributes,too-many-arguments
#
"""
ResourceActions implements the uniform action set of a resource:

list:
Cached by the filter parameters (limit, offset, sort, filter, author).
Returns the serialized, populated records matching the filter, an empty list is a valid result.

get:
Cached by code. Raises NotFoundError if no record has this code.

model:
Cached by code, internal (not exposed by the transports). Returns the record or None.

create, update, remove:
Write through the collection accessor, translate unique index violations to DuplicateFieldError,
invalidate the cache of the resource (after the commit) and emit a Change Event.
create may spawn a best-effort side effect (e.g. a mail), its failures only ever produce an "error" Change Event.

Subclasses declare the resource statically:

    class PostActions(ResourceActions):
        name = "posts"
        singular = "post"
        collection = Post
        schema = PostSchema
        create_fields = PostCreate
        update_fields = PostFields
        relations = {"author": "users"}
        not_found_code = "app:PostNotFound"
"""
from typing import Any, Callable, Dict, Mapping, Optional, Type
import pydantic
import sacrud
from .accessor import CollectionAccessor
from .base import utc_now
from .cache import MISS, CacheStore, fingerprint
from .conflicts import conflicting_field
from .errors import DuplicateFieldError, NotFoundError, SideEffectFailure, UniqueConstraintViolation, ValidationError
from .events import EventKind, NotificationEmitter
from .filters import FILTER_PARAMS, build_filter
from .schemas import ResourceFields, ResourceSchema
from .serializer import RelationPopulator, Serializer

SideEffect = Callable[[], Any]


class ResourceActions:
    """
    :param registry: ResourceRegistry, the actions register themselves in it
    :param cache: CacheStore shared by the resources
    :param emitter: NotificationEmitter receiving the Change Events
    :param accessor: CollectionAccessor, defaults to an accessor for `collection`
    :param executor: concurrent.futures executor running the side effects, defaults to `SACRUD.executor()`
    """

    name: str = None
    singular: str = None
    collection = None
    schema: Type[ResourceSchema] = None
    create_fields: Type[ResourceFields] = None
    update_fields: Type[ResourceFields] = None
    # external field name -> name of the referenced resource
    relations: Dict[str, str] = {}
    not_found_code = "NotFound"
    # the parameters that determine an action's result
    cache_keys = {"list": FILTER_PARAMS, "get": ("code",), "model": ("code",)}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.collection is None or cls.schema is None:
            return
        if not cls.name:
            raise TypeError(f"{cls.__name__} has no resource name")
        columns = set(cls.collection._s_column_names())
        for field_name in cls.schema.model_fields:
            if field_name not in columns:
                raise TypeError(f'{cls.__name__}.schema: "{field_name}" is not a {cls.collection.__name__} attribute')
        for fields_model in (cls.create_fields, cls.update_fields):
            for field_name in getattr(fields_model, "model_fields", {}):
                if field_name not in columns:
                    raise TypeError(f'{cls.__name__}.{fields_model.__name__}: "{field_name}" is not a {cls.collection.__name__} attribute')
        aliases = cls.schema.aliases()
        for relation in cls.relations:
            if relation not in aliases:
                raise TypeError(f'{cls.__name__}.relations: "{relation}" is not a serialized field')

    def __init__(self, registry=None, cache: Optional[CacheStore] = None, emitter: Optional[NotificationEmitter] = None, accessor: Optional[CollectionAccessor] = None, executor=None) -> None:
        if self.collection is None or self.schema is None:
            raise TypeError(f"{self.__class__.__name__} doesn't declare a collection and a schema")
        self.registry = registry
        self.cache = cache if cache is not None else CacheStore()
        self.emitter = emitter if emitter is not None else NotificationEmitter()
        self.accessor = accessor if accessor is not None else CollectionAccessor(self.collection, self.schema.aliases())
        self._executor = executor
        self.serializer = Serializer(self.schema)
        self.populator = RelationPopulator(registry)
        if registry is not None:
            registry.register(self)

    @property
    def executor(self):
        if self._executor is not None:
            return self._executor
        return sacrud.SACRUD.executor()

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name}>"

    #
    # Cache helpers
    #
    def _cached(self, action: str, params: Mapping[str, Any], compute: Callable[[], Any], keys=None) -> Any:
        if keys is None:
            keys = self.cache_keys[action]
        key = fingerprint(self.name, action, params, keys)
        value = self.cache.get(self.name, key)
        if value is not MISS:
            sacrud.log.debug(f"Cache hit {key}")
            return value
        generation = self.cache.generation(self.name)
        value = compute()
        self.cache.put(self.name, key, value, generation)
        return value

    def invalidate(self) -> None:
        """
        Drop the cached results of this resource and of the resources embedding its records
        """
        self.cache.invalidate(self.name)
        if self.registry is None:
            return
        for dependent in self.registry.dependents(self.name):
            dependent.cache.invalidate(dependent.name)

    #
    # Read actions
    #
    def list(self, params: Optional[Mapping[str, Any]] = None, actor: Optional[str] = None) -> list:
        """
        :param params: request parameters, only limit, offset, sort, filter and author are used
        :param actor: acting identity
        :return: list of serialized records
        """
        filter_query = build_filter(params)
        key_params = {
            "limit": filter_query.limit,
            "offset": filter_query.offset,
            "sort": filter_query.sort,
            "filter": filter_query.filter,
            "author": filter_query.author,
        }
        keys = list(self.cache_keys["list"])
        if filter_query.only_mine:
            # the result depends on who's asking
            key_params["actor"] = actor
            keys.append("actor")

        def compute():
            records = self.accessor.find(filter_query, actor)
            return self.populator.populate(actor, self.serializer.serialize(records), self.relations)

        return self._cached("list", key_params, compute, keys)

    def get(self, code: str, actor: Optional[str] = None) -> Dict[str, Any]:
        """
        :raises NotFoundError: no record has this code
        """

        def compute():
            record = self.model(code, actor)
            if record is None:
                raise NotFoundError(code, self.not_found_code)
            return self.populator.populate(actor, self.serializer.serialize(record), self.relations)

        return self._cached("get", {"code": code}, compute)

    def model(self, code: str, actor: Optional[str] = None):
        """
        Resolve a record by its code.
        The cache holds the storage id, the record itself is (re)loaded by the accessor
        :return: the record or None
        """
        if code is None:
            return None
        key = fingerprint(self.name, "model", {"code": code}, self.cache_keys["model"])
        record_id = self.cache.get(self.name, key)
        if record_id is not MISS:
            record = self.accessor.get_by_id(record_id)
            if record is not None:
                return record
        generation = self.cache.generation(self.name)
        record = self.accessor.find_by_code(code)
        if record is not None:
            self.cache.put(self.name, key, record.id, generation)
        return record

    #
    # Mutations
    #
    def create(self, fields: Optional[Mapping[str, Any]], actor: Optional[str] = None) -> Dict[str, Any]:
        """
        :param fields: the new record's fields (external names)
        :param actor: acting identity
        :return: the serialized, populated record
        :raises ValidationError: invalid fields
        :raises DuplicateFieldError: a unique field is already taken
        """
        data = self.validate(self.create_fields, fields)
        record = self.collection()
        self.assign(record, data)
        self.prepare(record, data, actor)
        self._save(record, "create")
        self.invalidate()
        result = self.present(record, actor)
        self.notify(EventKind.CREATED, result, actor)
        try:
            side_effect = self.post_create(result, record, actor)
        except Exception as exc:  # pylint: disable=broad-except
            self._side_effect_failed(exc, actor)
            side_effect = None
        if side_effect is not None:
            self.spawn(side_effect, actor)
        return result

    def update(self, code: str, fields: Optional[Mapping[str, Any]], actor: Optional[str] = None) -> Dict[str, Any]:
        """
        Only the fields that are present and not null are written.
        An update without fields still touches the record, invalidates the cache and emits "updated".
        :raises NotFoundError: no record has this code
        """
        record = self.model(code, actor)
        if record is None:
            raise NotFoundError(code, self.not_found_code)
        data = self.validate(self.update_fields, fields)
        self.assign(record, data)
        record.updated_at = utc_now()
        self._save(record, "update")
        self.invalidate()
        result = self.present(record, actor)
        self.notify(EventKind.UPDATED, result, actor)
        return result

    def remove(self, code: str, actor: Optional[str] = None) -> Dict[str, Any]:
        """
        :return: the record as it was before the deletion
        :raises NotFoundError: no record has this code
        """
        record = self.model(code, actor)
        if record is None:
            raise NotFoundError(code, self.not_found_code)
        serialized = self.serializer.serialize(record)
        if not self.accessor.delete_by_id(record.id):
            # deleted concurrently
            raise NotFoundError(code, self.not_found_code)
        self.invalidate()
        result = self.populator.populate(actor, serialized, self.relations)
        self.notify(EventKind.REMOVED, result, actor)
        return result

    #
    # Pipeline steps, overridden by the resources where needed
    #
    def validate(self, fields_model: Optional[Type[ResourceFields]], fields: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        :return: the validated fields that were present and not null, by attribute name
        """
        if fields is None:
            fields = {}
        if not isinstance(fields, Mapping):
            raise ValidationError(f"Invalid {self.singular} fields: {fields!r}")
        if fields_model is None:
            return {}
        try:
            validated = fields_model.model_validate(dict(fields))
        except pydantic.ValidationError as exc:
            details = "; ".join(f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in exc.errors())
            raise ValidationError(details)
        return validated.model_dump(exclude_unset=True, exclude_none=True)

    def assign(self, record, data: Mapping[str, Any]) -> None:
        for attr_name, value in data.items():
            setattr(record, attr_name, value)

    def prepare(self, record, data: Mapping[str, Any], actor: Optional[str]) -> None:
        """
        Set the defaults of a new record before it is saved
        """

    def post_create(self, json: Dict[str, Any], record, actor: Optional[str]) -> Optional[SideEffect]:
        """
        Called in the request thread after a successful create.
        :return: a callable run on the executor or None.
                 It must not use `record` (the session isn't thread safe), copy the values it needs.
        """
        return None

    def present(self, record, actor: Optional[str]) -> Dict[str, Any]:
        return self.populator.populate(actor, self.serializer.serialize(record), self.relations)

    def notify(self, kind, payload: Any, actor: Optional[str] = None):
        return self.emitter.emit(self.name, kind, payload, actor)

    def translate_conflict(self, detail: str, action: str = "create") -> DuplicateFieldError:
        """
        :param detail: raw unique constraint violation message
        :return: DuplicateFieldError naming the external field, the field is None if the message can't be parsed
        """
        column = conflicting_field(detail, self.accessor.table_name, self.accessor.column_names)
        if column is None:
            sacrud.log.warning(f"Can't determine the duplicate field from: {detail}")
            return DuplicateFieldError(None, f"Unable to {action} {self.singular}, duplicate field")
        external = {attr_name: alias for alias, attr_name in self.schema.aliases().items()}
        field = external.get(column, column)
        return DuplicateFieldError(field, f"Unable to {action} {self.singular}, duplicate field: {field}")

    def _save(self, record, action: str) -> None:
        try:
            self.accessor.save(record)
        except UniqueConstraintViolation as exc:
            raise self.translate_conflict(exc.detail, action) from exc

    #
    # Side effects
    #
    def spawn(self, side_effect: SideEffect, actor: Optional[str] = None):
        """
        Run `side_effect` on the executor, the caller doesn't wait for it
        :return: Future
        """
        return self.executor.submit(self._run_side_effect, side_effect, actor)

    def _run_side_effect(self, side_effect: SideEffect, actor: Optional[str]) -> None:
        try:
            side_effect()
        except Exception as exc:  # pylint: disable=broad-except
            self._side_effect_failed(exc, actor)

    def _side_effect_failed(self, exc: Exception, actor: Optional[str]) -> None:
        if isinstance(exc, SideEffectFailure):
            sacrud.log.warning(f"{self.name} side effect failed: {exc.msg_code} {exc.message}")
            self.notify(EventKind.ERROR, exc.msg_code, actor)
        else:
            sacrud.log.exception(exc)
            self.notify(EventKind.ERROR, "SideEffectFailure", actor)
