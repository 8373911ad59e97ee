"""
Collection accessor: executes FilterQuery descriptors and writes records through the SQLAlchemy session

The accessor is the only place where the session is committed or rolled back.
Unique index violations are reported as `UniqueConstraintViolation` with the raw database message.
"""
# pylint: disable=protected-access
import operator
from typing import Any, Mapping, Optional, Type
import sqlalchemy
from sqlalchemy import or_
import sacrud
from .errors import UniqueConstraintViolation, ValidationError
from .conflicts import is_unique_violation
from .filters import FilterQuery

LIKE_OPS = ("like", "ilike", "notilike", "notlike")
IN_OPS = ("in", "notin")


class CollectionAccessor:
    """
    :param collection: ResourceBase model class
    :param aliases: external field name -> model attribute name (used for sort and filter expressions)
    :param session: SQLAlchemy session, defaults to the sacrud.DB scoped session
    """

    def __init__(self, collection: Type[Any], aliases: Optional[Mapping[str, str]] = None, session=None) -> None:
        self.collection = collection
        self.aliases = dict(aliases or {})
        self._session = session

    @property
    def session(self):
        if self._session is not None:
            return self._session
        return sacrud.DB.session

    @property
    def table_name(self) -> str:
        return self.collection.__tablename__

    @property
    def column_names(self) -> list:
        return [column.name for column in self.collection.__table__.columns]

    def _attr(self, name: str):
        """
        :param name: external (alias) or model attribute name
        :return: the orm attribute, None if it is not an exposed column
        """
        attr_name = self.aliases.get(name)
        if attr_name is None:
            if name not in self.aliases.values():
                return None
            attr_name = name
        return self.collection._s_column(attr_name)

    @property
    def query(self):
        return self.session.query(self.collection)

    def find(self, filter_query: FilterQuery, actor: Optional[str] = None) -> list:
        """
        :param filter_query: FilterQuery descriptor
        :param actor: acting identity, used by `filter=my`
        :return: list of matching records
        """
        if filter_query.limit == 0:
            return []
        query = self.query
        query = self._apply_author(query, filter_query, actor)
        query = self._apply_expressions(query, filter_query)
        query = self._apply_sort(query, filter_query.sort)
        return query.offset(filter_query.offset).limit(filter_query.limit).all()

    def _apply_author(self, query, filter_query: FilterQuery, actor: Optional[str]):
        author_field = self.collection._s_author_field
        if author_field is None:
            if filter_query.author or filter_query.only_mine:
                sacrud.log.debug(f"{self.table_name} has no author field, ignoring the author filter")
            return query
        author_attr = getattr(self.collection, author_field)
        if filter_query.only_mine:
            if actor is None:
                # nobody is logged in: nothing is "mine"
                return query.filter(sqlalchemy.false())
            query = query.filter(author_attr == actor)
        elif filter_query.author:
            query = query.filter(author_attr == filter_query.author)
        return query

    def _apply_expressions(self, query, filter_query: FilterQuery):
        expressions = []
        for filt in filter_query.expressions:
            attr_name, op_name, attr_val = filt["name"], filt["op"], filt["val"]
            attr = self._attr(attr_name)
            if attr is None:
                raise ValidationError(f'Invalid filter "{filt}", unknown attribute "{attr_name}"')
            if op_name in IN_OPS:
                if not isinstance(attr_val, list):
                    raise ValidationError(f'Invalid filter "{filt}", "{op_name}" requires a list')
                if any(isinstance(item, (dict, list)) for item in attr_val):
                    raise ValidationError(f'Invalid filter "{filt}", "{op_name}" requires a list of values')
                op = getattr(attr, op_name + "_")
                expressions.append(op(attr_val))
            elif isinstance(attr_val, (dict, list)):
                raise ValidationError(f'Invalid filter "{filt}", "{op_name}" requires a single value')
            elif op_name in LIKE_OPS:
                expressions.append(getattr(attr, op_name)(attr_val))
            elif op_name in ("eq", "ne", "ge", "gt", "le", "lt"):
                op = getattr(operator, op_name)
                expressions.append(op(attr, attr_val))
            else:
                raise ValidationError(f'Invalid filter "{filt}", unknown operator "{op_name}"')
        if expressions:
            query = query.filter(or_(*expressions))
        return query

    def _apply_sort(self, query, sort: Optional[str]):
        """
        sort by csv sort= values, a "-" prefix sorts descending
        records are returned in insertion order when no (valid) sort attribute is given
        """
        order_by = []
        for sort_attr in (sort or "").split(","):
            sort_attr = sort_attr.strip()
            reverse = sort_attr.startswith("-")
            if reverse:
                sort_attr = sort_attr[1:]
            if not sort_attr:
                continue
            attr = self._attr(sort_attr)
            if attr is None:
                sacrud.log.debug(f"{self.table_name} has no sortable attribute {sort_attr}")
                continue
            order_by.append(attr.desc() if reverse else attr.asc())
        order_by.append(self.collection.id.asc())
        return query.order_by(*order_by)

    def find_by_code(self, code: str):
        """
        :return: the record with the given external code or None
        """
        if code is None:
            return None
        return self.query.filter(self.collection.code == str(code)).one_or_none()

    def get_by_id(self, record_id: int):
        """
        :return: the record with the given storage id or None
        """
        return self.session.get(self.collection, record_id)

    def save(self, record):
        """
        Insert or overwrite `record` and commit

        :raises UniqueConstraintViolation: a unique index has been violated, nothing has been written
        """
        session = self.session
        session.add(record)
        try:
            session.commit()
        except sqlalchemy.exc.IntegrityError as exc:
            session.rollback()
            detail = str(exc.orig) if exc.orig is not None else str(exc)
            if is_unique_violation(detail):
                sacrud.log.info(f"Unique constraint violated for {self.table_name}: {detail}")
                raise UniqueConstraintViolation(detail) from exc
            raise
        except sqlalchemy.exc.SQLAlchemyError:
            session.rollback()
            raise
        return record

    def delete_by_id(self, record_id: int) -> bool:
        """
        :return: False if no record has this id
        """
        session = self.session
        record = self.get_by_id(record_id)
        if record is None:
            return False
        session.delete(record)
        try:
            session.commit()
        except sqlalchemy.exc.SQLAlchemyError:
            session.rollback()
            raise
        return True
