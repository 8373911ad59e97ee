# base.py: implements the ResourceBase SQLAlchemy model mixin
#
# pylint: disable=no-self-argument,no-member,line-too-long,protected-access
#
"""
ResourceBase columns and attributes, shared by all persisted resource records:

id:
Type: Integer
Description: internal storage id, never exposed and never used to reference a record from outside.

code:
Type: String
Description: external stable identifier, generated on construction, unique.

created_at, updated_at:
Type: DateTime
Description: bookkeeping timestamps (naive UTC).
"""
from __future__ import annotations
import datetime
import uuid
from flask_sqlalchemy.model import Model
from sqlalchemy import Column, DateTime, Integer, String


def utc_now() -> datetime.datetime:
    """
    :return: naive utc timestamp (sqlite doesn't store timezones)
    """
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def generate_code() -> str:
    """
    :return: a new external record code
    """
    return uuid.uuid4().hex


class ResourceBase(Model):
    """This SQLAlchemy mixin adds the columns every resource record has

    Usage:
        class User(ResourceBase, DB.Model):
            __tablename__ = "users"
            email = DB.Column(DB.String, unique=True)
    """

    id = Column(Integer, primary_key=True)
    code = Column(String(64), unique=True, nullable=False, index=True, default=generate_code)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # name of the column holding the author (user code) of the record, if any
    _s_author_field = None

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.code is None:
            # the column default is only applied on insert, the code is needed before that
            self.code = generate_code()

    @classmethod
    def _s_column_names(cls) -> list[str]:
        """
        :return: the mapped column attribute names
        """
        return [attr.key for attr in cls.__mapper__.column_attrs]

    @classmethod
    def _s_column(cls, attr_name: str):
        """
        :return: the orm attribute for `attr_name` or None if it's not a mapped column
        """
        if attr_name not in cls._s_column_names():
            return None
        return getattr(cls, attr_name)

    def __str__(self):
        return f"<{self.__class__.__name__} {self.code}>"

    __repr__ = __str__
