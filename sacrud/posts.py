"""
Posts: records authored by a user

The `author` field holds the code of a user, it's replaced by the serialized user when the post is returned.
`list` supports `filter=my` (the posts of the acting user) and `author=<user code>`.
"""
import datetime
from typing import Any, Optional
from sacrud import DB
from .actions import ResourceActions
from .base import ResourceBase
from .schemas import ResourceFields, ResourceSchema


class Post(ResourceBase, DB.Model):
    """
    description: Post record
    """

    __tablename__ = "posts"

    title = DB.Column(DB.String(255), nullable=False)
    content = DB.Column(DB.Text)
    author = DB.Column(DB.String(64), index=True)
    votes = DB.Column(DB.Integer, default=0)

    _s_author_field = "author"


class PostSchema(ResourceSchema):
    code: str
    title: Optional[str] = None
    content: Optional[str] = None
    author: Any = None
    votes: Optional[int] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class PostFields(ResourceFields):
    title: Optional[str] = None
    content: Optional[str] = None
    votes: Optional[int] = None


class PostCreate(PostFields):
    title: str
    author: Optional[str] = None


class PostActions(ResourceActions):
    name = "posts"
    singular = "post"
    collection = Post
    schema = PostSchema
    create_fields = PostCreate
    update_fields = PostFields
    relations = {"author": "users"}
    not_found_code = "app:PostNotFound"

    def prepare(self, record, data, actor):
        if record.author is None:
            record.author = actor
