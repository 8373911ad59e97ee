# users.py: the users resource
#
# pylint: disable=too-few-public-methods,line-too-long
#
"""
Users

Only the fields declared in UserSchema are serialized, the secrets and tokens
(password, passwordLessToken, resetPasswordToken, verifyToken ..) never leave the server.

A new user gets a random placeholder password, doesn't need to verify its e-mail address
and receives a mail with a password reset link.
"""
import datetime
import secrets
from typing import Any, Dict, List, Optional
from pydantic import field_validator
from werkzeug.security import generate_password_hash
import sacrud
from sacrud import DB
from .actions import ResourceActions
from .base import ResourceBase, utc_now
from .config import get_config, get_int_config
from .errors import SideEffectFailure
from .events import EventKind
from .mail import Mailer
from .schemas import ResourceFields, ResourceSchema

RESET_MAIL_TEMPLATE = "mail/password_reset.html"
RESET_MAIL_SUBJECT = "mailSubjectResetPassword"


class User(ResourceBase, DB.Model):
    """
    description: User record
    """

    __tablename__ = "users"

    full_name = DB.Column(DB.String(255))
    email = DB.Column(DB.String(255), unique=True, nullable=False)
    username = DB.Column(DB.String(255), unique=True)
    password = DB.Column(DB.String(255))
    password_less = DB.Column(DB.Boolean, default=False)
    password_less_token = DB.Column(DB.String(255))
    provider = DB.Column(DB.String(64), default="local")
    profile = DB.Column(DB.JSON)
    social_links = DB.Column(DB.JSON)
    roles = DB.Column(DB.JSON, default=lambda: ["user"])
    reset_password_token = DB.Column(DB.String(255))
    reset_password_expires = DB.Column(DB.DateTime)
    verified = DB.Column(DB.Boolean, default=False)
    verify_token = DB.Column(DB.String(255))
    api_key = DB.Column(DB.String(255), unique=True)
    last_login = DB.Column(DB.DateTime)
    locale = DB.Column(DB.String(16))
    status = DB.Column(DB.Integer, default=1)


class UserSchema(ResourceSchema):
    code: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    provider: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None
    social_links: Optional[Dict[str, Any]] = None
    roles: Optional[List[str]] = None
    verified: Optional[bool] = None
    api_key: Optional[str] = None
    last_login: Optional[datetime.datetime] = None
    locale: Optional[str] = None
    status: Optional[int] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        raise ValueError(f"invalid e-mail address {value!r}")
    return value


class UserFields(ResourceFields):
    """
    Fields accepted by update
    """

    full_name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    password_less: Optional[bool] = None
    password_less_token: Optional[str] = None
    provider: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None
    social_links: Optional[Dict[str, Any]] = None
    roles: Optional[List[str]] = None
    reset_password_token: Optional[str] = None
    reset_password_expires: Optional[datetime.datetime] = None
    verified: Optional[bool] = None
    verify_token: Optional[str] = None
    api_key: Optional[str] = None
    last_login: Optional[datetime.datetime] = None
    locale: Optional[str] = None
    status: Optional[int] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        return _check_email(value)


class UserCreate(ResourceFields):
    """
    Fields accepted by create, the secrets are generated
    """

    email: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    provider: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None
    social_links: Optional[Dict[str, Any]] = None
    roles: Optional[List[str]] = None
    verify_token: Optional[str] = None
    api_key: Optional[str] = None
    last_login: Optional[datetime.datetime] = None
    locale: Optional[str] = None
    status: Optional[int] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        return _check_email(value)


class UserActions(ResourceActions):
    """
    :param mailer: Mailer delivering the password reset mail, defaults to `Mailer.from_config()`
    """

    name = "users"
    singular = "user"
    collection = User
    schema = UserSchema
    create_fields = UserCreate
    update_fields = UserFields
    not_found_code = "app:UserNotFound"

    def __init__(self, *args, mailer: Optional[Mailer] = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.mailer = mailer

    def assign(self, record, data):
        data = dict(data)
        if "password" in data:
            data["password"] = generate_password_hash(data["password"])
        super().assign(record, data)

    def prepare(self, record, data, actor):
        # the user logs in with a social account or sets a password with the reset link
        record.password = generate_password_hash(secrets.token_hex(25))
        record.password_less = True
        record.verified = True
        record.reset_password_token = secrets.token_hex(25)
        ttl = get_int_config("RESET_TOKEN_TTL", 24 * 3600)
        record.reset_password_expires = utc_now() + datetime.timedelta(seconds=ttl)

    def post_create(self, json, record, actor):
        mailer = self.mailer or Mailer.from_config()
        recipient = record.email
        ttl = get_int_config("RESET_TOKEN_TTL", 24 * 3600)
        variables = {
            "name": record.full_name,
            "reset_link": get_config("APP_URL", "") + "reset/" + record.reset_password_token,
            "app_name": get_config("APP_NAME", "sacrud"),
            "valid_hours": ttl // 3600,
        }

        def send_reset_mail():
            try:
                html = mailer.render(RESET_MAIL_TEMPLATE, variables)
            except Exception as exc:  # pylint: disable=broad-except
                raise SideEffectFailure("UnableToRenderEmail", f"Unable to render e-mail! {exc}")
            try:
                mailer.send(recipient, RESET_MAIL_SUBJECT, html)
            except Exception as exc:  # pylint: disable=broad-except
                sacrud.log.error(f"Unable to send e-mail to {recipient}: {exc}")
                raise SideEffectFailure("UnableToSendEmail", str(exc))
            self.notify(EventKind.INFO, "emailSentPasswordResetLink", actor)

        return send_reset_mail
