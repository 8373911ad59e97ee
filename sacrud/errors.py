# Exception Handlers
#
# The application loglevel determines the level of detail shown to the user.
# If set to debug, too much sensitive info might be shown !
#
# The exceptions will be caught in http_method_decorator and formatted, for example:
# {
#      "title": "NotFoundError",
#      "detail": "app:UserNotFound",
#      "code": 404
# }
#
import traceback
from http import HTTPStatus
from typing import Optional
from sqlalchemy.exc import DontWrapMixin
import sacrud
from .config import is_debug

HIDDEN_LOG = "(debug logging disabled)"


class ResourceError(Exception, DontWrapMixin):
    """
    Base class for the errors raised by the resource actions
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    message = ""
    msg_code = None

    def __str__(self):
        return self.message


class NotFoundError(ResourceError):
    """
    This exception is raised when no record exists for a code
    """

    status_code = HTTPStatus.NOT_FOUND.value

    def __init__(self, code: Optional[str] = None, msg_code: str = "NotFound", status_code=HTTPStatus.NOT_FOUND.value):
        """
        :param code: the code that was looked up
        :param msg_code: message code returned to the client, e.g. "app:UserNotFound"
        :param status_code: HTTP Status code
        """
        ResourceError.__init__(self, msg_code)
        self.code = code
        self.msg_code = msg_code
        self.status_code = status_code
        self.message = msg_code
        sacrud.log.info("Not found: %s (%s)", code, msg_code)


class DuplicateFieldError(ResourceError):
    """
    This exception is raised when a unique field is already taken by another record
    `field` is None when the conflicting field could not be determined
    """

    status_code = HTTPStatus.BAD_REQUEST.value

    def __init__(self, field: Optional[str], message: str, status_code=HTTPStatus.BAD_REQUEST.value):
        ResourceError.__init__(self, message)
        self.field = field
        self.status_code = status_code
        self.message = message
        self.msg_code = f"DuplicateFieldError: {field}" if field else "DuplicateFieldError"
        sacrud.log.warning("DuplicateFieldError: %s", message)


class ValidationError(ResourceError):
    """
    This exception is raised when invalid input has been detected (client side input)
    Always send back the message to the client in the response
    """

    status_code = HTTPStatus.BAD_REQUEST.value

    def __init__(self, message="", status_code=HTTPStatus.BAD_REQUEST.value):
        ResourceError.__init__(self, message)
        self.status_code = status_code
        self.message = "Validation Error: " + message
        self.msg_code = "ValidationError"
        sacrud.log.warning("ValidationError: %s", message)


class GenericError(ResourceError):
    """
    This exception is raised when an unexpected error has been detected
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value

    def __init__(self, message, status_code=HTTPStatus.INTERNAL_SERVER_ERROR.value):
        ResourceError.__init__(self, message)
        self.status_code = status_code
        self.msg_code = "GenericError"
        sacrud.log.error("Generic Error: %s", message)
        if is_debug():
            sacrud.log.debug(traceback.format_exc(120))
            self.message = "Generic Error: " + str(message)
        else:
            self.message = "Generic Error: " + HIDDEN_LOG


class SideEffectFailure(ResourceError):
    """
    Raised by best-effort post-action steps (mail delivery etc.)
    These never reach the caller: the action turns them into an "error" change event
    """

    def __init__(self, msg_code: str, message: str = ""):
        ResourceError.__init__(self, message or msg_code)
        self.msg_code = msg_code
        self.message = message or msg_code


class UniqueConstraintViolation(Exception):
    """
    Raised by the collection accessor when a write violates a unique index
    `detail` holds the raw database message, it is translated to a DuplicateFieldError by the actions
    """

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail
