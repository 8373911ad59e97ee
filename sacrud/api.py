"""
flask_restful API subclass exposing the resource actions over http

    GET     /<resource>          list
    POST    /<resource>          create
    GET     /<resource>/<code>   get
    PUT     /<resource>/<code>   update
    PATCH   /<resource>/<code>   update
    DELETE  /<resource>/<code>   remove
    GET     /query               declared operations and types
    POST    /query               {"operation": .., "variables": {..}}

The acting identity is read from `flask.g.actor`, it is set by the authentication layer of the app.
"""
from functools import wraps
from http import HTTPStatus
from typing import Any, Optional
import werkzeug
from flask import g, request
from flask_restful import Api as FRApiBase
from flask_restful import Resource, abort
import sacrud
from .errors import GenericError, ResourceError, ValidationError
from .query import QuerySurface


def current_actor() -> Optional[str]:
    """
    :return: the code of the acting user or None
    """
    return getattr(g, "actor", None)


def json_body() -> dict:
    """
    :return: the decoded request body, {} if it's empty
    """
    data = request.get_json(force=True, silent=True)
    if data is None:
        if request.get_data():
            raise ValidationError("Invalid JSON body")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("The request body should be a JSON object")
    return data


def http_method_decorator(fun):
    """Decorator for the exposed http methods
    - convert all exceptions to a JSON serializable error
    - roll back the session when something went wrong

    :param fun:
    :return: wrapped fun
    """

    @wraps(fun)
    def method_wrapper(*args, **kwargs):
        """Wrap the method and perform error handling
        :param *args:
        :param **kwargs:
        :return: result of the wrapped method
        """
        try:
            return fun(*args, **kwargs)

        except ResourceError as exc:
            status_code = exc.status_code
            error = exc

        except werkzeug.exceptions.HTTPException as exc:
            status_code = exc.code
            error = None
            message = exc.description

        except Exception as exc:  # pylint: disable=broad-except
            sacrud.log.exception(exc)
            error = GenericError(str(exc))
            status_code = error.status_code

        sacrud.DB.session.rollback()
        if error is not None:
            errors = dict(title=error.__class__.__name__, detail=error.message, code=status_code, msgCode=error.msg_code)
        else:
            errors = dict(title=HTTPStatus(status_code).phrase, detail=message, code=status_code)
        sacrud.log.info(f"{request.method} {request.path}: {status_code} {errors['detail']}")
        abort(status_code, errors=[errors])

    return method_wrapper


class ResourceActionsAPI(Resource):
    """
    Base class of the exposed resources, `actions` is set by `SACRUDAPI.expose_resource`
    """

    actions = None
    method_decorators = [http_method_decorator]


class CollectionAPI(ResourceActionsAPI):
    def get(self):
        return self.actions.list(request.args.to_dict(), current_actor())

    def post(self):
        return self.actions.create(json_body(), current_actor()), HTTPStatus.CREATED.value


class InstanceAPI(ResourceActionsAPI):
    def get(self, code):
        return self.actions.get(code, current_actor())

    def put(self, code):
        return self.actions.update(code, json_body(), current_actor())

    def patch(self, code):
        return self.actions.update(code, json_body(), current_actor())

    def delete(self, code):
        return self.actions.remove(code, current_actor())


class QueryAPI(Resource):
    surface: QuerySurface = None
    method_decorators = [http_method_decorator]

    def get(self):
        return {"operations": sorted(self.surface.operations()), "types": self.surface.types()}

    def post(self):
        body = json_body()
        operation = body.get("operation")
        if not operation:
            raise ValidationError('"operation" is required')
        return {"data": self.surface.execute(operation, body.get("variables"), current_actor())}


class SACRUDAPI(FRApiBase):
    """
    Subclass of the flask_restful Api class where we add the expose_resource method
    """

    def __init__(self, *args, **kwargs) -> None:
        self.registry = kwargs.pop("registry", None)
        super().__init__(*args, **kwargs)

    def expose_resource(self, actions, url_prefix: str = "") -> None:
        """This method creates the url endpoints for a ResourceActions instance
        :param actions: ResourceActions instance that we would like to expose
        :param url_prefix: e.g. "/api"

        creates classes of the form

        class users_API(CollectionAPI):
            actions = users_actions

        and adds them as resources to /users and /users/<code>
        """
        url = f"{url_prefix}/{actions.name}"
        properties = {"actions": actions}
        collection_api = type(f"{actions.name}_API", (CollectionAPI,), properties)
        instance_api = type(f"{actions.name}_instance_API", (InstanceAPI,), properties)
        endpoint = f"{url_prefix.strip('/')}_{actions.name}".lstrip("_").replace("/", "_")
        sacrud.log.info(f"Exposing {actions.name} on {url}")
        self.add_resource(collection_api, url, endpoint=endpoint)
        self.add_resource(instance_api, url + "/<string:code>", endpoint=endpoint + "_instance")

    def expose_query(self, surface: Optional[QuerySurface] = None, url: str = "/query") -> QuerySurface:
        """
        :param surface: QuerySurface, defaults to one covering the registry
        :return: the exposed surface
        """
        if surface is None:
            surface = QuerySurface(self.registry)
        query_api = type("query_API", (QueryAPI,), {"surface": surface})
        self.add_resource(query_api, url, endpoint=url.strip("/").replace("/", "_") or "query")
        return surface

    def expose_registry(self, registry: Any = None, url_prefix: str = "") -> None:
        """
        Expose all registered resources and the query surface
        """
        if registry is not None:
            self.registry = registry
        for actions in self.registry:
            self.expose_resource(actions, url_prefix)
        self.expose_query(url=f"{url_prefix}/query")
