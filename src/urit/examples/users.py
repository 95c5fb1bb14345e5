"""
Users API dispatching on URI templates.

Every request goes through one Starlette route; the handler picks the first
template that matches the request path and hands it the extracted path vars.

Run with: python -m urit.examples.users
"""

import logging

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from urit.path_vars import PathVars
from urit.template import Template

logger = logging.getLogger(__name__)

USERS = {
    "66971add3abcef545e64400b": {
        "_id": "66971add3abcef545e64400b",
        "name": "Dug Somebody",
        "username": "dug",
    },
    "66971add3abcef545e641111": {
        "_id": "66971add3abcef545e641111",
        "name": "Jerry",
        "username": "jerry",
    },
}

users_template = Template.parse("/users")
user_template = users_template.sub("/{id:[0-9a-f]{24}}")


async def get_users(request: Request, vars: PathVars) -> Response:
    return JSONResponse(list(USERS.values()))


async def get_user(request: Request, vars: PathVars) -> Response:
    user = USERS.get(vars["id"])
    if user is None:
        return JSONResponse({"error": "user not found"}, status_code=404)
    return JSONResponse(user)


ROUTES = [
    (users_template, get_users),
    (user_template, get_user),
]


async def dispatch(request: Request) -> Response:
    for template, handler in ROUTES:
        vars = template.matches_request(request)
        if vars is not None:
            logger.info(f"{request.method} {request.url.path} -> {template}")
            return await handler(request, vars)
    return JSONResponse({"error": "not found"}, status_code=404)


app = Starlette(routes=[Route("/{path:path}", dispatch, methods=["GET"])])


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=3009)
