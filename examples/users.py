"""\
User API
========

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

A small user API showing what Ludmila can do: a controller backed by
an in-memory repository, a role-checking contextual middleware and a
schema describing the endpoints as plain data.

Run it with ``python examples/users.py`` and try::

    curl -H "X-User: 1" localhost:9001/api/users/current-user
    curl -H "X-User: 1" -H "Content-Type: application/json" \\
        -d '{"email": "ada@example.com", "company_name": "acme", \\
        "role": "user"}' localhost:9001/api/users/add-new-user
"""

from ludmila import ApiRepository
from ludmila import ApiSchema
from ludmila import ApplicationError
from ludmila import Controller
from ludmila import Ludmila
from ludmila import Priority
from ludmila import Proceed
from ludmila import Reject

ADMIN = "admin"
USER = "user"

USERS = {
    1: {"id": 1, "name": "Ada", "client": "acme", "role": ADMIN},
    2: {"id": 2, "name": "Grace", "client": "acme", "role": USER},
}


class UserRepository(ApiRepository):

    def find(self, user_id):
        return self.models.get(user_id)

    def add(self, values):
        emails = {user.get("email") for user in self.models.values()}
        if values["email"] in emails:
            raise ApplicationError.conflict("User already exists")
        user_id = max(self.models, default=0) + 1
        self.models[user_id] = {"id": user_id, **values}
        return self.models[user_id]


class UserController(Controller):

    def __init__(self, context):
        super().__init__(context)
        self.users = UserRepository(context, USERS)

    def get_current_user(self):
        self.respond_ok(self.context.user)

    def get_user(self, user_id):
        user = self.users.find(user_id)
        if user is None:
            raise ApplicationError.not_found(f"User {user_id} not found")
        return user

    def add_new_user(self, body):
        self.logger.info("Adding user", body["email"])
        self.respond_json(self.users.add(body), 201)


def attach_user(request, response, next):
    """Stand-in authentication: trust the ``X-User`` header."""
    user_id = request.headers.get("X-User")
    if user_id and user_id.isdigit():
        request.user = USERS.get(int(user_id))
    next()


def secured_route(context, roles):
    if context.user is None:
        return Reject(ApplicationError.unauthorized())
    if roles and context.user["role"] not in roles:
        return Reject(ApplicationError.forbidden("Insufficient role"))
    return Proceed()


get_current_user = {
    "path": "current-user",
    "verb": "GET",
    "handler": {"controller": UserController, "method": "get_current_user"},
    "middleware": {"secured_route": [ADMIN, USER]},
}

get_user = {
    "path": "<int:id>",
    "verb": "GET",
    "handler": {
        "controller": UserController,
        "method": "get_user",
        "arguments": [":id"],
    },
    "middleware": {"secured_route": [ADMIN]},
}

add_new_user = {
    "path": "add-new-user",
    "verb": "POST",
    "handler": {
        "controller": UserController,
        "method": "add_new_user",
        "arguments": ["request:body"],
    },
    "middleware": {"secured_route": [ADMIN]},
    "request": {
        "body": {
            "email": str,
            "company_name": str,
            "role": str,
            "first_name": (str | None, None),
            "last_name": (str | None, None),
        }
    },
}

user_api = ApiSchema(
    name="User",
    url="/users",
    endpoints=[get_current_user, get_user, add_new_user],
)

app = Ludmila(__name__)
app.config["API_PREFIX"] = "/api"
app.use(attach_user)
app.middleware_registry.register_contextual(
    "secured_route", secured_route, Priority.HIGHEST
)
user_api.register(app)


if __name__ == "__main__":
    app.run(debug=True)
