"""
Root pytest configuration for routecontract tests.

Provides:
- A sample users API route table built from pydantic models
- Router/app/client fixtures wired through create_app()
"""

import sys
from pathlib import Path

# Add repo root so `import routecontract` works without installing
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from types import SimpleNamespace
from typing import List, Optional

import pytest
from pydantic import BaseModel, ConfigDict


# =============================================================================
# Sample API
# =============================================================================

class UserPath(BaseModel):
    id: int


class User(BaseModel):
    id: int
    name: str


class UserList(BaseModel):
    users: List[User]
    total: int


class UserQuery(BaseModel):
    model_config = ConfigDict(extra='forbid')
    tags: List[str] = []
    page: int = 1


class NewUser(BaseModel):
    name: str
    email: Optional[str] = None


class AuthHeader(BaseModel):
    authorization: str


class NotFound(BaseModel):
    message: str


USER_ROUTES = {
    "/users/:id": {
        "get": {
            "request": {"path": UserPath},
            "response": {200: User, 404: NotFound, "default": User},
        },
        "delete": {
            "request": {"path": UserPath},
            "response": {404: NotFound},
        },
    },
    "/users": {
        "get": {
            "request": {"query": UserQuery},
            "response": {200: UserList, "default": UserList},
        },
        "post": {
            "request": {"body": NewUser, "header": AuthHeader},
            "response": {"201": User},
        },
    },
    "/health": {
        "get": {
            "response": {200: dict},
        },
    },
}


@pytest.fixture
def models():
    """The pydantic models behind USER_ROUTES."""
    return SimpleNamespace(
        UserPath=UserPath,
        User=User,
        UserList=UserList,
        UserQuery=UserQuery,
        NewUser=NewUser,
        AuthHeader=AuthHeader,
        NotFound=NotFound,
    )


@pytest.fixture
def route_table():
    """Immutable route table for the sample users API."""
    from routecontract.contracts import build_route_table
    return build_route_table(USER_ROUTES)


@pytest.fixture
def router_config():
    """Router config with response validation on and the default error handler."""
    from routecontract.contracts import RouterConfig
    return RouterConfig(attach_response_validator=True, skip_request_body_validation=False)


@pytest.fixture
def make_app():
    """Build a test Flask app around a configured router."""
    from routecontract import create_app

    def _make_app(*routers, url_prefix=None):
        app = create_app(*routers, url_prefix=url_prefix)
        app.config['TESTING'] = True
        return app

    return _make_app
