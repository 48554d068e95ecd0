"""
Blog service - accounts, users, categories, posts, comments and tags.

Run:
    RESTPIPE_DATABASE_URL=sqlite+aiosqlite:///blog.db uvicorn main:app

Routes:
    POST /auth                          -> {"token": ...}
    GET|POST /accounts, /users, ...     -> list / add
    GET|PUT|DELETE /posts/{id}, ...     -> get / edit / destroy
"""

from restpipe import (
    ABSENT,
    SQLAlchemyPersistence,
    authenticate,
    before_convert,
    before_query,
    create_app,
    get_session_maker,
    get_settings,
    login,
    require_active,
    require_owner_or_type,
    require_self_or_type,
    require_type,
    resource,
    set_field_from_principal,
)

from models import Account, Category, Comment, Post, Tag, User, relations

settings = get_settings()
persistence = SQLAlchemyPersistence(get_session_maker())

auth = authenticate(settings.JWT_SECRET, Account, persistence)
is_admin = require_type("admin")
set_writer = set_field_from_principal("writer_id")

# only admins see and manage accounts, and passwords never leave the service
accounts = resource(Account, persistence, {
    "relations": relations,
    "defaults": {
        "converter": {"password": lambda _: ABSENT},
        "actions": [before_query([auth, is_admin])],
    },
})

users = resource(User, persistence, {
    "relations": relations,
    "edit": {"actions": [before_query([auth, require_self_or_type("admin")])]},
    "destroy": {"actions": [before_query([auth, is_admin])]},
})

admin_writes = {
    "relations": relations,
    "add": {"actions": [before_query([auth, is_admin])]},
    "edit": {"actions": [before_query([auth, is_admin])]},
    "destroy": {"actions": [before_query([auth, is_admin])]},
}
categories = resource(Category, persistence, admin_writes)
tags = resource(Tag, persistence, admin_writes)


def writer_owned(model):
    """Anyone authenticated can add; only admins or the writer can change."""
    is_writer = require_owner_or_type(persistence, model, "writer_id")
    return {
        "relations": relations,
        "add": {"actions": [before_query([auth, set_writer])]},
        "edit": {"actions": [before_query([auth, is_writer, set_writer])]},
        "destroy": {"actions": [before_query([auth, is_writer])]},
    }


posts = resource(Post, persistence, writer_owned(Post))
comments = resource(Comment, persistence, writer_owned(Comment))

auth_route = login(settings.JWT_SECRET, Account, persistence, ["email", "password"], {
    "uri": "/auth",
    "actions": [before_convert(require_active())],
})

app = create_app(
    [auth_route, accounts, users, categories, posts, comments, tags],
    service_name="blog",
)
