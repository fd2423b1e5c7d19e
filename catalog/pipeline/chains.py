"""The declared pipeline for every route. Order matters; see steps.py."""

from __future__ import annotations

from catalog.services import books, users

from .executor import Pipeline
from .steps import (
    check_login_password,
    confirm_password,
    detect_email_change,
    detect_password_change,
    detect_username_change,
    find_user_by_email,
    hash_password,
    require_path_owner,
    require_path_owner_to_delete,
    require_token_secret,
    validate_book_title,
    validate_email,
    validate_password,
    validate_username,
    verify_token,
)

SIGNUP = Pipeline(
    "signup",
    [
        require_token_secret,
        validate_username(),
        validate_email(),
        validate_password(),
        hash_password,
    ],
    users.signup,
)

LOGIN = Pipeline(
    "login",
    [validate_email(), find_user_by_email, check_login_password],
    users.login,
)

VERIFY_LOGIN = Pipeline("verify_login", [verify_token], users.verify_login)

LIST_USERS = Pipeline("list_users", [], users.list_users)
GET_USER = Pipeline("get_user", [], users.get_user)
GET_ACCOUNT = Pipeline("get_account", [], users.get_account)
GET_USER_BOOKS = Pipeline("get_user_books", [], users.get_user_books)

UPDATE_USER = Pipeline(
    "update_user",
    [
        verify_token,
        require_path_owner,
        validate_username(required=False),
        validate_email(required=False),
        validate_password(required=False),
        detect_username_change,
        detect_email_change,
        detect_password_change,
        hash_password,
    ],
    users.update_user,
)

DELETE_USER = Pipeline(
    "delete_user",
    [verify_token, require_path_owner_to_delete, confirm_password],
    users.delete_user,
)

LIST_BOOKS = Pipeline("list_books", [], books.list_books)
CREATE_BOOKS = Pipeline("create_books", [], books.create_books)
ADD_BOOK = Pipeline("add_book", [verify_token, validate_book_title], books.add_to_library)
REMOVE_BOOK = Pipeline("remove_book", [verify_token, validate_book_title], books.remove_from_library)
