"""
HTTP layer for the library catalog.

Routers:
- catalog_web.auth_routes (signup, login, session restore)
- catalog_web.user_routes
- catalog_web.book_routes

Use catalog_web.app.create_app() to build a mounted application.
"""
