# Overview: Flask extension instances and accessors for app-scoped components.

from flask import current_app
from flask_sqlalchemy import SQLAlchemy

# Rows handed out by Storage are read after its lock is released; they must
# stay loaded across the commit that ends each operation.
db = SQLAlchemy(session_options={"expire_on_commit": False})


def get_storage():
    """The Storage built by create_app() for the current application."""
    return current_app.extensions["storage"]


def get_sessions():
    """The SessionStore built by create_app() for the current application."""
    return current_app.extensions["sessions"]
