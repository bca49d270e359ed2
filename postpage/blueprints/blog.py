from __future__ import annotations

from flask import Blueprint

bp = Blueprint("blog", __name__)

# Import view routes
import postpage.blueprints.view.user  # noqa: E402,F401
