from __future__ import annotations

# Import routes to register them with the blog blueprint
# Each module imports `bp` from postpage.blueprints.blog
from postpage.blueprints.view.user import post  # noqa: E402,F401
