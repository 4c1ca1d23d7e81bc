"""
HTTP surface — FastAPI app over a Services instance.

    app = create_app(Services.from_settings(load_settings()))
    uvicorn.run(app)
"""

from __future__ import annotations

from naaz.api._app import create_app, register_error_handlers
from naaz.api._deps import current_scope, get_services

__all__ = ("create_app", "register_error_handlers", "current_scope", "get_services")
