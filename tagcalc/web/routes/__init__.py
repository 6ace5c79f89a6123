"""TagCalc Web Route Modules.

Each module exports a `router` object (APIRouter instance) that the app
factory in tagcalc.web.app includes.

Usage:
    from tagcalc.web.routes import variants
    app.include_router(variants.router)
"""

from tagcalc.web.routes import health, variants

__all__ = ["health", "variants"]
