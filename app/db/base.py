# app/db/base.py
from app.db.base_class import Base  # noqa: F401

# Load every model module so its table is registered on Base.metadata
import app.models.user            # noqa: F401
import app.models.course          # noqa: F401
import app.models.enrollment      # noqa: F401
import app.models.quiz            # noqa: F401
import app.models.certificate     # noqa: F401
import app.models.outbox          # noqa: F401

__all__ = ["Base"]
