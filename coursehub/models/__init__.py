# coursehub/models/__init__.py
from coursehub.db.base import Base  # noqa: F401

# order matters due to FKs
from . import user               # noqa: F401
from . import course             # noqa: F401
from . import cohort             # noqa: F401
from . import course_allocation  # noqa: F401
from . import activity_tracker   # noqa: F401
