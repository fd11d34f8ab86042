from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# Import all model modules so Base.metadata is fully populated for create_all().
from tagcatalog.db.models import image_tags as _image_tags  # noqa: F401,E402
from tagcatalog.db.models import images as _images  # noqa: F401,E402
from tagcatalog.db.models import tags as _tags  # noqa: F401,E402
