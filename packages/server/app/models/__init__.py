# SQLModel definitions — imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .board import Board  # noqa: F401
from .request import FeatureRequest  # noqa: F401
from .vote import Vote  # noqa: F401
from .comment import Comment  # noqa: F401
from .subscription import Subscription  # noqa: F401
