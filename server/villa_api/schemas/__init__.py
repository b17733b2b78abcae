"""Pydantic schemas for request/response validation."""

from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .content import *  # noqa: F403
from .health import *  # noqa: F403
from .inventory import *  # noqa: F403
from .marketing import *  # noqa: F403
from .messaging import *  # noqa: F403
from .user import *  # noqa: F403
