from .db import db
from .migrate import migrate
from .jwt import jwt
from .ma import ma
from .channel import channel

__all__ = ["db", "migrate", "jwt", "ma", "channel"]
