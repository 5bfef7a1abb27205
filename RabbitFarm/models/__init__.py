# models/__init__.py
from utils.db import Base  # re-export
from .user import User, TokenBlacklist
from .password_reset import PasswordReset
from .farm import Farm, Row
from .hutch import Hutch, HutchRabbitHistory
from .rabbit import Rabbit, RemovalRecord
from .breeding import BreedingRecord, KitRecord
from .earnings import EarningsRecord
from .alert import Alert, Notification
