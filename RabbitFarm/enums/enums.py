from enum import Enum

# =====================================================
# 🐇 CONEJOS
# =====================================================
class GenderEnum(str, Enum):
    male = "male"
    female = "female"


class RabbitStatusEnum(str, Enum):
    active = "active"
    sold = "sold"
    dead = "dead"
    culled = "culled"


# =====================================================
# 🧱 JAULAS
# =====================================================
DEFAULT_LEVELS = ["A", "B", "C"]
DEFAULT_HUTCH_FEATURES = ["water bottle", "feeder"]
MAX_RABBITS_PER_HUTCH = 6


# =====================================================
# 🍼 CRÍAS
# =====================================================
class KitStatusEnum(str, Enum):
    alive = "alive"
    dead = "dead"
    weaned = "weaned"
    sold = "sold"


# =====================================================
# 💰 INGRESOS
# =====================================================
class EarningsTypeEnum(str, Enum):
    rabbit_sale = "rabbit_sale"
    urine_sale = "urine_sale"
    manure_sale = "manure_sale"
    other = "other"


class SaleTypeEnum(str, Enum):
    whole = "whole"
    processed = "processed"
    live = "live"


# =====================================================
# 🔔 ALERTAS
# =====================================================
class AlertTypeEnum(str, Enum):
    breeding = "breeding"
    birth = "birth"
    health = "health"
    general = "general"


class AlertSeverityEnum(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class AlertStatusEnum(str, Enum):
    pending = "pending"
    sent = "sent"
    completed = "completed"
    rejected = "rejected"
