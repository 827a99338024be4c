# quoteflow/models/enums/entity_type.py
import enum

class EntityType(str, enum.Enum):
    quote = "quote"
    job = "job"
