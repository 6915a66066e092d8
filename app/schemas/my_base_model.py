import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class CustomBaseModel(BaseModel):
    """Custom base model for response schemas.
    - read attributes straight from ORM rows
    - coerce simple fields, fall back to the field default when the value is invalid
    """

    model_config = ConfigDict(from_attributes=True)

    def __init__(self, **data: Any) -> None:
        for attr, value in data.items():
            field = self.__class__.model_fields.get(attr)
            if field is None or value is None:
                continue
            attr_type = field.annotation
            # process simple type
            if attr_type in (int, float, str, bool):
                try:  # try to convert the value to the type of the attribute
                    data[attr] = attr_type(value)
                except (TypeError, ValueError):
                    logger.warning("Invalid value for key %s, using default", attr)
                    data[attr] = field.default
        super().__init__(**data)

    @classmethod
    def from_record(cls, record: Any):
        if isinstance(record, dict):
            return cls(**record)
        return cls.model_validate(record)
