import re
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

ACADEMIC_YEAR_PATTERN = re.compile(r"^\d{4}$")


class BaseEntityList(BaseModel):
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Update timestamp")


def validate_academic_year(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = str(value).strip()
    if not ACADEMIC_YEAR_PATTERN.match(value):
        raise ValueError("academic year must be a four digit year, e.g. '2025'")
    return value
