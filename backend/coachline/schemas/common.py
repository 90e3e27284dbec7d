"""
Shared field types.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AfterValidator

from coachline.services.dates import as_utc

Currency = Literal["RON", "EUR"]

# SQLite hands datetimes back naive; every timestamp we emit is UTC
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
