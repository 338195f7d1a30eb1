# pqmonitor/schema.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class PQEvent(BaseModel):
    id: str
    timestamp: datetime
    event_type: str  # "voltage_dip" | "voltage_swell" | ...

    is_mother_event: bool = False
    is_child_event: bool = False
    parent_event_id: Optional[str] = None
    false_event: bool = False

    sarfi_70: Optional[float] = None
    magnitude: Optional[float] = None   # remaining voltage, %
    duration: Optional[float] = None    # ms

    substation_id: Optional[str] = None
    meter_id: Optional[str] = None
    # meter attributes, flattened
    oc: Optional[str] = None
    location: Optional[str] = None
    voltage_level: Optional[str] = None


class Substation(BaseModel):
    id: str
    code: str = ""
    name: Optional[str] = None
    voltage_level: Optional[str] = None
    region: Optional[str] = None
