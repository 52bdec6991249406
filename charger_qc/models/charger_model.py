# ========================= models/charger_model.py =========================
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ── enums (values are the strings stored in documents) ─────────────────
class CheckStatus(str, Enum):
    PENDING = "Pending"
    PASS = "Pass"
    FAIL = "Fail"


class ChargerStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    PASSED = "Passed"
    FAILED = "Failed"


# ── one checklist entry ────────────────────────────────────────────────
class Check(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    status: CheckStatus = CheckStatus.PENDING


# ── a charger document as delivered by the record store ────────────────
class ChargerRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    serial_number: str = Field(alias="serialNumber")
    model: str
    created_at: datetime = Field(alias="createdAt")
    status: ChargerStatus = ChargerStatus.PENDING
    checks: Tuple[Check, ...] = Field(min_length=1)

    @field_validator("checks")
    @classmethod
    def _unique_check_ids(cls, v: Tuple[Check, ...]) -> Tuple[Check, ...]:
        ids = [c.id for c in v]
        if len(ids) != len(set(ids)):
            raise ValueError(f"duplicate check ids: {ids}")
        return v

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "ChargerRecord":
        return cls.model_validate({**data, "id": doc_id})

    def to_document(self) -> Dict[str, Any]:
        """Store payload: everything except the store-assigned id."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id"})


# ── inbound payloads ───────────────────────────────────────────────────
class ChargerCreateIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    serial_number: str = Field("", alias="serialNumber")
    model: str = ""

    @field_validator("serial_number", "model")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()


class CheckUpdateIn(BaseModel):
    status: CheckStatus


# ── outbound payloads ──────────────────────────────────────────────────
class ChargerOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    serial_number: str = Field(alias="serialNumber")
    model: str
    created_at: datetime = Field(alias="createdAt")
    status: ChargerStatus
    checks: List[Check]
    is_updating: bool = Field(False, alias="isUpdating")


class ChargerListOut(BaseModel):
    chargers: List[ChargerOut]
    error: Optional[str] = None


class LabelOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    qr_code_url: str = Field(alias="qrCodeUrl")
