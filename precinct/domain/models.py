from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic import Field as PydanticField
from pydantic.alias_generators import to_camel
from sqlalchemy import CheckConstraint, ForeignKeyConstraint, Index, UniqueConstraint
from sqlmodel import Field, SQLModel

T = TypeVar("T")

DateStr = Annotated[str, PydanticField(pattern=r"^\d{4}-\d{2}-\d{2}$")]
DateTimeStr = Annotated[str, PydanticField(pattern=r"^\d{4}-\d{2}-\d{2}( \d{2}:\d{2}:\d{2})?$")]

# bcrypt only hashes the first 72 bytes and rejects longer input.
PASSWORD_MAX_BYTES = 72


def _within_bcrypt_limit(value: str) -> str:
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"password must not exceed {PASSWORD_MAX_BYTES} bytes when UTF-8 encoded")
    return value


PasswordStr = Annotated[str, PydanticField(min_length=6, max_length=64), AfterValidator(_within_bcrypt_limit)]


def now_utc() -> datetime:
    return datetime.now(UTC)


class OfficerStatus(StrEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    LOCKED = "LOCKED"


class CaseStatus(StrEnum):
    IN_PROGRESS = "在办"
    CLOSED = "已结"
    TRANSFERRED = "移交"
    ARCHIVED = "存档"


class Officer(SQLModel, table=True):
    __tablename__ = "police_officers"
    __table_args__ = (UniqueConstraint("badge_no", name="uq_police_officers_badge_no"),)

    id: int | None = Field(default=None, primary_key=True)
    badge_no: str | None = Field(default=None, max_length=50, index=True)
    name: str = Field(max_length=100, index=True)
    phone: str | None = Field(default=None, max_length=50)
    password_hash: str
    status: OfficerStatus = Field(default=OfficerStatus.ACTIVE, index=True)
    is_active: bool = Field(default=True)
    remark: str | None = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Role(SQLModel, table=True):
    __tablename__ = "roles"

    id: int | None = Field(default=None, primary_key=True)
    code: str = Field(max_length=50, index=True, unique=True)
    name: str = Field(max_length=100)


class Permission(SQLModel, table=True):
    __tablename__ = "permissions"

    id: int | None = Field(default=None, primary_key=True)
    code: str = Field(max_length=100, index=True, unique=True)
    name: str | None = Field(default=None, max_length=100)


class OfficerRole(SQLModel, table=True):
    __tablename__ = "officer_roles"
    __table_args__ = (
        ForeignKeyConstraint(["officer_id"], ["police_officers.id"], ondelete="CASCADE"),
        ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        Index("ix_officer_roles_role_id", "role_id"),
    )

    officer_id: int = Field(primary_key=True)
    role_id: int = Field(primary_key=True)


class RolePermission(SQLModel, table=True):
    __tablename__ = "role_permissions"
    __table_args__ = (
        ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        ForeignKeyConstraint(["permission_id"], ["permissions.id"], ondelete="CASCADE"),
    )

    role_id: int = Field(primary_key=True)
    permission_id: int = Field(primary_key=True)


class DictItem(SQLModel, table=True):
    __tablename__ = "dict_items"
    __table_args__ = (UniqueConstraint("dict_type", "code", name="uq_dict_items_type_code"),)

    id: int | None = Field(default=None, primary_key=True)
    dict_type: str = Field(max_length=50, index=True)
    code: str = Field(max_length=50)
    label: str = Field(max_length=100)
    sort_order: int = Field(default=0)


class Community(SQLModel, table=True):
    __tablename__ = "communities"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True)
    remark: str | None = Field(default=None, max_length=255)


class CaseRecord(SQLModel, table=True):
    __tablename__ = "case_records"
    __table_args__ = (
        UniqueConstraint("case_no", name="uq_case_records_case_no"),
        ForeignKeyConstraint(["case_type_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        ForeignKeyConstraint(["result_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        ForeignKeyConstraint(["main_officer_id"], ["police_officers.id"], ondelete="RESTRICT"),
        ForeignKeyConstraint(["created_by"], ["police_officers.id"], ondelete="SET NULL"),
        CheckConstraint(
            "deadline_date IS NULL OR deadline_date >= received_date",
            name="ck_case_records_deadline_after_received",
        ),
        Index("ix_case_records_status_deadline", "status", "deadline_date"),
    )

    id: int | None = Field(default=None, primary_key=True)
    case_no: str = Field(max_length=50)
    case_name: str = Field(max_length=255)
    case_type_item_id: int
    main_officer_id: int = Field(index=True)
    received_date: str = Field(max_length=10, index=True)
    deadline_date: str | None = Field(default=None, max_length=10)
    status: CaseStatus = Field(default=CaseStatus.IN_PROGRESS)
    closed_date: str | None = Field(default=None, max_length=10)
    result_item_id: int | None = None
    transfer_target: str | None = Field(default=None, max_length=255)
    transfer_date: str | None = Field(default=None, max_length=19)
    transfer_return_date: str | None = Field(default=None, max_length=19)
    archive_location: str | None = Field(default=None, max_length=255)
    archive_date: str | None = Field(default=None, max_length=10)
    summary: str | None = None
    remark: str | None = Field(default=None, max_length=255)
    created_by: int | None = None
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class CaseOfficer(SQLModel, table=True):
    __tablename__ = "case_officers"
    __table_args__ = (
        ForeignKeyConstraint(["case_id"], ["case_records.id"], ondelete="CASCADE"),
        ForeignKeyConstraint(["officer_id"], ["police_officers.id"], ondelete="RESTRICT"),
        UniqueConstraint("case_id", "officer_id", name="uq_case_officers_case_officer"),
        Index("ix_case_officers_officer_id", "officer_id"),
    )

    id: int | None = Field(default=None, primary_key=True)
    case_id: int = Field(index=True)
    officer_id: int
    role: str | None = Field(default=None, max_length=50)
    remark: str | None = Field(default=None, max_length=255)


class CasePerson(SQLModel, table=True):
    __tablename__ = "case_persons"
    __table_args__ = (
        ForeignKeyConstraint(["case_id"], ["case_records.id"], ondelete="CASCADE"),
        ForeignKeyConstraint(["role_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
    )

    id: int | None = Field(default=None, primary_key=True)
    case_id: int = Field(index=True)
    name: str = Field(max_length=100)
    id_no: str | None = Field(default=None, max_length=50)
    contact: str | None = Field(default=None, max_length=100)
    role_item_id: int
    remark: str | None = Field(default=None, max_length=255)


class Household(SQLModel, table=True):
    __tablename__ = "community_households"
    __table_args__ = (
        UniqueConstraint(
            "community_id",
            "building_no",
            "unit_no",
            "room_no",
            name="uq_community_households_room",
        ),
        ForeignKeyConstraint(["community_id"], ["communities.id"], ondelete="RESTRICT"),
        ForeignKeyConstraint(["police_officer_id"], ["police_officers.id"], ondelete="SET NULL"),
        ForeignKeyConstraint(["house_type_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
    )

    id: int | None = Field(default=None, primary_key=True)
    community_id: int = Field(index=True)
    police_officer_id: int | None = Field(default=None, index=True)
    address: str = Field(max_length=255)
    building_no: str | None = Field(default=None, max_length=50)
    unit_no: str | None = Field(default=None, max_length=50)
    room_no: str | None = Field(default=None, max_length=50)
    house_type_item_id: int | None = None
    is_rental: bool = Field(default=False)
    householder_name: str | None = Field(default=None, max_length=100)
    householder_phone: str | None = Field(default=None, max_length=50)
    remark: str | None = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class HouseholdMember(SQLModel, table=True):
    __tablename__ = "household_members"
    __table_args__ = (
        ForeignKeyConstraint(["household_id"], ["community_households.id"], ondelete="CASCADE"),
    )

    id: int | None = Field(default=None, primary_key=True)
    household_id: int = Field(index=True)
    name: str = Field(max_length=100)
    id_no: str | None = Field(default=None, max_length=50)
    relation: str | None = Field(default=None, max_length=50)
    phone: str | None = Field(default=None, max_length=50)
    remark: str | None = Field(default=None, max_length=255)


class NineSmallPlace(SQLModel, table=True):
    __tablename__ = "nine_small_places"
    __table_args__ = (
        UniqueConstraint("community_id", "name", name="uq_nine_small_places_community_name"),
        ForeignKeyConstraint(["community_id"], ["communities.id"], ondelete="RESTRICT"),
        ForeignKeyConstraint(["type_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
    )

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, index=True)
    address: str = Field(max_length=255)
    community_id: int | None = Field(default=None, index=True)
    type: str | None = Field(default=None, max_length=50)
    type_item_id: int | None = None
    grid_name: str | None = Field(default=None, max_length=100)
    principal_name: str | None = Field(default=None, max_length=100)
    contact_phone: str | None = Field(default=None, max_length=50)
    remark: str | None = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class NineSmallInspection(SQLModel, table=True):
    __tablename__ = "nine_small_inspections"
    __table_args__ = (
        ForeignKeyConstraint(["place_id"], ["nine_small_places.id"], ondelete="CASCADE"),
        ForeignKeyConstraint(["inspector_officer_id"], ["police_officers.id"], ondelete="SET NULL"),
        ForeignKeyConstraint(["rectification_status_id"], ["dict_items.id"], ondelete="RESTRICT"),
        CheckConstraint(
            "rectified_date IS NULL OR rectified_date >= inspect_date",
            name="ck_nine_small_inspections_rectified_after_inspect",
        ),
        Index("ix_nine_small_inspections_place_date", "place_id", "inspect_date"),
    )

    id: int | None = Field(default=None, primary_key=True)
    place_id: int
    inspect_date: str = Field(max_length=10)
    inspector_officer_id: int | None = None
    inspector_name: str | None = Field(default=None, max_length=50)
    description: str | None = None
    has_hidden_danger: bool = Field(default=False)
    rectification_advice: str | None = Field(default=None, max_length=255)
    rectification_status_id: int | None = None
    rectified_date: str | None = Field(default=None, max_length=10)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class DailyLog(SQLModel, table=True):
    __tablename__ = "daily_logs"
    __table_args__ = (
        UniqueConstraint("officer_id", "log_date", name="uq_daily_logs_officer_date"),
        ForeignKeyConstraint(["officer_id"], ["police_officers.id"], ondelete="RESTRICT"),
    )

    id: int | None = Field(default=None, primary_key=True)
    officer_id: int = Field(index=True)
    log_date: str = Field(max_length=10, index=True)
    is_on_duty: bool = Field(default=False)
    alarm_count: int = Field(default=0)
    admin_case_count: int = Field(default=0)
    criminal_case_count: int = Field(default=0)
    content: str | None = None
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class KeyPopulation(SQLModel, table=True):
    __tablename__ = "key_populations"
    __table_args__ = (
        UniqueConstraint("id_card_no", name="uq_key_populations_id_card_no"),
        ForeignKeyConstraint(["community_id"], ["communities.id"], ondelete="RESTRICT"),
        ForeignKeyConstraint(["household_id"], ["community_households.id"], ondelete="SET NULL"),
        ForeignKeyConstraint(["gender_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        ForeignKeyConstraint(["type_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        ForeignKeyConstraint(["control_level_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        ForeignKeyConstraint(["risk_level_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        ForeignKeyConstraint(["control_officer_id"], ["police_officers.id"], ondelete="SET NULL"),
        CheckConstraint("revisit_interval_days > 0", name="ck_key_populations_revisit_interval_positive"),
        Index("ix_key_populations_key_next_visit", "is_key_population", "next_visit_date"),
    )

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, index=True)
    gender_item_id: int | None = None
    id_card_no: str | None = Field(default=None, max_length=50)
    community_id: int | None = Field(default=None, index=True)
    household_id: int | None = None
    contact_phone: str | None = Field(default=None, max_length=50)
    residence_address: str | None = Field(default=None, max_length=255)
    household_address: str | None = Field(default=None, max_length=255)
    is_key_population: bool = Field(default=False)
    type_item_id: int | None = None
    control_level_item_id: int | None = None
    risk_level_item_id: int | None = None
    control_officer_id: int | None = Field(default=None, index=True)
    control_measure: str | None = None
    revisit_interval_days: int = Field(default=30)
    latest_visit_date: str | None = Field(default=None, max_length=10)
    next_visit_date: str | None = Field(default=None, max_length=10)
    remark: str | None = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class KeyPopulationVisit(SQLModel, table=True):
    __tablename__ = "key_population_visits"
    __table_args__ = (
        ForeignKeyConstraint(["population_id"], ["key_populations.id"], ondelete="CASCADE"),
        ForeignKeyConstraint(["visitor_officer_id"], ["police_officers.id"], ondelete="SET NULL"),
        Index("ix_key_population_visits_population_date", "population_id", "visit_date"),
    )

    id: int | None = Field(default=None, primary_key=True)
    population_id: int
    visit_date: str = Field(max_length=10)
    visitor_officer_id: int | None = None
    visitor_name: str | None = Field(default=None, max_length=50)
    location: str | None = Field(default=None, max_length=100)
    visit_content: str | None = None
    is_abnormal: bool = Field(default=False)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ORMReadModel(ApiModel):
    model_config = ConfigDict(from_attributes=True)


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T
    message: str = "ok"


class Page(ApiModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int


class SessionClaims(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    principal_id: int
    display_name: str
    role_codes: tuple[str, ...] = ()
    permission_codes: tuple[str, ...] = ()
    issued_at: int = PydanticField(alias="iat")
    expires_at: int = PydanticField(alias="exp")


class LoginRequest(ApiModel):
    badge_no: str = PydanticField(min_length=1, max_length=50)
    password: str = PydanticField(min_length=1)


class RegisterRequest(ApiModel):
    badge_no: str = PydanticField(min_length=1, max_length=50)
    name: str = PydanticField(min_length=1, max_length=100)
    password: PasswordStr
    phone: str | None = PydanticField(default=None, max_length=50)


class ChangePasswordRequest(ApiModel):
    old_password: str = PydanticField(min_length=1)
    new_password: PasswordStr


class BootstrapAdminRequest(ApiModel):
    badge_no: str = PydanticField(min_length=1, max_length=50)
    name: str = PydanticField(min_length=1, max_length=100)
    password: PasswordStr


class CurrentOfficerRead(ORMReadModel):
    id: int
    badge_no: str | None
    name: str
    phone: str | None = None
    status: OfficerStatus
    is_active: bool
    roles: list[str] = []
    permissions: list[str] = []


class TokenResponse(ApiModel):
    token: str
    user: CurrentOfficerRead


class RoleRead(ORMReadModel):
    id: int
    code: str
    name: str


class OfficerCreate(ApiModel):
    badge_no: str | None = PydanticField(default=None, max_length=50)
    name: str = PydanticField(min_length=1, max_length=100)
    phone: str | None = PydanticField(default=None, max_length=50)
    status: OfficerStatus = OfficerStatus.ACTIVE
    is_active: bool = True
    remark: str | None = PydanticField(default=None, max_length=255)
    role_ids: list[int] = []


class OfficerUpdate(ApiModel):
    badge_no: str | None = PydanticField(default=None, max_length=50)
    name: str | None = PydanticField(default=None, max_length=100)
    phone: str | None = PydanticField(default=None, max_length=50)
    status: OfficerStatus | None = None
    is_active: bool | None = None
    remark: str | None = PydanticField(default=None, max_length=255)
    role_ids: list[int] | None = None


class OfficerRead(ORMReadModel):
    id: int
    badge_no: str | None
    name: str
    phone: str | None
    status: OfficerStatus
    is_active: bool
    remark: str | None
    role_ids: list[int] = []
    created_at: datetime
    updated_at: datetime


class OfficerCreated(OfficerRead):
    initial_password: str


class CaseOfficerInput(ApiModel):
    officer_id: int = PydanticField(gt=0)
    role: str | None = PydanticField(default=None, max_length=50)
    remark: str | None = PydanticField(default=None, max_length=255)


class CasePersonInput(ApiModel):
    name: str = PydanticField(min_length=1, max_length=100)
    id_no: str | None = PydanticField(default=None, max_length=50)
    contact: str | None = PydanticField(default=None, max_length=100)
    role_item_id: int = PydanticField(gt=0)
    remark: str | None = PydanticField(default=None, max_length=255)


class CaseCreate(ApiModel):
    case_no: str = PydanticField(min_length=1, max_length=50)
    case_name: str = PydanticField(min_length=1, max_length=255)
    case_type_item_id: int = PydanticField(gt=0)
    main_officer_id: int | None = PydanticField(default=None, gt=0)
    received_date: DateStr
    deadline_date: DateStr | None = None
    status: CaseStatus = CaseStatus.IN_PROGRESS
    closed_date: DateStr | None = None
    result_item_id: int | None = None
    transfer_target: str | None = PydanticField(default=None, max_length=255)
    transfer_date: DateTimeStr | None = None
    transfer_return_date: DateTimeStr | None = None
    archive_location: str | None = PydanticField(default=None, max_length=255)
    archive_date: DateStr | None = None
    summary: str | None = None
    remark: str | None = PydanticField(default=None, max_length=255)
    officers: list[CaseOfficerInput] | None = None
    persons: list[CasePersonInput] | None = None


class CaseUpdate(ApiModel):
    case_no: str | None = PydanticField(default=None, max_length=50)
    case_name: str | None = PydanticField(default=None, max_length=255)
    case_type_item_id: int | None = None
    main_officer_id: int | None = None
    received_date: DateStr | None = None
    deadline_date: DateStr | None = None
    status: CaseStatus | None = None
    closed_date: DateStr | None = None
    result_item_id: int | None = None
    transfer_target: str | None = PydanticField(default=None, max_length=255)
    transfer_date: DateTimeStr | None = None
    transfer_return_date: DateTimeStr | None = None
    archive_location: str | None = PydanticField(default=None, max_length=255)
    archive_date: DateStr | None = None
    summary: str | None = None
    remark: str | None = PydanticField(default=None, max_length=255)
    officers: list[CaseOfficerInput] | None = None
    persons: list[CasePersonInput] | None = None


class CaseRead(ORMReadModel):
    id: int
    case_no: str
    case_name: str
    case_type_item_id: int
    main_officer_id: int
    received_date: str
    deadline_date: str | None
    status: CaseStatus
    closed_date: str | None
    result_item_id: int | None
    transfer_target: str | None
    transfer_date: str | None
    transfer_return_date: str | None
    archive_location: str | None
    archive_date: str | None
    summary: str | None
    remark: str | None
    created_by: int | None
    created_at: datetime
    updated_at: datetime


class CaseOfficerRead(ORMReadModel):
    id: int
    officer_id: int
    role: str | None
    remark: str | None


class CasePersonRead(ORMReadModel):
    id: int
    name: str
    id_no: str | None
    contact: str | None
    role_item_id: int
    remark: str | None


class CaseDetail(CaseRead):
    officers: list[CaseOfficerRead] = []
    persons: list[CasePersonRead] = []


class HouseholdMemberInput(ApiModel):
    name: str = PydanticField(min_length=1, max_length=100)
    id_no: str | None = PydanticField(default=None, max_length=50)
    relation: str | None = PydanticField(default=None, max_length=50)
    phone: str | None = PydanticField(default=None, max_length=50)
    remark: str | None = PydanticField(default=None, max_length=255)


class HouseholdCreate(ApiModel):
    community_id: int = PydanticField(gt=0)
    police_officer_id: int | None = None
    address: str = PydanticField(min_length=1, max_length=255)
    building_no: str | None = PydanticField(default=None, max_length=50)
    unit_no: str | None = PydanticField(default=None, max_length=50)
    room_no: str | None = PydanticField(default=None, max_length=50)
    house_type_item_id: int | None = None
    is_rental: bool = False
    householder_name: str | None = PydanticField(default=None, max_length=100)
    householder_phone: str | None = PydanticField(default=None, max_length=50)
    remark: str | None = PydanticField(default=None, max_length=255)
    members: list[HouseholdMemberInput] | None = None


class HouseholdUpdate(ApiModel):
    community_id: int | None = None
    police_officer_id: int | None = None
    address: str | None = PydanticField(default=None, max_length=255)
    building_no: str | None = PydanticField(default=None, max_length=50)
    unit_no: str | None = PydanticField(default=None, max_length=50)
    room_no: str | None = PydanticField(default=None, max_length=50)
    house_type_item_id: int | None = None
    is_rental: bool | None = None
    householder_name: str | None = PydanticField(default=None, max_length=100)
    householder_phone: str | None = PydanticField(default=None, max_length=50)
    remark: str | None = PydanticField(default=None, max_length=255)
    members: list[HouseholdMemberInput] | None = None


class HouseholdMemberRead(ORMReadModel):
    id: int
    name: str
    id_no: str | None
    relation: str | None
    phone: str | None
    remark: str | None


class HouseholdRead(ORMReadModel):
    id: int
    community_id: int
    police_officer_id: int | None
    address: str
    building_no: str | None
    unit_no: str | None
    room_no: str | None
    house_type_item_id: int | None
    is_rental: bool
    householder_name: str | None
    householder_phone: str | None
    remark: str | None
    created_at: datetime
    updated_at: datetime


class HouseholdDetail(HouseholdRead):
    members: list[HouseholdMemberRead] = []


class PlaceCreate(ApiModel):
    name: str = PydanticField(min_length=1, max_length=100)
    address: str = PydanticField(min_length=1, max_length=255)
    community_id: int | None = None
    type: str | None = PydanticField(default=None, max_length=50)
    type_item_id: int | None = None
    grid_name: str | None = PydanticField(default=None, max_length=100)
    principal_name: str | None = PydanticField(default=None, max_length=100)
    contact_phone: str | None = PydanticField(default=None, max_length=50)
    remark: str | None = PydanticField(default=None, max_length=255)


class PlaceUpdate(ApiModel):
    name: str | None = PydanticField(default=None, max_length=100)
    address: str | None = PydanticField(default=None, max_length=255)
    community_id: int | None = None
    type: str | None = PydanticField(default=None, max_length=50)
    type_item_id: int | None = None
    grid_name: str | None = PydanticField(default=None, max_length=100)
    principal_name: str | None = PydanticField(default=None, max_length=100)
    contact_phone: str | None = PydanticField(default=None, max_length=50)
    remark: str | None = PydanticField(default=None, max_length=255)


class PlaceRead(ORMReadModel):
    id: int
    name: str
    address: str
    community_id: int | None
    type: str | None
    type_item_id: int | None
    grid_name: str | None
    principal_name: str | None
    contact_phone: str | None
    remark: str | None
    created_at: datetime
    updated_at: datetime


class InspectionCreate(ApiModel):
    inspect_date: DateStr
    inspector_officer_id: int | None = None
    inspector_name: str | None = PydanticField(default=None, max_length=50)
    description: str | None = PydanticField(default=None, max_length=1000)
    has_hidden_danger: bool = False
    rectification_advice: str | None = PydanticField(default=None, max_length=255)
    rectification_status_id: int | None = None
    rectified_date: DateStr | None = None


class InspectionUpdate(ApiModel):
    place_id: int | None = None
    inspect_date: DateStr | None = None
    inspector_officer_id: int | None = None
    inspector_name: str | None = PydanticField(default=None, max_length=50)
    description: str | None = PydanticField(default=None, max_length=1000)
    has_hidden_danger: bool | None = None
    rectification_advice: str | None = PydanticField(default=None, max_length=255)
    rectification_status_id: int | None = None
    rectified_date: DateStr | None = None


class InspectionRead(ORMReadModel):
    id: int
    place_id: int
    inspect_date: str
    inspector_officer_id: int | None
    inspector_name: str | None
    description: str | None
    has_hidden_danger: bool
    rectification_advice: str | None
    rectification_status_id: int | None
    rectified_date: str | None
    created_at: datetime
    updated_at: datetime


class DailyLogCreate(ApiModel):
    log_date: DateStr
    is_on_duty: bool = False
    alarm_count: int = PydanticField(default=0, ge=0)
    admin_case_count: int = PydanticField(default=0, ge=0)
    criminal_case_count: int = PydanticField(default=0, ge=0)
    content: str | None = PydanticField(default=None, max_length=2000)


class DailyLogUpdate(ApiModel):
    log_date: DateStr | None = None
    is_on_duty: bool | None = None
    alarm_count: int | None = PydanticField(default=None, ge=0)
    admin_case_count: int | None = PydanticField(default=None, ge=0)
    criminal_case_count: int | None = PydanticField(default=None, ge=0)
    content: str | None = PydanticField(default=None, max_length=2000)


class DailyLogRead(ORMReadModel):
    id: int
    officer_id: int
    log_date: str
    is_on_duty: bool
    alarm_count: int
    admin_case_count: int
    criminal_case_count: int
    content: str | None
    created_at: datetime
    updated_at: datetime


class TodayLogRead(ApiModel):
    has_today_log: bool
    today_log: DailyLogRead | None = None


class MissingLogDatesRead(ApiModel):
    officer_id: int
    days: int
    missing_dates: list[str]


class LogStatisticsRead(ApiModel):
    officer_id: int
    date_from: str
    date_to: str
    total_logs: int = 0
    duty_days: int = 0
    total_alarms: int = 0
    total_admin_cases: int = 0
    total_criminal_cases: int = 0


class KeyPopulationCreate(ApiModel):
    name: str = PydanticField(min_length=1, max_length=100)
    gender_item_id: int | None = None
    id_card_no: str | None = PydanticField(default=None, max_length=50)
    community_id: int | None = None
    household_id: int | None = None
    contact_phone: str | None = PydanticField(default=None, max_length=50)
    residence_address: str | None = PydanticField(default=None, max_length=255)
    household_address: str | None = PydanticField(default=None, max_length=255)
    is_key_population: bool = False
    type_item_id: int | None = None
    control_level_item_id: int | None = None
    risk_level_item_id: int | None = None
    control_officer_id: int | None = None
    control_measure: str | None = PydanticField(default=None, max_length=1000)
    revisit_interval_days: int = PydanticField(default=30, ge=1, le=365)
    remark: str | None = PydanticField(default=None, max_length=255)


class KeyPopulationUpdate(ApiModel):
    name: str | None = PydanticField(default=None, max_length=100)
    gender_item_id: int | None = None
    id_card_no: str | None = PydanticField(default=None, max_length=50)
    community_id: int | None = None
    household_id: int | None = None
    contact_phone: str | None = PydanticField(default=None, max_length=50)
    residence_address: str | None = PydanticField(default=None, max_length=255)
    household_address: str | None = PydanticField(default=None, max_length=255)
    is_key_population: bool | None = None
    type_item_id: int | None = None
    control_level_item_id: int | None = None
    risk_level_item_id: int | None = None
    control_officer_id: int | None = None
    control_measure: str | None = PydanticField(default=None, max_length=1000)
    revisit_interval_days: int | None = PydanticField(default=None, ge=1, le=365)
    remark: str | None = PydanticField(default=None, max_length=255)


class KeyPopulationRead(ORMReadModel):
    id: int
    name: str
    gender_item_id: int | None
    id_card_no: str | None
    community_id: int | None
    household_id: int | None
    contact_phone: str | None
    residence_address: str | None
    household_address: str | None
    is_key_population: bool
    type_item_id: int | None
    control_level_item_id: int | None
    risk_level_item_id: int | None
    control_officer_id: int | None
    control_measure: str | None
    revisit_interval_days: int
    latest_visit_date: str | None
    next_visit_date: str | None
    remark: str | None
    created_at: datetime
    updated_at: datetime


class VisitCreate(ApiModel):
    visit_date: DateStr
    visitor_officer_id: int | None = None
    visitor_name: str | None = PydanticField(default=None, max_length=50)
    location: str | None = PydanticField(default=None, max_length=100)
    visit_content: str | None = PydanticField(default=None, max_length=1000)
    is_abnormal: bool = False


class VisitUpdate(ApiModel):
    visit_date: DateStr | None = None
    visitor_officer_id: int | None = None
    visitor_name: str | None = PydanticField(default=None, max_length=50)
    location: str | None = PydanticField(default=None, max_length=100)
    visit_content: str | None = PydanticField(default=None, max_length=1000)
    is_abnormal: bool | None = None


class VisitRead(ORMReadModel):
    id: int
    population_id: int
    visit_date: str
    visitor_officer_id: int | None
    visitor_name: str | None
    location: str | None
    visit_content: str | None
    is_abnormal: bool
    created_at: datetime
    updated_at: datetime
