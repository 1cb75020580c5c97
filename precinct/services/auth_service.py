from __future__ import annotations

import logging

from sqlmodel import Session, col, select

from precinct.domain.errors import AuthenticationError, ConflictError, NotFoundError, ValidationFailedError
from precinct.domain.models import (
    BootstrapAdminRequest,
    ChangePasswordRequest,
    CurrentOfficerRead,
    LoginRequest,
    Officer,
    OfficerRole,
    OfficerStatus,
    Permission,
    RegisterRequest,
    Role,
    RolePermission,
    TokenResponse,
    now_utc,
)
from precinct.domain.permissions import DEFAULT_PERMISSION_CODES, DEFAULT_ROLE_PERMISSIONS, ROLE_ADMIN
from precinct.infra.auth import create_access_token
from precinct.infra.passwords import hash_password, verify_password
from precinct.infra.storage_errors import ConstraintPolicy
from precinct.services.aggregate import AggregateService, row_id

logger = logging.getLogger(__name__)

BADGE_CONFLICT = "badge number already registered"

OFFICER_POLICY = ConstraintPolicy(
    conflict_message=BADGE_CONFLICT,
    unique_fields={
        "uq_police_officers_badge_no": "badgeNo",
        "police_officers.badge_no": "badgeNo",
    },
)


def load_access(session: Session, officer_id: int) -> tuple[list[str], list[str]]:
    """Current role codes and the union of their permission codes."""
    role_rows = session.exec(
        select(Role)
        .join(OfficerRole, col(OfficerRole.role_id) == col(Role.id))
        .where(OfficerRole.officer_id == officer_id)
        .order_by(col(Role.id))
    ).all()
    role_codes = [role.code for role in role_rows]
    if not role_rows:
        return role_codes, []
    permission_rows = session.exec(
        select(Permission.code)
        .join(RolePermission, col(RolePermission.permission_id) == col(Permission.id))
        .where(col(RolePermission.role_id).in_([role.id for role in role_rows]))
    ).all()
    return role_codes, sorted(set(permission_rows))


def find_badge_owner(session: Session, badge_no: str, exclude_id: int | None = None) -> int | None:
    statement = select(Officer.id).where(Officer.badge_no == badge_no)
    if exclude_id is not None:
        statement = statement.where(Officer.id != exclude_id)
    return session.exec(statement).first()


class AuthService(AggregateService):
    constraint_policy = OFFICER_POLICY

    def _current_officer(self, officer: Officer, roles: list[str], permissions: list[str]) -> CurrentOfficerRead:
        read = CurrentOfficerRead.model_validate(officer)
        return read.model_copy(update={"roles": roles, "permissions": permissions})

    def _issue(self, officer: Officer, roles: list[str], permissions: list[str]) -> TokenResponse:
        token = create_access_token(
            principal_id=row_id(officer),
            display_name=officer.name,
            role_codes=roles,
            permission_codes=permissions,
        )
        return TokenResponse(token=token, user=self._current_officer(officer, roles, permissions))

    def login(self, payload: LoginRequest) -> TokenResponse:
        with self._session() as session:
            officer = session.exec(select(Officer).where(Officer.badge_no == payload.badge_no)).first()
            if officer is None or not verify_password(payload.password, officer.password_hash):
                logger.info("login rejected for badge %s", payload.badge_no)
                raise AuthenticationError("invalid badge number or password")
            if officer.status == OfficerStatus.LOCKED:
                logger.warning("login refused for locked officer %s", officer.id)
                raise AuthenticationError("account locked")
            roles, permissions = load_access(session, officer.id)
        logger.info("officer %s logged in", officer.id)
        return self._issue(officer, roles, permissions)

    def register(self, payload: RegisterRequest) -> TokenResponse:
        with self._session() as session:
            if find_badge_owner(session, payload.badge_no) is not None:
                raise ConflictError(BADGE_CONFLICT, {"badgeNo": BADGE_CONFLICT})

        officer = Officer(
            badge_no=payload.badge_no,
            name=payload.name,
            phone=payload.phone,
            password_hash=hash_password(payload.password),
            status=OfficerStatus.ACTIVE,
            is_active=True,
        )
        with self._unit_of_work() as session:
            session.add(officer)
        logger.info("officer %s registered with badge %s", officer.id, officer.badge_no)
        return self._issue(officer, [], [])

    def me(self, officer_id: int) -> CurrentOfficerRead:
        with self._session() as session:
            officer = session.get(Officer, officer_id)
            if officer is None:
                raise NotFoundError("officer not found")
            roles, permissions = load_access(session, officer_id)
            return self._current_officer(officer, roles, permissions)

    def change_password(self, officer_id: int, payload: ChangePasswordRequest) -> None:
        with self._unit_of_work() as session:
            officer = session.get(Officer, officer_id)
            if officer is None:
                raise NotFoundError("officer not found")
            if not verify_password(payload.old_password, officer.password_hash):
                raise ValidationFailedError(
                    "old password is incorrect",
                    {"oldPassword": "old password is incorrect"},
                )
            officer.password_hash = hash_password(payload.new_password)
            officer.updated_at = now_utc()
            session.add(officer)
        logger.info("officer %s changed password", officer_id)

    def _ensure_catalogue(self, session: Session) -> dict[str, Role]:
        permissions = {item.code: item for item in session.exec(select(Permission)).all()}
        for code in DEFAULT_PERMISSION_CODES:
            if code not in permissions:
                permissions[code] = Permission(code=code, name=code)
                session.add(permissions[code])

        roles = {item.code: item for item in session.exec(select(Role)).all()}
        for code, (name, _) in DEFAULT_ROLE_PERMISSIONS.items():
            if code not in roles:
                roles[code] = Role(code=code, name=name)
                session.add(roles[code])
        session.flush()

        linked = {(item.role_id, item.permission_id) for item in session.exec(select(RolePermission)).all()}
        for code, (_, permission_codes) in DEFAULT_ROLE_PERMISSIONS.items():
            role_id = roles[code].id
            for permission_code in permission_codes:
                permission_id = permissions[permission_code].id
                if (role_id, permission_id) not in linked:
                    session.add(RolePermission(role_id=role_id, permission_id=permission_id))
        session.flush()
        return roles

    def bootstrap_admin(self, payload: BootstrapAdminRequest) -> CurrentOfficerRead:
        with self._unit_of_work() as session:
            if session.exec(select(Officer.id)).first() is not None:
                raise ConflictError("officers already initialized")
            roles = self._ensure_catalogue(session)
            admin = Officer(
                badge_no=payload.badge_no,
                name=payload.name,
                password_hash=hash_password(payload.password),
                status=OfficerStatus.ACTIVE,
                is_active=True,
            )
            session.add(admin)
            session.flush()
            session.add(OfficerRole(officer_id=admin.id, role_id=roles[ROLE_ADMIN].id))
        logger.info("bootstrap admin %s created", admin.id)
        return self.me(admin.id)
