"""HTTP route definitions for the account service."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from ..domain.account import Account, Role
from ..domain.contracts import AccountPatch
from ..domain.errors import NotFound
from ..domain.modules import AVAILABLE_MODULES
from ..domain.service import MIN_PASSWORD_LENGTH, AccountDirectory
from ..security.gate import Caller, get_caller, get_directory, require_superadmin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users")


class AccountResponse(BaseModel):
    """Serialised representation of an `Account`; never carries the password hash."""

    id: str
    name: str
    email: str
    role: Role
    modules: list[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        """Build a response model from the domain aggregate."""
        return cls(
            id=account.account_id,
            name=account.name,
            email=account.email,
            role=account.role,
            modules=list(account.modules),
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class BootstrapRequest(BaseModel):
    """Payload accepted when creating the superadmin."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    """Bearer token plus the profile and entitlements of the logged-in account."""

    token: str
    id: str
    name: str
    email: str
    role: Role
    modules: list[str]


class RegisterRequest(BaseModel):
    """Payload accepted when the superadmin creates an admin or user account."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    role: str = Role.USER.value
    modules: list[str] = Field(default_factory=list)


class AccountUpdateRequest(BaseModel):
    """Partial update body; ``role`` and ``modules`` only apply on the admin route."""

    name: str | None = None
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=MIN_PASSWORD_LENGTH)
    role: str | None = None
    modules: list[str] | None = None

    def to_patch(self) -> AccountPatch:
        return AccountPatch(
            name=self.name,
            email=self.email,
            password=self.password,
            role=self.role,
            modules=self.modules,
        )


class MessageResponse(BaseModel):
    message: str


class AccountMessageResponse(BaseModel):
    message: str
    user: AccountResponse


class ModulesResponse(BaseModel):
    modules: list[str]


@router.post("/createsuperadmin", response_model=AccountMessageResponse)
def create_superadmin(
    payload: BootstrapRequest,
    directory: AccountDirectory = Depends(get_directory),
) -> AccountMessageResponse:
    """Bootstrap the single superadmin; fails once one exists."""
    account = directory.bootstrap_superadmin(payload.name, payload.email, payload.password)
    return AccountMessageResponse(
        message="Super Admin created successfully",
        user=AccountResponse.from_domain(account),
    )


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    directory: AccountDirectory = Depends(get_directory),
) -> LoginResponse:
    result = directory.login(payload.email, payload.password)
    account = result.account
    return LoginResponse(
        token=result.token,
        id=account.account_id,
        name=account.name,
        email=account.email,
        role=account.role,
        modules=list(account.modules),
    )


@router.get("/modules", response_model=ModulesResponse)
def list_modules(_: Account = Depends(require_superadmin)) -> ModulesResponse:
    """Return the module catalog so the dashboard can offer grants."""
    return ModulesResponse(modules=list(AVAILABLE_MODULES))


@router.post("/register", response_model=AccountMessageResponse)
def register(
    payload: RegisterRequest,
    actor: Account = Depends(require_superadmin),
    directory: AccountDirectory = Depends(get_directory),
) -> AccountMessageResponse:
    """Create an admin or user account on behalf of the superadmin."""
    account = directory.register(
        payload.name,
        payload.email,
        payload.password,
        payload.role,
        payload.modules,
    )
    logger.info("account %s created by %s", account.account_id, actor.account_id)
    return AccountMessageResponse(
        message="User created successfully",
        user=AccountResponse.from_domain(account),
    )


@router.get("/", response_model=list[AccountResponse])
def list_accounts(
    _: Account = Depends(require_superadmin),
    directory: AccountDirectory = Depends(get_directory),
) -> list[AccountResponse]:
    """List admin and user accounts."""
    return [AccountResponse.from_domain(account) for account in directory.list_accounts()]


@router.get("/me", response_model=AccountResponse)
def read_me(caller: Caller = Depends(get_caller)) -> AccountResponse:
    """Return the caller's own profile."""
    if caller.account is None:
        raise NotFound()
    return AccountResponse.from_domain(caller.account)


@router.put("/updateProfile", response_model=AccountMessageResponse)
def update_profile(
    payload: AccountUpdateRequest,
    caller: Caller = Depends(get_caller),
    directory: AccountDirectory = Depends(get_directory),
) -> AccountMessageResponse:
    """Self-service update limited to name, email and password."""
    if caller.account is None:
        raise NotFound()
    account = directory.update(caller.account.account_id, payload.to_patch(), acting_as_admin=False)
    return AccountMessageResponse(message="Profile updated", user=AccountResponse.from_domain(account))


@router.put("/{account_id}", response_model=AccountMessageResponse)
def update_account(
    account_id: str,
    payload: AccountUpdateRequest,
    _: Account = Depends(require_superadmin),
    directory: AccountDirectory = Depends(get_directory),
) -> AccountMessageResponse:
    """Administrative update, including role and module grants."""
    account = directory.update(account_id, payload.to_patch(), acting_as_admin=True)
    return AccountMessageResponse(
        message="User updated successfully",
        user=AccountResponse.from_domain(account),
    )


@router.delete("/{account_id}", response_model=MessageResponse)
def delete_account(
    account_id: str,
    _: Account = Depends(require_superadmin),
    directory: AccountDirectory = Depends(get_directory),
) -> MessageResponse:
    directory.remove(account_id)
    return MessageResponse(message="User deleted successfully")
