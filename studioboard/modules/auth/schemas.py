from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr

from .gate import GateState


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class GateOut(BaseModel):
    state: GateState
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    is_master: bool = False
    actions: List[str] = []


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    gate: GateOut
    message: Optional[str] = None


class ConnectionOut(BaseModel):
    status: str          # connected | error
    detail: Optional[str] = None
