from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class UserOut(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    cpf: Optional[str] = None
    role: Optional[str] = None               # "Master" | "Free"
    approved: bool = False
    is_superuser: bool = False

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(..., min_length=6)  # senha provisória
    cpf: Optional[str] = None
    phone: Optional[str] = None
    role: str = "Free"
    approved: bool = False


class UserUpdate(BaseModel):
    # e-mail não é editável depois do cadastro
    name: Optional[str] = None
    cpf: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    approved: Optional[bool] = None


class UserSaveOut(BaseModel):
    user: UserOut
    notice: str
