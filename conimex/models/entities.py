"""
Account models for Conimex.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class UserAccount(BaseModel):
    """
    A user account. The username is the reconciliation key during import.
    """

    id: Optional[int] = Field(
        None,
        description="Database identifier, assigned when the account is flushed"
    )

    username: str = Field(
        ...,
        description="Unique login name"
    )

    display_name: Optional[str] = Field(
        None,
        description="Name shown in the backend"
    )

    email: Optional[str] = None

    password: Optional[str] = Field(
        None,
        description="Password exactly as exported (already hashed); never re-hashed here"
    )

    roles: List[str] = Field(default_factory=list)
    locale: str = "en"
    backend_theme: str = "default"
    status: str = "enabled"
