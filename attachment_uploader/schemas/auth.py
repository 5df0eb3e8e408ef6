"""Session schemas."""

from pydantic import BaseModel


class SessionRequest(BaseModel):
    access_token: str
    user_id: str = ""


class SessionInfo(BaseModel):
    authenticated: bool
    user_id: str = ""
