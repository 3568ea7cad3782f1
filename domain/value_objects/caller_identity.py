from pydantic import BaseModel, ConfigDict


class CallerIdentity(BaseModel):
    """Verified identity of the user issuing a request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str
