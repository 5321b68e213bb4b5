from pydantic import BaseModel, ConfigDict, Field

MAX_FIELD_LENGTH = 255


class UserIn(BaseModel):
    """Body accepted by POST /users and PUT /users/{id}.

    Values are stored exactly as sent: no trimming, no format checks.
    """

    name: str = Field(min_length=1, max_length=MAX_FIELD_LENGTH)
    department: str = Field(min_length=1, max_length=MAX_FIELD_LENGTH)
    email: str = Field(min_length=1, max_length=MAX_FIELD_LENGTH)


class UserOut(BaseModel):
    id: int
    name: str
    department: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class UserCreated(BaseModel):
    id: int


class Message(BaseModel):
    message: str


class ErrorOut(BaseModel):
    error: str
