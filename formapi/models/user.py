from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class Credentials(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_data: Credentials = Field(..., alias="userData")


class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., alias="_id")
    email: str
    name: str


class User(BaseModel):
    id: int | None = None
    name: str
    email: str
    password_hash: str

    def public(self) -> dict:
        return UserOut(id=self.id, email=self.email, name=self.name).model_dump(by_alias=True)
