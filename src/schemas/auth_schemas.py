from pydantic import BaseModel, field_validator


class UserIdentity(BaseModel):
    id: str
    email: str


class AuthToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserIdentity


class Credentials(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if "@" not in v:
            raise ValueError("Invalid email format")
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return v
