from pydantic import BaseModel

class RegisterRequest(BaseModel):
    email: str  # plain str to allow .local and other dev domains
    password: str
    firstname: str = ""
    lastname: str = ""
    phone: str = ""

class LoginRequest(BaseModel):
    email: str
    password: str

class RefreshRequest(BaseModel):
    refresh_token: str

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
