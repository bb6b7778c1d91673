from pydantic import BaseModel, field_validator


class VendorCredentials(BaseModel):
    name: str  # store name as typed; normalized into the vendor id
    password: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Please enter a store name.")
        return v


class VendorResponse(BaseModel):
    id: str

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    vendor_id: str
