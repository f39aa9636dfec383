from pydantic import BaseModel


class StudentProfile(BaseModel):
    id: str
    name: str
    roll_number: str
    branch: str
    year: int
    email: str = ""
    phone: str = ""
