from pydantic import BaseModel


class ContractorMatch(BaseModel):
    contractor_id: str
    user_id: str
    business_name: str
    specialty: str
    location: str
    rating: float
    verified: bool
    years_experience: int
    match_score: float
    reasons: list[str]
