import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.common.logging import get_logger
from terrin.core.matching.schemas import ContractorMatch
from terrin.db.models.contractor import Contractor
from terrin.db.models.project import Project

logger = get_logger("matching.discovery")

_STOPWORDS = {
    "and", "the", "for", "with", "new", "our", "my", "a", "an", "of", "to", "in",
    "project", "work", "renovation", "remodel", "general",
}


def _keywords(text: str) -> set[str]:
    words = re.findall(r"[a-z]+", text.lower())
    return {w for w in words if len(w) > 2 and w not in _STOPWORDS}


def _location_tokens(location: str) -> tuple[str, str]:
    parts = [p.strip().lower() for p in location.split(",") if p.strip()]
    city = parts[0] if parts else ""
    region = parts[1].split()[0] if len(parts) > 1 and parts[1].split() else ""
    return city, region


def _calculate_match_score(contractor: Contractor, project: Project) -> tuple[float, list[str]]:
    score = 0.0
    reasons: list[str] = []

    # Specialty component (0-30 points)
    project_words = _keywords(f"{project.project_type} {project.title} {project.description}")
    specialty_words = _keywords(contractor.specialty)
    if specialty_words & project_words:
        score += 30
        reasons.append(f"Specializes in {contractor.specialty}")
    elif _keywords(contractor.description or "") & project_words:
        score += 15
        reasons.append("Related experience")

    # Location component (0-25 points)
    city, region = _location_tokens(project.location)
    served = f"{contractor.location} {contractor.service_area}".lower()
    if city and city in served:
        score += 25
        reasons.append(f"Serves {project.location}")
    elif region and re.search(rf"\b{re.escape(region)}\b", served):
        score += 10
        reasons.append("Serves the region")

    # Rating component (0-25 points)
    rating = float(contractor.rating or 0)
    score += (rating / 5.0) * 25

    # Verification bonus (0-10 points)
    if contractor.verified:
        score += 10
        reasons.append("Verified professional")

    # Experience bonus (0-10 points)
    if contractor.years_experience >= 15:
        score += 10
    elif contractor.years_experience >= 10:
        score += 7
    elif contractor.years_experience >= 5:
        score += 4

    return round(score, 1), reasons


async def match_contractors(
    project: Project, db: AsyncSession, limit: int = 10
) -> list[ContractorMatch]:
    logger.info("Matching contractors for project %s (%s)", project.id, project.project_type)

    result = await db.execute(
        select(Contractor).where(
            Contractor.is_deleted.is_(False),
            Contractor.user_id != project.owner_id,
        )
    )
    matches = []
    for contractor in result.scalars().all():
        match_score, reasons = _calculate_match_score(contractor, project)
        matches.append(
            ContractorMatch(
                contractor_id=str(contractor.id),
                user_id=str(contractor.user_id),
                business_name=contractor.business_name,
                specialty=contractor.specialty,
                location=contractor.location,
                rating=float(contractor.rating or 0),
                verified=contractor.verified,
                years_experience=contractor.years_experience,
                match_score=match_score,
                reasons=reasons,
            )
        )

    matches.sort(key=lambda m: m.match_score, reverse=True)

    logger.info("Found %d contractor matches for project %s", len(matches), project.id)
    return matches[:limit]
