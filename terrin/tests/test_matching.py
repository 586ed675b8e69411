import uuid
from decimal import Decimal

from terrin.core.matching.discovery import _calculate_match_score
from terrin.core.projects.progress import completion_from_milestones
from terrin.db.models.contractor import Contractor
from terrin.db.models.project import Project, ProjectMilestone


def _project(**overrides) -> Project:
    fields = {
        "id": uuid.uuid4(),
        "owner_id": uuid.uuid4(),
        "title": "Bathroom refresh",
        "description": "New tile shower and plumbing fixtures",
        "project_type": "Bathroom",
        "budget_range": "$10k-$20k",
        "timeline": "1 month",
        "location": "Portland, OR",
    }
    fields.update(overrides)
    return Project(**fields)


def _contractor(**overrides) -> Contractor:
    fields = {
        "user_id": uuid.uuid4(),
        "business_name": "Test Co",
        "specialty": "Bathroom",
        "description": "Tile and plumbing",
        "hourly_rate": Decimal("70"),
        "location": "Portland, OR",
        "service_area": "Portland metro",
        "years_experience": 16,
        "rating": Decimal("5.00"),
        "verified": True,
    }
    fields.update(overrides)
    return Contractor(**fields)


def test_perfect_match_scores_100():
    score, reasons = _calculate_match_score(_contractor(), _project())
    assert score == 100
    assert "Verified professional" in reasons


def test_region_only_match():
    contractor = _contractor(location="Salem, OR", service_area="Salem, OR")
    score, reasons = _calculate_match_score(contractor, _project())
    # specialty 30 + region 10 + rating 25 + verified 10 + experience 10
    assert score == 85
    assert "Serves the region" in reasons


def test_unrelated_contractor_scores_low():
    contractor = _contractor(
        specialty="Roofing",
        description="Shingles",
        location="Miami, FL",
        service_area="Miami, FL",
        years_experience=2,
        rating=Decimal("0"),
        verified=False,
    )
    score, reasons = _calculate_match_score(contractor, _project())
    assert score == 0
    assert reasons == []


def test_description_overlap_counts_as_related_experience():
    contractor = _contractor(
        specialty="Carpentry",
        description="Bathroom shower and plumbing fixtures",
        location="Miami, FL",
        service_area="Miami, FL",
        years_experience=2,
        rating=Decimal("0"),
        verified=False,
    )
    score, reasons = _calculate_match_score(contractor, _project())
    assert score == 15
    assert reasons == ["Related experience"]


def _milestone(status: str, weight: int | None) -> ProjectMilestone:
    return ProjectMilestone(title="m", status=status, progress_weight=weight)


def test_completion_is_weighted():
    milestones = [
        _milestone("completed", 10),
        _milestone("in_progress", 30),
        _milestone("completed", 60),
    ]
    assert completion_from_milestones(milestones) == 70


def test_completion_defaults():
    assert completion_from_milestones([]) == 0
    assert completion_from_milestones([_milestone("completed", 0)]) == 0
    assert completion_from_milestones([_milestone("completed", None), _milestone("pending", 10)]) == 50
