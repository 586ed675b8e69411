"""
Seed script for the Terrin marketplace.

Populates the database with demo homeowners, professionals with contractor
profiles, projects with milestones, a project conversation and an estimate.

Usage:
    python -m terrin.scripts.seed
"""

import asyncio
import uuid
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select

from terrin.common.enums import MessageType, MilestoneStatus, ProjectStatus, UserRole
from terrin.core.estimating.baseline import baseline_estimate
from terrin.core.projects.progress import completion_from_milestones
from terrin.db.base import utcnow
from terrin.db.models import (
    Contractor,
    Conversation,
    ConversationParticipant,
    Estimate,
    Message,
    Project,
    ProjectMilestone,
    User,
)
from terrin.db.session import async_session_factory


async def main() -> None:
    async with async_session_factory() as session:
        # Guard: skip if already seeded
        result = await session.execute(select(User).where(User.external_id == "seed-admin"))
        if result.scalar_one_or_none() is not None:
            print("Database already seeded -- skipping.")
            return

        # ==================================================================
        # USERS
        # ==================================================================
        admin = User(
            id=uuid.uuid4(),
            external_id="seed-admin",
            email="admin@terrin.app",
            first_name="Terrin",
            last_name="Admin",
            role=UserRole.ADMIN.value,
            is_initialized=True,
        )
        sarah = User(
            id=uuid.uuid4(),
            external_id="seed-homeowner-sarah",
            email="sarah@example.com",
            first_name="Sarah",
            last_name="Chen",
            role=UserRole.HOMEOWNER.value,
            is_initialized=True,
        )
        marcus = User(
            id=uuid.uuid4(),
            external_id="seed-homeowner-marcus",
            email="marcus@example.com",
            first_name="Marcus",
            last_name="Johnson",
            role=UserRole.BOTH.value,
            is_initialized=True,
        )
        pros = [
            User(
                id=uuid.uuid4(),
                external_id=f"seed-pro-{i}",
                email=email,
                first_name=first,
                last_name=last,
                role=UserRole.PROFESSIONAL.value,
                is_initialized=True,
            )
            for i, (email, first, last) in enumerate(
                [
                    ("dave@ridgelinebuild.com", "Dave", "Ortiz"),
                    ("lena@brightwire.com", "Lena", "Park"),
                    ("sam@tilecraft.com", "Sam", "Whitfield"),
                ]
            )
        ]
        users = [admin, sarah, marcus, *pros]
        session.add_all(users)

        # ==================================================================
        # CONTRACTORS
        # ==================================================================
        contractor_data = [
            {
                "business_name": "Ridgeline Builders",
                "specialty": "General Contractor",
                "description": "Full-service remodels, additions and kitchen renovations.",
                "hourly_rate": Decimal("95.00"),
                "location": "Austin, TX",
                "service_area": "Austin, TX",
                "years_experience": 18,
                "rating": Decimal("4.80"),
                "review_count": 64,
                "verified": True,
                "stripe_account_id": "acct_seed_ridgeline",
                "stripe_onboarding_complete": True,
            },
            {
                "business_name": "Brightwire Electric",
                "specialty": "Electrical",
                "description": "Panel upgrades, rewiring and lighting design.",
                "hourly_rate": Decimal("110.00"),
                "location": "Round Rock, TX",
                "service_area": "Austin, TX",
                "years_experience": 9,
                "rating": Decimal("4.60"),
                "review_count": 31,
                "verified": True,
            },
            {
                "business_name": "TileCraft Bath & Floor",
                "specialty": "Bathroom Remodeling",
                "description": "Tile, showers and complete bathroom remodels.",
                "hourly_rate": Decimal("75.00"),
                "location": "San Marcos, TX",
                "service_area": "Central Texas",
                "years_experience": 4,
                "rating": Decimal("4.20"),
                "review_count": 12,
                "verified": False,
            },
        ]
        contractors = [
            Contractor(id=uuid.uuid4(), user_id=pro.id, email=pro.email, **data)
            for pro, data in zip(pros, contractor_data)
        ]
        session.add_all(contractors)

        # ==================================================================
        # PROJECTS
        # ==================================================================
        kitchen = Project(
            id=uuid.uuid4(),
            owner_id=sarah.id,
            title="Kitchen Remodel (220 sq ft)",
            description="Full kitchen remodel with new cabinets, quartz counters and an island, 220 sq ft.",
            project_type="Kitchen Remodel",
            budget_range="$50k-$75k",
            timeline="2-3 months",
            location="Austin, TX",
            status=ProjectStatus.IN_PROGRESS.value,
        )
        deck = Project(
            id=uuid.uuid4(),
            owner_id=marcus.id,
            title="Deck Construction",
            description="Build a 300 sq ft composite deck off the back door.",
            project_type="Deck",
            budget_range="$15k-$25k",
            timeline="3-4 weeks",
            location="Austin, TX",
            status=ProjectStatus.PLANNING.value,
        )
        session.add_all([kitchen, deck])

        now = utcnow()
        milestone_specs = [
            ("Design & permits", 10, MilestoneStatus.COMPLETED, 10),
            ("Demolition", 15, MilestoneStatus.COMPLETED, 5),
            ("Rough-in plumbing & electrical", 25, MilestoneStatus.IN_PROGRESS, 10),
            ("Cabinets & counters", 30, MilestoneStatus.PENDING, 15),
            ("Finishes", 15, MilestoneStatus.PENDING, 10),
            ("Final walkthrough", 5, MilestoneStatus.PENDING, 1),
        ]
        milestones = []
        offset = 0
        for order, (title, weight, status, days) in enumerate(milestone_specs, start=1):
            offset += days
            milestones.append(
                ProjectMilestone(
                    project_id=kitchen.id,
                    title=title,
                    status=status.value,
                    order=order,
                    progress_weight=weight,
                    estimated_duration_days=days,
                    due_date=now + timedelta(days=offset),
                    completed_date=now if status == MilestoneStatus.COMPLETED else None,
                )
            )
        session.add_all(milestones)
        kitchen.completion_percentage = completion_from_milestones(milestones)

        # ==================================================================
        # MESSAGING
        # ==================================================================
        conversation = Conversation(
            id=uuid.uuid4(), project_id=kitchen.id, title=kitchen.title, last_message_at=now
        )
        session.add(conversation)
        session.add_all(
            [
                ConversationParticipant(conversation_id=conversation.id, user_id=sarah.id),
                ConversationParticipant(conversation_id=conversation.id, user_id=pros[0].id),
            ]
        )
        session.add_all(
            [
                Message(
                    conversation_id=conversation.id,
                    sender_id=sarah.id,
                    content="Hi Dave, can you start demolition next Monday?",
                    message_type=MessageType.TEXT.value,
                    read_by=[str(sarah.id), str(pros[0].id)],
                ),
                Message(
                    conversation_id=conversation.id,
                    sender_id=pros[0].id,
                    content="Monday works. The crew will be there at 8am.",
                    message_type=MessageType.TEXT.value,
                    read_by=[str(pros[0].id)],
                ),
            ]
        )

        # ==================================================================
        # ESTIMATES
        # ==================================================================
        input_data = {
            "title": deck.title,
            "description": deck.description,
            "location": deck.location,
            "project_type": deck.project_type,
        }
        result = baseline_estimate(input_data)
        cost_fields = {
            k: Decimal(str(v)) for k, v in result.items() if k.endswith(("_min", "_max"))
        }
        session.add(
            Estimate(
                user_id=marcus.id,
                project_id=deck.id,
                title=deck.title,
                input_data=input_data,
                timeline=result.get("timeline"),
                ai_analysis=result.get("analysis") or {},
                trade_breakdowns=result.get("trade_breakdowns") or [],
                **cost_fields,
            )
        )

        await session.commit()

        print(
            f"Seeded: {len(users)} users, {len(contractors)} contractors, "
            f"2 projects, {len(milestones)} milestones, 1 conversation, 1 estimate"
        )


if __name__ == "__main__":
    asyncio.run(main())
