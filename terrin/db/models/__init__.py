from terrin.db.models.contractor import Contractor
from terrin.db.models.conversation import Conversation, ConversationParticipant, Message
from terrin.db.models.estimate import Estimate
from terrin.db.models.payment import Payment
from terrin.db.models.photo import ProjectPhoto
from terrin.db.models.project import (
    Project,
    ProjectCost,
    ProjectDocument,
    ProjectMilestone,
    ProjectUpdate,
)
from terrin.db.models.user import User

__all__ = [
    "Contractor",
    "Conversation",
    "ConversationParticipant",
    "Estimate",
    "Message",
    "Payment",
    "Project",
    "ProjectCost",
    "ProjectDocument",
    "ProjectMilestone",
    "ProjectPhoto",
    "ProjectUpdate",
    "User",
]
