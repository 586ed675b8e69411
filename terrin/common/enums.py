import enum


class UserRole(str, enum.Enum):
    HOMEOWNER = "homeowner"
    PROFESSIONAL = "professional"
    BOTH = "both"
    VISITOR = "visitor"
    ADMIN = "admin"


class Permission(str, enum.Enum):
    VIEW_PROJECTS = "view_projects"
    CREATE_PROJECTS = "create_projects"
    EDIT_PROJECTS = "edit_projects"
    DELETE_PROJECTS = "delete_projects"
    VIEW_CONTRACTORS = "view_contractors"
    MANAGE_CONTRACTOR_PROFILE = "manage_contractor_profile"
    SEND_MESSAGES = "send_messages"
    CREATE_PAYMENTS = "create_payments"
    RECEIVE_PAYMENTS = "receive_payments"
    VIEW_ESTIMATES = "view_estimates"
    CREATE_ESTIMATES = "create_estimates"
    MANAGE_USERS = "manage_users"


class ProjectStatus(str, enum.Enum):
    ACTIVE = "active"
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProjectUpdateType(str, enum.Enum):
    STATUS_CHANGE = "status_change"
    PROGRESS = "progress"
    NOTE = "note"
    MILESTONE = "milestone"
    PHOTO = "photo"


class MilestoneStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PhotoCategory(str, enum.Enum):
    BEFORE = "before"
    PROGRESS = "progress"
    AFTER = "after"
    GENERAL = "general"


class MessageType(str, enum.Enum):
    TEXT = "text"
    FILE = "file"
    SYSTEM = "system"
    PAYMENT = "payment"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
