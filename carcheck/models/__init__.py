# Metadata registration: every table must be imported here
from .user import User
from .car import Car
from .permission import CarPermission
from .checklist import ChecklistItem
from .invitation import Invitation
from .share_link import ShareLink
from .subscription import UserSubscription
from .ai_conversation import AIConversation
from .maintenance import MaintenanceRecord
from .car_model import CarModel
from .media import Media
from .enums import ChecklistStatus, SharePermission, SubscriptionTier
