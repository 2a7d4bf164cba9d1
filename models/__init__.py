from .tier import Tier, TierName
from .user import User
from .workspace import Workspace
from .workspace_member import WorkspaceMember, Permission
# Add other model files here as needed
