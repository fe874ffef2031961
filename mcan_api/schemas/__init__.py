from mcan_api.schemas.auth import AuthTokens, LoginRequest, RegisterRequest, UserResponse
from mcan_api.schemas.user import AdminUserCreate, AdminUserUpdate, MemberCreate, ProfileUpdate
from mcan_api.schemas.eid import EIDCardResponse, EIDVerification
from mcan_api.schemas.property import PropertyCreate, PropertyResponse, PropertyUpdate
from mcan_api.schemas.dashboard import DashboardStats, StateStats, UserStats
