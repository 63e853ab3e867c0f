from .user import User
from .catalog import ActionDefinition
from .points import PointTransactionEntry, PointsBalanceResponse
from .daily_stats import UserDailyStatsResponse, DailyLoginResult
from .pin import PinCreate, PinResponse
from .verification import VerificationRequestResponse
from .settings import PlatformSettings, SettingKey
