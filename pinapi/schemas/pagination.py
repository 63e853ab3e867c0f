# 엔드포인트별 페이지네이션 제한
class PaginationLimits:
    POINTS_LEDGER = {"min": 1, "max": 100, "default": 50}
    VERIFICATION_QUEUE = {"min": 1, "max": 100, "default": 50}
    MODERATION_LOGS = {"min": 1, "max": 100, "default": 50}
    LEADERBOARD = {"min": 1, "max": 100, "default": 20}
    PIN_FEED = {"min": 1, "max": 100, "default": 50}
