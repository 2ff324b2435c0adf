from .user import User, UserSummary

__all__ = ["User", "UserSummary"]
