from .memory_gateway import InMemoryNotificationGateway, SentNotification

__all__ = ["InMemoryNotificationGateway", "SentNotification"]
