from .auth import GmailAuthManager
from .source import GmailMailClient

__all__ = ["GmailAuthManager", "GmailMailClient"]
