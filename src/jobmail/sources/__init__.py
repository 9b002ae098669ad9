from .models import CollaboratorError, MailClient, MessageContent

__all__ = ["CollaboratorError", "MailClient", "MessageContent"]
