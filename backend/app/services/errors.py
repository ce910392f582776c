"""Messaging service exceptions."""


class MessagingError(RuntimeError):
    """Base class for messaging service failures."""


class ViewerNotFoundError(MessagingError):
    """Raised when the session collaborator supplies an unknown viewer id."""


class ConversationNotFoundError(MessagingError):
    """Raised when a conversation does not exist or the viewer is not a participant."""


class MessageNotFoundError(MessagingError):
    """Raised when a message is not visible to the viewer."""


class MessageValidationError(MessagingError):
    """Raised when a message has neither text nor an attachment."""
