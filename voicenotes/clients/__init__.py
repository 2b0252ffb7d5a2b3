from .notion_api import NotionClient
from .openai_api import OpenAIClient

__all__ = [
    "NotionClient",
    "OpenAIClient",
]
