from tests.mocks.server import MockServiceContainer, make_test_settings
from tests.mocks.storage import InMemoryChatStore

__all__ = [
    "InMemoryChatStore",
    "MockServiceContainer",
    "make_test_settings",
]
