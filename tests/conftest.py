import os
import warnings

# Ignore warnings from beanie/motor internals
warnings.filterwarnings("ignore", category=DeprecationWarning, module="beanie.*")

# Set test environment variables
os.environ.update(
    {
        "ROOM_STORE_BACKEND": "memory",
        "DEBUG": "false",
    }
)

# Import fixtures so they are available to all tests
from tests.fixtures.mongo_fixtures import *  # noqa: E402, F403
from tests.fixtures.room_fixtures import *  # noqa: E402, F403
