"""Auto-import all city sources to trigger @register decorators."""

from listings.sources import (  # noqa: F401
    kelowna,
    nelson,
)
