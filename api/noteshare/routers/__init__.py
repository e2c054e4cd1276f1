# This file makes the routers directory a Python package
from . import (
    ai,
    auth,
    catalog,
    health,
    leaderboard,
    notes,
)
