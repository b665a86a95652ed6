"""
Shared visit-schedule model, field mapping and workbook loading used by the
document generator and the SQLite browser.
"""

from .errors import (  # noqa: F401
    MappingError,
    MarkupError,
    UserError,
    VisitError,
)

from .config import (  # noqa: F401
    DocumentSettings,
    LoadDataOptions,
    MeetingsTableRoleSource,
    ParticipantsTableRoleSource,
    Settings,
    load_settings,
)

from .load import load_data  # noqa: F401

from .messages import MessageCollector, run_collecting  # noqa: F401

from .schema import (  # noqa: F401
    TEAM_ROLE_DEFINITIONS,
    Data,
    Participant,
    ProposedMeeting,
    ZoomRoom,
)

__all__ = [
    "MappingError",
    "MarkupError",
    "UserError",
    "VisitError",
    "DocumentSettings",
    "LoadDataOptions",
    "MeetingsTableRoleSource",
    "ParticipantsTableRoleSource",
    "Settings",
    "load_settings",
    "load_data",
    "MessageCollector",
    "run_collecting",
    "TEAM_ROLE_DEFINITIONS",
    "Data",
    "Participant",
    "ProposedMeeting",
    "ZoomRoom",
]
