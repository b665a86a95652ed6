"""
Word renderers for the visit itineraries. Each generator takes the loaded
`Data` bundle, a `MessageCollector` and the header `DocumentSettings` and
returns an unsaved python-docx Document.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict

from .full_itinerary import generate_full_itinerary  # noqa: F401
from .individual_itineraries import generate_individual_itineraries  # noqa: F401
from .summary_itinerary import (  # noqa: F401
    generate_summary_itinerary,
    generate_summary_itinerary_with_roles,
)


@dataclass(frozen=True)
class DocumentKind:
    name: str
    default_output: str
    generate: Callable[..., Any]


DOCUMENT_KINDS: Dict[str, DocumentKind] = {
    kind.name: kind
    for kind in (
        DocumentKind("full", "full-itinerary.docx", generate_full_itinerary),
        DocumentKind("individual", "individual-itineraries.docx", generate_individual_itineraries),
        DocumentKind("summary", "summary-itinerary.docx", generate_summary_itinerary),
        DocumentKind("roles", "summary-itinerary-with-roles.docx", generate_summary_itinerary_with_roles),
    )
}

__all__ = [
    "DOCUMENT_KINDS",
    "DocumentKind",
    "generate_full_itinerary",
    "generate_individual_itineraries",
    "generate_summary_itinerary",
    "generate_summary_itinerary_with_roles",
]
