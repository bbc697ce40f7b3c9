"""Import pipeline services."""

from .catalog_resolver import Ambiguous, CatalogResolver, Confident, ExistingRecord, NotFound
from .coordinator import SessionCoordinator
from .enricher import CAST_LIMIT, DIRECTOR_JOB, EnrichedRecord, Enricher, build_record_payload
from .matching import MatchOutcome, select_candidate
from .normalizer import normalize, parse_price, read_csv_headers, read_csv_rows
from .resolution import ResolutionService

__all__ = [
    "Ambiguous",
    "CAST_LIMIT",
    "CatalogResolver",
    "Confident",
    "DIRECTOR_JOB",
    "EnrichedRecord",
    "Enricher",
    "ExistingRecord",
    "MatchOutcome",
    "NotFound",
    "ResolutionService",
    "SessionCoordinator",
    "build_record_payload",
    "normalize",
    "parse_price",
    "read_csv_headers",
    "read_csv_rows",
    "select_candidate",
]
