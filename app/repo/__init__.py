from .audit import AuditRepo
from .catalogs import (
    BarangayChain,
    GeographyCatalog,
    OccupationCatalog,
    StreetRepo,
    SubdivisionRepo,
)
from .households import HouseholdRepo
from .memberships import MembershipRepo
from .migrants import MigrantInfoRepo
from .residents import ResidentRepo
from .sequences import SequenceRepo

__all__ = [
    "AuditRepo",
    "BarangayChain",
    "GeographyCatalog",
    "HouseholdRepo",
    "MembershipRepo",
    "MigrantInfoRepo",
    "OccupationCatalog",
    "ResidentRepo",
    "SequenceRepo",
    "StreetRepo",
    "SubdivisionRepo",
]
