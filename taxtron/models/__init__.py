# TaxTron database models
# Import all models here for SQLAlchemy discovery

from taxtron.models.user import User                                  # noqa
from taxtron.models.inspection import Inspection                      # noqa
from taxtron.models.ownership_transfer import OwnershipTransfer       # noqa
from taxtron.models.ownership_history import OwnershipHistory, OwnershipHistoryEntry  # noqa
