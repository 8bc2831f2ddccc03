from models.allocation import Allocation
from models.allocation_run import AllocationRun
from models.preference import Preference
from models.preference_entry import PreferenceEntry
from models.system_settings import SystemSettings
from models.title import Title
from models.user import User

__all__ = [
	"Allocation",
	"AllocationRun",
	"Preference",
	"PreferenceEntry",
	"SystemSettings",
	"Title",
	"User",
]
