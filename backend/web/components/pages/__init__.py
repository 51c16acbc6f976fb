from .dashboard import DashboardPage
from .results import ResultsPage, GradeSelector
from .materials import MaterialsPage
from .admin import AdminPage

__all__ = ["DashboardPage", "ResultsPage", "GradeSelector", "MaterialsPage", "AdminPage"]
