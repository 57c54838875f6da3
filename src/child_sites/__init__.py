"""
child-sites-toolkit: export Ad Manager child sites into a spreadsheet.

Paginates a PQL filter around the API's LIMIT/OFFSET constraints, fetches up
to 30 pages concurrently and writes each page at its own row offset.
"""

__version__ = "0.1.0"

from child_sites.client import ChildSitesToolkit
from child_sites.commands import Command, CommandDispatcher
from child_sites.coordinator import ImportCoordinator, format_elapsed
from child_sites.data_handler import DataHandler
from child_sites.driver import MAX_CONCURRENT, BatchFetchDriver
from child_sites.errors import (
    ChildSitesError,
    DestinationNotFound,
    FetchFailure,
    NoResultsError,
    SettingsError,
    TransientRemoteFault,
    UnknownCommandError,
    ValidationError,
)
from child_sites.models.session import ImportSession, ImportState
from child_sites.models.statement import ImportPlan, Page, Statement
from child_sites.planner import QueryPlanner
from child_sites.settings import UserSettings
from child_sites.sheets import Workbook

__all__ = [
    "ChildSitesToolkit",
    "Command",
    "CommandDispatcher",
    "ImportCoordinator",
    "format_elapsed",
    "DataHandler",
    "MAX_CONCURRENT",
    "BatchFetchDriver",
    "ChildSitesError",
    "DestinationNotFound",
    "FetchFailure",
    "NoResultsError",
    "SettingsError",
    "TransientRemoteFault",
    "UnknownCommandError",
    "ValidationError",
    "ImportSession",
    "ImportState",
    "ImportPlan",
    "Page",
    "Statement",
    "QueryPlanner",
    "UserSettings",
    "Workbook",
]
