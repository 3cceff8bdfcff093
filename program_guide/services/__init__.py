"""
Services package for the program guide sync

This package contains all business logic and service layer components.
"""
from program_guide.services.sync_service import SyncOrchestrator, SyncReport, run_sync
from program_guide.services.scheduler_service import SyncScheduler
from program_guide.services.tvmaze_client import TVMazeClient
from program_guide.services.db_service import ProgramGuideStore

__all__ = [
    'SyncOrchestrator',
    'SyncReport',
    'run_sync',
    'SyncScheduler',
    'TVMazeClient',
    'ProgramGuideStore',
]
