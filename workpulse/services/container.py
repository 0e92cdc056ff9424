from workpulse.core.config import settings
from workpulse.repositories.data_store import DataStore
from workpulse.services.audit_service import AuditService, EventLogger
from workpulse.services.directory_service import DirectoryService


store = DataStore()
event_logger = EventLogger()

audit_service = AuditService(event_logger=event_logger, enabled=settings.audit_decisions)
directory_service = DirectoryService(store=store, event_logger=event_logger)
directory_service.load(settings.role_table_path, settings.staff_seed_path)
