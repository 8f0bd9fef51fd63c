"""Content domain: entity models, the validated store and its satellites.

The store owns the in-memory copy of every entity kind, writes it through
to a persistence adapter, keeps rolling backups and broadcasts changes to
subscribers such as the public :class:`SiteView`.
"""

from folio.content.models import (
    AboutContent,
    Bilingual,
    BlogPost,
    BlogStatus,
    ContactInfo,
    ContactMessage,
    EntityKind,
    HeroContent,
    Language,
    Project,
    Service,
    SystemSettings,
    Theme,
)
from folio.content.backups import Backup, BackupManager
from folio.content.notifier import ChangeEvent, ChangeNotifier, Operation, Subscription
from folio.content.store import ContentStore, IntegrityReport, MessageStats
from folio.content.transfer import ExportDocument, ImportExport, ImportReport
from folio.content.views import SiteView

__all__ = [
    "AboutContent",
    "Backup",
    "BackupManager",
    "Bilingual",
    "BlogPost",
    "BlogStatus",
    "ChangeEvent",
    "ChangeNotifier",
    "ContactInfo",
    "ContactMessage",
    "ContentStore",
    "EntityKind",
    "ExportDocument",
    "HeroContent",
    "ImportExport",
    "ImportReport",
    "IntegrityReport",
    "Language",
    "MessageStats",
    "Operation",
    "Project",
    "Service",
    "Subscription",
    "SystemSettings",
    "Theme",
]
