from .auth import User, SessionToken
from .reservations import ReservationSubmission
from .tasks import Task
from .invoices import Invoice, InvoiceItem, DocumentSequence
from .notes import Note, NoteTag
from .notifications import Notification, NotificationWatermark
from .activity import ActivityLogEntry, LoginLogEntry

__all__ = [
    'User', 'SessionToken',
    'ReservationSubmission',
    'Task',
    'Invoice', 'InvoiceItem', 'DocumentSequence',
    'Note', 'NoteTag',
    'Notification', 'NotificationWatermark',
    'ActivityLogEntry', 'LoginLogEntry',
]
