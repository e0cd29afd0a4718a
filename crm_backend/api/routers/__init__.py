"""
HTTP routers, one per domain.

Mutating routes open a :class:`MutationProtocol` named ``"<domain>.<op>"``
for the authenticated caller, hand it to the service layer and answer with
``protocol.respond``. Reads answer with the plain ``respond`` envelope.
Routes are plain ``def`` functions: the service layer is synchronous and
FastAPI runs them in its threadpool.
"""

from crm_backend.api.routers import (
    announcements,
    blogs,
    clients,
    faqs,
    leads,
    notifications,
    services,
    storage,
    users,
)

ROUTERS = [
    (users.router, "/api/users"),
    (notifications.router, "/api/notifications"),
    (services.router, "/api/services"),
    (leads.router, "/api/leads"),
    (clients.router, "/api/clients"),
    (blogs.router, "/api/blogs"),
    (announcements.router, "/api/announcements"),
    (faqs.router, "/api/faqs"),
    (storage.router, "/api/storage"),
]
