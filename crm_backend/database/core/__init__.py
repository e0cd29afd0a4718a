"""
Service layer.

- mutation: the phase-ordered protocol every create / edit / delete runs
- relationships: primary write + reference-array sync
- notifications, retention: the activity feed and its retention sweep
- mailer: transactional email
- users, services, leads, clients, blogs, announcements, faqs, files:
  one module per domain
"""
