"""
Content DAOs

DAOs for the CMS entities: blog posts, announcements and FAQs. They only
need the generic operations of :class:`BaseDao`.
"""

from crm_backend.database.daos.base_dao import BaseDao
from crm_backend.database.entities.announcement import Announcement
from crm_backend.database.entities.blog import Blog
from crm_backend.database.entities.faq import FAQ


class BlogDao(BaseDao):
    entity = Blog


class AnnouncementDao(BaseDao):
    entity = Announcement


class FAQDao(BaseDao):
    entity = FAQ
