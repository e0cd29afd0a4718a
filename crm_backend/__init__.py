"""CRM backend: FastAPI service for accounts, leads, clients, services and site content."""
