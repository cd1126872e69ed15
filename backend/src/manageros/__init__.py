"""ManagerOS backend: multi-tenant data access and notification cron pipeline."""

__version__ = "0.1.0"
