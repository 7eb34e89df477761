from .auth import require_admin, verify_cron_secret

__all__ = ["require_admin", "verify_cron_secret"]
