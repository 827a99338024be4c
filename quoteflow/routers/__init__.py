# quoteflow/routers/__init__.py

from .quotes.quote_router import router as quote_router
from .jobs.job_router import router as job_router
from .admin.admin_status_router import router as admin_status_router
from .webhooks.payment_webhook_router import router as payment_webhook_router


__all__ = [
"quote_router",
"job_router",
"admin_status_router",
"payment_webhook_router",
]
