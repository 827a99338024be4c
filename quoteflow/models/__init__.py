# Users
from quoteflow.models.users.user_models import User

# Quotes & jobs
from quoteflow.models.quotes.quote_models import Quote
from quoteflow.models.jobs.job_models import Job

# Support
from quoteflow.models.support.audit_log_models import AuditLog
