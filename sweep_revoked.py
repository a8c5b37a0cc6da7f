# python sweep_revoked.py   (run daily from cron)

import logging

from auth.dependencies import get_services
from gradebook.config import configure_logging

configure_logging()

deleted = get_services().tokens.sweep()
logging.getLogger("sweep_revoked").info("Removed %d expired revocation entries", deleted)
